"""Protocol-dependent display labels for chambers.

The analyzer only deals in ``Chamber`` values; how a chamber is called on
screen depends on the experimental protocol. In the social novelty phase the
previously empty chamber holds a second, novel stranger.

Lookup tables are read-only mappings:

- ``PROTOCOL_LABELS``: protocol -> human-readable name
- ``CHAMBER_LABELS``: (protocol, chamber) -> human-readable chamber name
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple, Union

from .models import Chamber

__all__ = ["Protocol", "PROTOCOL_LABELS", "CHAMBER_LABELS", "protocol_label", "chamber_label"]


class Protocol(str, Enum):
    """Supported three-chamber protocols."""

    SOCIAL_INTERACTION = "social_interaction"
    SOCIAL_NOVELTY = "social_novelty"


PROTOCOL_LABELS: Mapping[Protocol, str] = MappingProxyType(
    {
        Protocol.SOCIAL_INTERACTION: "Social Interaction",
        Protocol.SOCIAL_NOVELTY: "Social Novelty",
    }
)

CHAMBER_LABELS: Mapping[Tuple[Protocol, Chamber], str] = MappingProxyType(
    {
        (Protocol.SOCIAL_INTERACTION, Chamber.EMPTY): "Empty",
        (Protocol.SOCIAL_INTERACTION, Chamber.MIDDLE): "Middle",
        (Protocol.SOCIAL_INTERACTION, Chamber.STRANGER): "Stranger",
        (Protocol.SOCIAL_NOVELTY, Chamber.EMPTY): "New Stranger",
        (Protocol.SOCIAL_NOVELTY, Chamber.MIDDLE): "Middle",
        (Protocol.SOCIAL_NOVELTY, Chamber.STRANGER): "Stranger",
    }
)


def protocol_label(protocol: Union[Protocol, str]) -> str:
    return PROTOCOL_LABELS[Protocol(protocol)]


def chamber_label(protocol: Union[Protocol, str], chamber: Union[Chamber, str]) -> str:
    """Display label of ``chamber`` under ``protocol``.

    Raises:
        ValueError: If protocol or chamber is not a known value
    """
    return CHAMBER_LABELS[(Protocol(protocol), Chamber(chamber))]
