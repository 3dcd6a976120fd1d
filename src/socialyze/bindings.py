"""Keyboard bindings for live chamber scoring.

A binding table maps one keyboard key to one (mouse, chamber) pair. Tables
are immutable tuples of ``KeyBinding``; remapping a key returns a new table.

The default layout uses the numeric keypad, one column per mouse:

    Mouse A   Mouse B   Mouse C
    7         8         9          -> empty
    4         5         6          -> middle
    1         2         3          -> stranger
"""

import logging
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import BindingError
from .models import Chamber

logger = logging.getLogger(__name__)

__all__ = [
    "KeyBinding",
    "DEFAULT_MOUSE_IDS",
    "NUMPAD_GRID",
    "build_default_key_bindings",
    "lookup_binding",
    "rebind",
]

DEFAULT_MOUSE_IDS: Tuple[str, ...] = ("Mouse A", "Mouse B", "Mouse C")

# One column of keys per mouse, rows in chamber order
NUMPAD_GRID: Tuple[Tuple[str, ...], ...] = (
    ("numpad7", "numpad4", "numpad1"),
    ("numpad8", "numpad5", "numpad2"),
    ("numpad9", "numpad6", "numpad3"),
)

_CHAMBER_ORDER = (Chamber.EMPTY, Chamber.MIDDLE, Chamber.STRANGER)


class KeyBinding(BaseModel):
    """Key that logs ``mouse_id`` entering ``chamber``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(..., min_length=1, description="Key identifier (e.g., 'numpad7')")
    key_label: str = Field(..., description="Human-readable key name (e.g., 'Numpad 7')")
    mouse_id: str = Field(..., min_length=1, description="Mouse scored by this key")
    chamber: Chamber = Field(..., description="Chamber logged by this key")


def _key_label(key: str) -> str:
    if key.startswith("numpad"):
        return f"Numpad {key[len('numpad'):]}"
    return key.upper() if len(key) == 1 else key.capitalize()


def build_default_key_bindings(mouse_ids: Sequence[str] = DEFAULT_MOUSE_IDS) -> Tuple[KeyBinding, ...]:
    """Build the numpad binding table for up to three mice.

    Args:
        mouse_ids: Mouse identifiers, one keypad column each

    Returns:
        Tuple of bindings ordered by mouse then chamber

    Raises:
        BindingError: If more mice than keypad columns or duplicate ids
    """
    if len(mouse_ids) > len(NUMPAD_GRID):
        raise BindingError(f"Default keypad layout supports at most {len(NUMPAD_GRID)} mice, got {len(mouse_ids)}")
    if len(set(mouse_ids)) != len(mouse_ids):
        raise BindingError(f"Duplicate mouse ids: {list(mouse_ids)}")

    return tuple(
        KeyBinding(key=key, key_label=_key_label(key), mouse_id=mouse_id, chamber=chamber)
        for mouse_id, keys in zip(mouse_ids, NUMPAD_GRID)
        for key, chamber in zip(keys, _CHAMBER_ORDER)
    )


def lookup_binding(bindings: Sequence[KeyBinding], key: str) -> Optional[KeyBinding]:
    for binding in bindings:
        if binding.key == key:
            return binding
    return None


def rebind(bindings: Sequence[KeyBinding], mouse_id: str, chamber: Chamber, key: str) -> Tuple[KeyBinding, ...]:
    """Return a new table where ``key`` logs ``mouse_id`` entering ``chamber``.

    Raises:
        BindingError: If the mouse has no binding for the chamber, or the key
            is already bound to another mouse/chamber pair
    """
    chamber = Chamber(chamber)
    target = next((b for b in bindings if b.mouse_id == mouse_id and b.chamber == chamber), None)
    if target is None:
        raise BindingError(f"No binding for mouse {mouse_id} / {chamber.value}")

    clash = lookup_binding(bindings, key)
    if clash is not None and clash != target:
        raise BindingError(f"Key {key} is already bound to {clash.mouse_id} / {clash.chamber.value}")

    replacement = target.model_copy(update={"key": key, "key_label": _key_label(key)})
    logger.debug(f"Rebound {mouse_id} / {chamber.value}: {target.key} -> {key}")
    return tuple(replacement if b == target else b for b in bindings)
