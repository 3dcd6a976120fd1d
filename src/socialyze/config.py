"""Configuration for socialyze.

Load and validate TOML configuration with Pydantic models and environment
overrides. Unknown keys are rejected.

Example ``socialyze.toml``:

    [session]
    protocol = "social_novelty"
    mouse_ids = ["Mouse A", "Mouse B"]

    [export]
    delimiter = "tab"
    mode = "summary"
    excel_bom = true

    [history]
    path = "~/.socialyze/session_history.json"

    [logging]
    level = "DEBUG"

Environment overrides use the ``SOCIALYZE_`` prefix with ``__`` between
nested keys, e.g. ``SOCIALYZE_EXPORT__DELIMITER=tab``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

try:
    import tomli as tomllib  # Python < 3.11
except ImportError:
    import tomllib  # Python >= 3.11

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .bindings import DEFAULT_MOUSE_IDS
from .protocols import Protocol
from .report import Delimiter, ReportMode

__all__ = [
    "Settings",
    "load_settings",
    "ENV_PREFIX",
]

ENV_PREFIX = "SOCIALYZE_"


# ============================================================================
# Configuration Models
# ============================================================================


class SessionConfig(BaseModel):
    """Recording defaults."""

    model_config = ConfigDict(extra="forbid")

    protocol: Protocol = Field(default=Protocol.SOCIAL_INTERACTION)
    mouse_ids: list[str] = Field(default_factory=lambda: list(DEFAULT_MOUSE_IDS), min_length=1)


class ExportConfig(BaseModel):
    """Report export defaults."""

    model_config = ConfigDict(extra="forbid")

    delimiter: Literal["comma", "tab"] = Field(default="comma")
    mode: ReportMode = Field(default=ReportMode.SUMMARY)
    excel_bom: bool = Field(default=False)

    @property
    def delimiter_char(self) -> Delimiter:
        return Delimiter.TAB if self.delimiter == "tab" else Delimiter.COMMA


class HistoryConfig(BaseModel):
    """Session history location."""

    model_config = ConfigDict(extra="forbid")

    path: Path = Field(default=Path("~/.socialyze/session_history.json"), validate_default=True)

    @field_validator("path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        """Expand environment variables and user home in paths."""
        return Path(os.path.expandvars(os.path.expanduser(str(v))))


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO")
    structured: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got '{v}'")
        return v_upper


class Settings(BaseModel):
    """Complete socialyze settings."""

    model_config = ConfigDict(extra="forbid")

    session: SessionConfig = Field(default_factory=SessionConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ============================================================================
# Loading Functions
# ============================================================================


def load_settings(
    toml_path: Path | str | None = None,
    env_prefix: str = ENV_PREFIX,
) -> Settings:
    """Load and validate settings from TOML and environment.

    Args:
        toml_path: Path to TOML configuration file (optional)
        env_prefix: Environment variable prefix (default: SOCIALYZE_)

    Returns:
        Validated Settings object

    Raises:
        FileNotFoundError: If toml_path specified but doesn't exist
        pydantic.ValidationError: If configuration is invalid
    """
    config_dict: dict[str, Any] = {}

    if toml_path is not None:
        toml_path = Path(toml_path)
        if not toml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {toml_path}")

        with open(toml_path, "rb") as f:
            config_dict = tomllib.load(f)

    config_dict = _apply_env_overrides(config_dict, env_prefix)

    return Settings(**config_dict)


def _apply_env_overrides(config: dict[str, Any], prefix: str) -> dict[str, Any]:
    """Apply environment variable overrides to config dict.

    Supports nested keys with double underscore notation:
    SOCIALYZE_SESSION__PROTOCOL=social_novelty
    SOCIALYZE_LOGGING__LEVEL=DEBUG
    """
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix) :].lower()
        parts = config_key.split("__")

        current = config
        for part in parts[:-1]:
            current = current.setdefault(part, {})

        current[parts[-1]] = _parse_env_value(value)

    return config


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to bool, comma-separated list, or str."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    if "," in value:
        return [item.strip() for item in value.split(",") if item.strip()]
    return value
