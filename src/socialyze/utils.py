"""Foundation utilities for socialyze.

Provides reusable primitives for file I/O and logging. As a leaf module,
this module must not import any other project modules.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any

__all__ = [
    "UTF8_BOM",
    "read_json",
    "write_json",
    "read_csv",
    "write_csv",
    "write_text",
    "configure_logging",
]

# Lets spreadsheet tools detect UTF-8 when opening tab-delimited exports
UTF8_BOM = "\ufeff"


# ============================================================================
# JSON I/O
# ============================================================================


def read_json(path: Path | str) -> dict[str, Any]:
    """Read JSON file and return parsed dictionary.

    Args:
        path: Absolute or relative path to JSON file

    Returns:
        Parsed JSON as dictionary

    Raises:
        FileNotFoundError: If file does not exist
        JSONDecodeError: If file contains invalid JSON
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path | str, obj: dict[str, Any], indent: int = 2) -> None:
    """Write dictionary to JSON file with pretty formatting.

    Args:
        path: Target file path
        obj: Dictionary to serialize
        indent: Indentation level (default: 2)

    Raises:
        OSError: If write operation fails
    """
    path = Path(path)

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=indent, ensure_ascii=False)


# ============================================================================
# CSV and Text I/O
# ============================================================================


def read_csv(path: Path | str) -> tuple[list[str], list[dict[str, str]]]:
    """Read CSV file with a header row.

    Returns:
        Tuple of (fieldnames, rows)

    Raises:
        FileNotFoundError: If file does not exist
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        rows = list(reader)
        return list(reader.fieldnames or []), rows


def write_csv(
    path: Path | str,
    rows: list[dict[str, Any]],
    fieldnames: list[str] | None = None,
) -> None:
    """Write rows to CSV file with explicit field ordering.

    Args:
        path: Target CSV file path
        rows: List of dictionaries representing table rows
        fieldnames: Optional explicit column order (default: keys from first row)

    Raises:
        ValueError: If rows is empty and fieldnames not provided
        OSError: If write operation fails
    """
    path = Path(path)

    if not rows and fieldnames is None:
        raise ValueError("Cannot write CSV: rows is empty and no fieldnames provided")

    if fieldnames is None:
        fieldnames = list(rows[0].keys())

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def write_text(path: Path | str, text: str, bom: bool = False) -> None:
    """Write text as UTF-8, optionally prefixed with a byte order mark."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8", newline="") as f:
        if bom:
            f.write(UTF8_BOM)
        f.write(text)


# ============================================================================
# Logging Configuration
# ============================================================================


def configure_logging(level: str = "INFO", structured: bool = False) -> None:
    """Configure root logger with standardized format.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        structured: Enable JSON structured logging (default: False)

    Raises:
        ValueError: If level is not a known logging level
    """
    numeric_level = getattr(logging, level.upper(), None)

    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)

    if structured:
        formatter = logging.Formatter('{"timestamp": "%(asctime)s", "level": "%(levelname)s", ' '"name": "%(name)s", "message": "%(message)s"}')
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
