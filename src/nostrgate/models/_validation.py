"""Shared validation helpers for frozen dataclass models.

Private module -- not part of the public API. Used by ``__post_init__``
methods in sibling model modules so that invalid records, filters and
pointers never escape their constructors.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from .constants import EVENT_KIND_MAX


HEX64_PATTERN = re.compile(r"[0-9a-fA-F]{64}")


def is_hex64(value: Any) -> bool:
    """Return True if *value* is a string of exactly 64 hex characters."""
    return isinstance(value, str) and HEX64_PATTERN.fullmatch(value) is not None


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_kind(value: Any, name: str) -> None:
    """Raise if *value* is not an event kind in ``0..65535``."""
    validate_timestamp(value, name)
    if value > EVENT_KIND_MAX:
        raise ValueError(f"{name} must be <= {EVENT_KIND_MAX}, got {value}")


def validate_hex64(value: Any, name: str) -> None:
    """Raise if *value* is not a 64-character hex string."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if not is_hex64(value):
        raise ValueError(f"{name} must be 64 hex characters, got {value!r}")


def validate_str_no_null(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` or contains null bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")


def freeze_strings(values: Iterable[Any], name: str) -> tuple[str, ...]:
    """Return *values* as a tuple, validating that every item is a ``str``."""
    if isinstance(values, str):
        raise TypeError(f"{name} must be a sequence of str, not a single str")
    result = tuple(values)
    for item in result:
        validate_str_no_null(item, name)
    return result

