"""Parse command-line strings into typed setting values."""

from __future__ import annotations

from typing import Any, Optional

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


def parse_boolish(value: object, default: Optional[bool] = False) -> Optional[bool]:
    """Parse a truthy/falsey value from common representations."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_WORDS:
            return True
        if normalized in _FALSE_WORDS:
            return False
    return default


def parse_optional_int(value: object) -> Optional[int]:
    """Best-effort int parsing; returns None on failure."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def coerce_to_annotation(raw_value: str, annotation: Any) -> Any:
    """Convert ``raw_value`` for a bool/int/str field; raise ValueError if it does not fit."""
    if annotation is bool:
        parsed_bool = parse_boolish(raw_value, default=None)
        if parsed_bool is None:
            raise ValueError(f"'{raw_value}' is not a boolean")
        return parsed_bool
    if annotation is int:
        parsed_int = parse_optional_int(raw_value)
        if parsed_int is None:
            raise ValueError(f"'{raw_value}' is not an integer")
        return parsed_int
    return raw_value
