"""Error types shared by the settings store and the model catalog."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError


class SynclaudeError(Exception):
    """Base class for all Synclaude errors."""


class ConfigValidationError(SynclaudeError, ValueError):
    """Settings failed schema validation; nothing was written."""


class ConfigSaveError(SynclaudeError):
    """Settings could not be written to disk."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class EntryValidationError(SynclaudeError, ValueError):
    """A raw catalog entry does not match the entry schema."""


class CatalogApiError(SynclaudeError):
    """The remote catalog could not be fetched."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def describe_validation_error(exc: ValidationError) -> str:
    """Describe the first violation of a pydantic error in one line."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', 'invalid value')}"
