"""Catalog entry schema and identifier parsing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from synclaude.core.errors import EntryValidationError, describe_validation_error

UNKNOWN_PROVIDER = "unknown"


def parse_provider(entry_id: str) -> str:
    """Text before the first ':' of an id, or "unknown" when there is none."""
    if ":" not in entry_id:
        return UNKNOWN_PROVIDER
    return entry_id.split(":", 1)[0]


def parse_name(entry_id: str) -> str:
    """Text after the first ':' of an id, or the whole id when there is none."""
    if ":" not in entry_id:
        return entry_id
    return entry_id.split(":", 1)[1]


class CatalogEntry(BaseModel):
    """One selectable model from the remote catalog.

    The JSON shape follows the OpenAI ``/models`` listing (``object``,
    ``created``, ``owned_by``); Python code uses the descriptive names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: StrictStr = Field(min_length=1)
    kind: StrictStr = Field(default="model", alias="object")
    created_at: Optional[StrictInt] = Field(default=None, alias="created")
    owner: Optional[StrictStr] = Field(default=None, alias="owned_by")

    @property
    def provider(self) -> str:
        return parse_provider(self.id)

    @property
    def name(self) -> str:
        return parse_name(self.id)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class EntryValidation:
    """Result of validating one raw entry: either ``entry`` or ``error`` is set."""

    entry: Optional[CatalogEntry] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.entry is not None

    def unwrap(self) -> CatalogEntry:
        if self.entry is None:
            raise EntryValidationError(self.error or "Invalid model data")
        return self.entry


def validate_entry(raw: Any) -> EntryValidation:
    """Validate an untyped mapping into a CatalogEntry without raising."""
    if isinstance(raw, CatalogEntry):
        return EntryValidation(entry=raw)
    if not isinstance(raw, dict):
        return EntryValidation(error=f"expected an object, got {type(raw).__name__}")
    try:
        return EntryValidation(entry=CatalogEntry.model_validate(raw))
    except ValidationError as exc:
        return EntryValidation(error=describe_validation_error(exc))


def create_entry(raw: Any) -> CatalogEntry:
    """Validate and construct an entry, raising EntryValidationError on bad input."""
    return validate_entry(raw).unwrap()
