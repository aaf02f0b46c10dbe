"""On-disk cache of the model catalog.

Freshness comes from the file modification time alone; the ``timestamp``
stored in the envelope is informational.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field

from synclaude.catalog.entry import CatalogEntry, validate_entry
from synclaude.utils.fs import is_file_fresh
from synclaude.utils.json_utils import safe_parse_json, write_json_atomic
from synclaude.utils.log import get_logger


logger = get_logger()

DEFAULT_CACHE_HOURS = 24


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CacheEnvelope(BaseModel):
    """Serialized form of the cache file."""

    entries: List[CatalogEntry] = Field(default_factory=list)
    timestamp: str = Field(default_factory=_utc_now_iso)
    count: int = 0

    @classmethod
    def wrap(cls, entries: Sequence[CatalogEntry]) -> "CacheEnvelope":
        return cls(entries=list(entries), count=len(entries))

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "entries": [entry.to_json_dict() for entry in self.entries],
            "timestamp": self.timestamp,
            "count": self.count,
        }


class CacheInfo(BaseModel):
    """Diagnostic snapshot of the cache file."""

    exists: bool
    file_path: Optional[str] = None
    modified_time: Optional[str] = None
    size_bytes: Optional[int] = None
    entry_count: Optional[int] = None
    is_valid: Optional[bool] = None
    error: Optional[str] = None


class CatalogCache:
    """TTL-gated cache of catalog entries stored as one JSON file."""

    def __init__(self, cache_file: Path, cache_duration_hours: int = DEFAULT_CACHE_HOURS) -> None:
        self.cache_file = Path(cache_file)
        self.cache_duration_hours = cache_duration_hours

    def is_valid(self) -> bool:
        """True iff the cache file exists and is younger than the TTL."""
        return is_file_fresh(self.cache_file, self.cache_duration_hours)

    def load(self) -> List[CatalogEntry]:
        """Return cached entries, or an empty list when stale or unreadable.

        A damaged cache file is removed so the next access fetches again.
        """
        if not self.is_valid():
            return []
        entries = self._read_entries()
        if entries is None:
            logger.warning(
                "[cache] Discarding damaged cache file",
                extra={"path": str(self.cache_file)},
            )
            self.clear()
            return []
        return entries

    def _read_entries(self) -> Optional[List[CatalogEntry]]:
        """Parse the cache file; None when the file itself is damaged."""
        try:
            raw_text = self.cache_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "[cache] Error loading cache: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(self.cache_file)},
            )
            return None

        payload = safe_parse_json(raw_text)
        if not isinstance(payload, dict):
            logger.warning(
                "[cache] Cache file is not a JSON object; ignoring it",
                extra={"path": str(self.cache_file)},
            )
            return None

        raw_entries = payload.get("entries")
        if raw_entries is None:
            # Files written by older releases used "models".
            raw_entries = payload.get("models", [])
        if not isinstance(raw_entries, list):
            logger.warning(
                "[cache] Cache entries are not a list; ignoring cache",
                extra={"path": str(self.cache_file)},
            )
            return None

        entries: List[CatalogEntry] = []
        for raw in raw_entries:
            result = validate_entry(raw)
            if result.entry is None:
                logger.warning(
                    "[cache] Skipping invalid cached entry: %s",
                    result.error,
                    extra={"path": str(self.cache_file)},
                )
                continue
            entries.append(result.entry)
        return entries

    def save(self, entries: Sequence[CatalogEntry]) -> bool:
        """Overwrite the cache with ``entries``. Returns False on any I/O failure."""
        envelope = CacheEnvelope.wrap(entries)
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            write_json_atomic(self.cache_file, envelope.to_json_dict(), prefix=".models_cache_")
        except OSError as exc:
            logger.error(
                "[cache] Error saving cache: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(self.cache_file)},
            )
            return False

        logger.debug(
            "[cache] Cached %d models",
            envelope.count,
            extra={"path": str(self.cache_file)},
        )
        return True

    def clear(self) -> bool:
        """Delete the cache file. Returns False if it was absent or could not be removed."""
        try:
            self.cache_file.unlink()
        except FileNotFoundError:
            logger.debug("[cache] No cache file to clear", extra={"path": str(self.cache_file)})
            return False
        except OSError as exc:
            logger.error(
                "[cache] Error clearing cache: %s: %s",
                type(exc).__name__,
                exc,
                extra={"path": str(self.cache_file)},
            )
            return False
        logger.debug("[cache] Cache cleared", extra={"path": str(self.cache_file)})
        return True

    def info(self) -> CacheInfo:
        """Describe the cache file; never raises."""
        try:
            stats = self.cache_file.stat()
        except OSError as exc:
            return CacheInfo(exists=False, error=str(exc))

        entries = self._read_entries()
        modified = datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)
        return CacheInfo(
            exists=True,
            file_path=str(self.cache_file),
            modified_time=modified.isoformat().replace("+00:00", "Z"),
            size_bytes=stats.st_size,
            entry_count=len(entries) if entries is not None else 0,
            is_valid=self.is_valid(),
            error=None if entries is not None else "Cache file is damaged",
        )
