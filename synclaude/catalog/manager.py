"""Catalog access: cache-or-fetch, listing, search and lookup."""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence

from synclaude.catalog.cache import CacheInfo, CatalogCache
from synclaude.catalog.client import CatalogClient
from synclaude.catalog.entry import CatalogEntry, validate_entry
from synclaude.core.config import ConfigManager
from synclaude.utils.log import get_logger


logger = get_logger()

Fetcher = Callable[[], Sequence[Any]]


def _sort_key(entry: CatalogEntry) -> str:
    return entry.id


class CatalogManager:
    """Decides between the cache and a fresh fetch, and queries entries."""

    def __init__(self, cache: CatalogCache, fetcher: Optional[Fetcher] = None) -> None:
        self.cache = cache
        self.fetcher = fetcher

    @classmethod
    def from_config(
        cls, config_manager: ConfigManager, fetcher: Optional[Fetcher] = None
    ) -> "CatalogManager":
        """Build a manager from stored settings.

        Without an explicit fetcher, a CatalogClient is used when an API key
        is configured.
        """
        settings = config_manager.config
        cache = CatalogCache(config_manager.cache_path, settings.cache_duration_hours)
        if fetcher is None and settings.api_key:
            fetcher = CatalogClient(settings.api_key, settings.catalog_url)
        return cls(cache, fetcher)

    def fetch(
        self, force_refresh: bool = False, fetcher: Optional[Fetcher] = None
    ) -> List[CatalogEntry]:
        """Return catalog entries, from the cache when it is fresh and non-empty.

        Entries that fail validation are dropped individually. A non-empty
        result replaces the cache; an empty one leaves the cache alone.
        Errors raised by the fetcher propagate and nothing is written.
        """
        if not force_refresh and self.cache.is_valid():
            cached = self.cache.load()
            if cached:
                logger.info("[catalog] Loaded models from cache")
                return cached
            logger.info("[catalog] Cache yielded no models; fetching again")

        active_fetcher = fetcher or self.fetcher
        if active_fetcher is None:
            logger.warning("[catalog] No API key configured")
            return []

        logger.info("[catalog] Fetching models from API")
        raw_entries = active_fetcher()

        entries: List[CatalogEntry] = []
        for raw in raw_entries:
            result = validate_entry(raw)
            if result.entry is None:
                raw_id = raw.get("id") if isinstance(raw, dict) else None
                logger.warning(
                    "[catalog] Invalid model data: %s: %s",
                    raw_id or "unknown",
                    result.error,
                )
                continue
            entries.append(result.entry)

        if entries:
            self.cache.save(entries)
            logger.info("[catalog] Fetched %d models", len(entries))
        else:
            logger.warning("[catalog] No models received from API")
        return entries

    def list(self, entries: Sequence[CatalogEntry]) -> List[CatalogEntry]:
        """Entries sorted by id; the input is not modified."""
        return sorted(entries, key=_sort_key)

    def search(
        self, query: str, entries: Optional[Sequence[CatalogEntry]] = None
    ) -> List[CatalogEntry]:
        """Case-insensitive substring search over id, provider and name."""
        if entries is None:
            entries = self.fetch()
        if not query:
            return self.list(entries)

        needle = query.lower()
        matches = [
            entry
            for entry in entries
            if needle in " ".join((entry.id, entry.provider, entry.name)).lower()
        ]
        return sorted(matches, key=_sort_key)

    def by_id(
        self, entry_id: str, entries: Optional[Sequence[CatalogEntry]] = None
    ) -> Optional[CatalogEntry]:
        if entries is None:
            entries = self.fetch()
        return next((entry for entry in entries if entry.id == entry_id), None)

    def clear_cache(self) -> bool:
        return self.cache.clear()

    def cache_info(self) -> CacheInfo:
        return self.cache.info()
