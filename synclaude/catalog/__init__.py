"""Model catalog: entry schema, TTL cache, HTTP fetcher and access facade."""

from synclaude.catalog.cache import CacheEnvelope, CacheInfo, CatalogCache
from synclaude.catalog.client import CatalogClient
from synclaude.catalog.entry import (
    CatalogEntry,
    EntryValidation,
    create_entry,
    parse_name,
    parse_provider,
    validate_entry,
)
from synclaude.catalog.manager import CatalogManager, Fetcher

__all__ = [
    "CacheEnvelope",
    "CacheInfo",
    "CatalogCache",
    "CatalogClient",
    "CatalogEntry",
    "CatalogManager",
    "EntryValidation",
    "Fetcher",
    "create_entry",
    "parse_name",
    "parse_provider",
    "validate_entry",
]
