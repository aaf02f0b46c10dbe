"""Tests for the TTL-gated model cache."""

import json

import pytest

from synclaude.catalog.cache import CacheEnvelope, CatalogCache
from synclaude.catalog.entry import create_entry


@pytest.fixture
def entries():
    return [
        create_entry({"id": "openai:gpt-4", "owned_by": "openai"}),
        create_entry({"id": "hf:Qwen/Qwen3", "created": 1700000000}),
    ]


@pytest.fixture
def cache(tmp_path):
    return CatalogCache(tmp_path / "nested" / "models_cache.json", cache_duration_hours=24)


def test_missing_cache_is_invalid_and_empty(cache):
    assert cache.is_valid() is False
    assert cache.load() == []


def test_save_then_load(cache, entries):
    assert cache.save(entries) is True
    assert cache.is_valid() is True
    assert cache.load() == entries


def test_envelope_layout(cache, entries):
    cache.save(entries)
    payload = json.loads(cache.cache_file.read_text(encoding="utf-8"))
    assert payload["count"] == 2
    assert len(payload["entries"]) == 2
    assert payload["entries"][0] == {
        "id": "openai:gpt-4",
        "object": "model",
        "created": None,
        "owned_by": "openai",
    }
    assert isinstance(payload["timestamp"], str) and payload["timestamp"]


def test_is_valid_is_stable_within_ttl(cache, entries):
    cache.save(entries)
    assert cache.is_valid() == cache.is_valid()


def test_stale_cache_is_invalid(cache, entries, set_age):
    cache.save(entries)
    set_age(cache.cache_file, 25)
    assert cache.is_valid() is False
    assert cache.load() == []


def test_freshness_ignores_envelope_timestamp(cache, entries):
    cache.save(entries)
    payload = json.loads(cache.cache_file.read_text(encoding="utf-8"))
    payload["timestamp"] = "2000-01-01T00:00:00Z"
    cache.cache_file.write_text(json.dumps(payload), encoding="utf-8")
    assert cache.is_valid() is True
    assert len(cache.load()) == 2


def test_duration_controls_ttl(tmp_path, entries, set_age):
    short = CatalogCache(tmp_path / "cache.json", cache_duration_hours=1)
    short.save(entries)
    set_age(short.cache_file, 0.5)
    assert short.is_valid() is True
    set_age(short.cache_file, 1.5)
    assert short.is_valid() is False


def test_corrupt_cache_loads_empty_and_is_discarded(cache):
    cache.cache_file.parent.mkdir(parents=True)
    cache.cache_file.write_text("{not json", encoding="utf-8")
    assert cache.is_valid() is True
    assert cache.load() == []
    assert not cache.cache_file.exists()
    assert cache.is_valid() is False


def test_info_flags_damaged_cache(cache):
    cache.cache_file.parent.mkdir(parents=True)
    cache.cache_file.write_text("[1, 2]", encoding="utf-8")
    info = cache.info()
    assert info.exists is True
    assert info.entry_count == 0
    assert info.error
    assert cache.cache_file.exists()


def test_invalid_cached_entries_are_skipped(cache):
    cache.cache_file.parent.mkdir(parents=True)
    cache.cache_file.write_text(
        json.dumps({"entries": [{"id": "a:b"}, {"object": "model"}], "count": 2}),
        encoding="utf-8",
    )
    assert [entry.id for entry in cache.load()] == ["a:b"]


def test_legacy_models_key_is_read(cache):
    cache.cache_file.parent.mkdir(parents=True)
    cache.cache_file.write_text(
        json.dumps({"models": [{"id": "openai:gpt-4"}], "count": 1}), encoding="utf-8"
    )
    assert [entry.id for entry in cache.load()] == ["openai:gpt-4"]


def test_save_failure_returns_false(tmp_path, entries):
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    cache = CatalogCache(blocker / "models_cache.json")
    assert cache.save(entries) is False


def test_clear(cache, entries):
    cache.save(entries)
    assert cache.clear() is True
    assert not cache.cache_file.exists()
    assert cache.clear() is False


def test_info_for_missing_file(cache):
    info = cache.info()
    assert info.exists is False
    assert info.error
    assert info.entry_count is None


def test_info_for_existing_file(cache, entries, set_age):
    cache.save(entries)
    info = cache.info()
    assert info.exists is True
    assert info.file_path == str(cache.cache_file)
    assert info.entry_count == 2
    assert info.size_bytes == cache.cache_file.stat().st_size
    assert info.is_valid is True
    assert info.modified_time and info.modified_time.endswith("Z")

    set_age(cache.cache_file, 48)
    stale = cache.info()
    assert stale.is_valid is False
    assert stale.entry_count == 2


def test_envelope_wrap_counts_entries(entries):
    envelope = CacheEnvelope.wrap(entries)
    assert envelope.count == len(envelope.entries) == 2
