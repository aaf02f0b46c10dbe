"""Tests for utility modules.

Tests cover:
- coerce.py: Type coercion functions
- json_utils.py: JSON parsing and atomic writes
- fs.py: File classification and freshness
- log.py: Structured log formatting
"""

import json
import logging
import os
from pathlib import Path

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# coerce.py Tests
# ─────────────────────────────────────────────────────────────────────────────


from synclaude.utils.coerce import coerce_to_annotation, parse_boolish, parse_optional_int


class TestParseBoolish:
    """Tests for parse_boolish function."""

    def test_none_returns_default(self):
        assert parse_boolish(None) is False
        assert parse_boolish(None, default=True) is True

    def test_string_values(self):
        assert parse_boolish("TRUE") is True
        assert parse_boolish(" yes ") is True
        assert parse_boolish("off") is False
        assert parse_boolish("0") is False

    def test_unknown_string_returns_default(self):
        assert parse_boolish("maybe") is False
        assert parse_boolish("maybe", default=None) is None


class TestParseOptionalInt:
    """Tests for parse_optional_int function."""

    def test_string_int(self):
        assert parse_optional_int(" 42 ") == 42
        assert parse_optional_int("-10") == -10

    def test_invalid_returns_none(self):
        assert parse_optional_int("abc") is None
        assert parse_optional_int("12.5") is None
        assert parse_optional_int(None) is None
        assert parse_optional_int(True) is None


class TestCoerceToAnnotation:
    """Tests for coerce_to_annotation function."""

    def test_bool_int_and_str(self):
        assert coerce_to_annotation("on", bool) is True
        assert coerce_to_annotation("12", int) == 12
        assert coerce_to_annotation("12", str) == "12"

    def test_mismatch_raises(self):
        with pytest.raises(ValueError):
            coerce_to_annotation("sometimes", bool)
        with pytest.raises(ValueError):
            coerce_to_annotation("twelve", int)


# ─────────────────────────────────────────────────────────────────────────────
# json_utils.py Tests
# ─────────────────────────────────────────────────────────────────────────────


from synclaude.utils.json_utils import safe_parse_json, write_json_atomic


class TestSafeParseJson:
    """Tests for safe_parse_json function."""

    def test_valid_json(self):
        assert safe_parse_json('{"key": "value"}') == {"key": "value"}

    def test_invalid_json_returns_none(self):
        assert safe_parse_json("{broken") is None
        assert safe_parse_json("{broken", log_error=False) is None

    def test_empty_input_returns_none(self):
        assert safe_parse_json("") is None
        assert safe_parse_json(None) is None


class TestWriteJsonAtomic:
    """Tests for write_json_atomic function."""

    def test_writes_and_replaces(self, tmp_path):
        target = tmp_path / "data.json"
        write_json_atomic(target, {"a": 1})
        write_json_atomic(target, {"a": 2})
        assert json.loads(target.read_text(encoding="utf-8")) == {"a": 2}

    def test_leaves_no_temp_files(self, tmp_path):
        write_json_atomic(tmp_path / "data.json", [1, 2, 3])
        assert sorted(p.name for p in tmp_path.iterdir()) == ["data.json"]

    def test_failed_write_keeps_previous_file(self, tmp_path):
        target = tmp_path / "data.json"
        write_json_atomic(target, {"a": 1})
        with pytest.raises(TypeError):
            write_json_atomic(target, {"a": object()})
        assert json.loads(target.read_text(encoding="utf-8")) == {"a": 1}


# ─────────────────────────────────────────────────────────────────────────────
# fs.py Tests
# ─────────────────────────────────────────────────────────────────────────────


from synclaude.utils.fs import FileState, file_age_seconds, is_file_fresh, read_text_classified


class TestReadTextClassified:
    """Tests for read_text_classified function."""

    def test_missing_file(self, tmp_path):
        assert read_text_classified(tmp_path / "nope.json") == (FileState.MISSING, None)

    def test_existing_file(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("hello", encoding="utf-8")
        assert read_text_classified(path) == (FileState.OK, "hello")

    def test_directory_is_unreadable(self, tmp_path):
        state, text = read_text_classified(tmp_path)
        assert state is FileState.UNREADABLE
        assert text is None

    def test_invalid_utf8_is_malformed_with_replaced_text(self, tmp_path):
        path = tmp_path / "bin.dat"
        path.write_bytes(b"ok\xff")
        assert read_text_classified(path) == (FileState.MALFORMED, "ok\ufffd")


class TestFreshness:
    """Tests for file age helpers."""

    def test_missing_file_has_no_age(self, tmp_path):
        assert file_age_seconds(tmp_path / "nope") is None
        assert is_file_fresh(tmp_path / "nope", 24) is False

    def test_age_against_fixed_clock(self, tmp_path):
        path = tmp_path / "f"
        path.write_text("x", encoding="utf-8")
        os.utime(path, (1_000_000, 1_000_000))
        assert file_age_seconds(path, now=1_003_600) == pytest.approx(3600)
        assert is_file_fresh(path, 2, now=1_003_600) is True
        assert is_file_fresh(path, 1, now=1_003_600) is False


# ─────────────────────────────────────────────────────────────────────────────
# log.py Tests
# ─────────────────────────────────────────────────────────────────────────────


from synclaude.utils.log import StructuredFormatter, SynclaudeLogger, get_logger


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_extras_are_appended_as_json(self):
        formatter = StructuredFormatter("%(message)s")
        record = logging.LogRecord("synclaude", logging.INFO, __file__, 1, "hello", (), None)
        record.path = "/tmp/x"
        assert formatter.format(record) == 'hello | {"path": "/tmp/x"}'

    def test_plain_message_without_extras(self):
        formatter = StructuredFormatter("%(message)s")
        record = logging.LogRecord("synclaude", logging.INFO, __file__, 1, "plain", (), None)
        assert formatter.format(record) == "plain"


def test_file_handler_captures_debug(tmp_path: Path):
    logger = get_logger()
    log_file = logger.attach_file_handler(tmp_path / "logs" / "synclaude.log")
    logger.debug("[test] hello", extra={"count": 3})
    for handler in logger.logger.handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "[test] hello" in text
    assert '"count": 3' in text


def test_console_level_follows_environment(monkeypatch):
    monkeypatch.setenv("SYNCLAUDE_LOG_LEVEL", "debug")
    logger = SynclaudeLogger("synclaude.test.env")
    assert logger._console_handler.level == logging.DEBUG

    monkeypatch.setenv("SYNCLAUDE_LOG_LEVEL", "nonsense")
    assert SynclaudeLogger("synclaude.test.env")._console_handler.level == logging.WARNING


def test_quiet_wins_over_verbose():
    logger = SynclaudeLogger("synclaude.test.quiet")
    logger.set_console_level(verbose=True, quiet=True)
    assert logger._console_handler.level == logging.ERROR
