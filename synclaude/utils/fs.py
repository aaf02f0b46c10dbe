"""Filesystem helpers that classify failures instead of hiding them."""

from __future__ import annotations

import time
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from synclaude.utils.log import get_logger


logger = get_logger()

SECONDS_PER_HOUR = 3600


class FileState(str, Enum):
    """Outcome of reading a persisted file."""

    OK = "ok"
    MISSING = "missing"
    UNREADABLE = "unreadable"
    MALFORMED = "malformed"


def read_text_classified(path: Path) -> Tuple[FileState, Optional[str]]:
    """Read a UTF-8 file, telling an absent file apart from an unreadable one.

    Bytes that are not valid UTF-8 yield MALFORMED with the text decoded
    using replacement characters, so callers can still inspect it.
    """
    try:
        raw_bytes = path.read_bytes()
    except FileNotFoundError:
        return FileState.MISSING, None
    except OSError as exc:
        logger.warning(
            "[fs] Failed to read %s: %s: %s",
            path,
            type(exc).__name__,
            exc,
            extra={"path": str(path)},
        )
        return FileState.UNREADABLE, None

    try:
        return FileState.OK, raw_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning(
            "[fs] File is not valid UTF-8: %s: %s",
            path,
            exc,
            extra={"path": str(path)},
        )
        return FileState.MALFORMED, raw_bytes.decode("utf-8", errors="replace")


def file_age_seconds(path: Path, now: Optional[float] = None) -> Optional[float]:
    """Seconds since the file was last modified, or None when it cannot be stat'ed."""
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return None
    current = time.time() if now is None else now
    return current - mtime


def is_file_fresh(path: Path, duration_hours: int, now: Optional[float] = None) -> bool:
    """True when the file exists and is younger than ``duration_hours``."""
    age = file_age_seconds(path, now=now)
    if age is None:
        return False
    return age < duration_hours * SECONDS_PER_HOUR
