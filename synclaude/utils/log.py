"""Logging utilities for Synclaude.

Console output goes to stderr at ``SYNCLAUDE_LOG_LEVEL`` (default WARNING).
An optional file handler records everything at DEBUG, with ``extra=``
fields appended as JSON.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _level_from_env(default: int = logging.WARNING) -> int:
    level = logging.getLevelName(os.getenv("SYNCLAUDE_LOG_LEVEL", "").strip().upper())
    return level if isinstance(level, int) else default


class StructuredFormatter(logging.Formatter):
    """UTC millisecond timestamps, with record extras serialized after ``|``."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if not context:
            return message
        try:
            rendered = json.dumps(context, sort_keys=True, ensure_ascii=True, default=str)
        except (TypeError, ValueError):
            rendered = str(context)
        return f"{message} | {rendered}"


class SynclaudeLogger(logging.LoggerAdapter):
    """Adapter over the ``synclaude`` logger that owns its console and file handlers."""

    def __init__(self, name: str = "synclaude"):
        base = logging.getLogger(name)
        base.setLevel(logging.DEBUG)
        base.propagate = False
        super().__init__(base, {})

        self._console_handler = next(
            (
                handler
                for handler in base.handlers
                if type(handler) is logging.StreamHandler
            ),
            None,
        )
        if self._console_handler is None:
            self._console_handler = logging.StreamHandler(sys.stderr)
            self._console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            base.addHandler(self._console_handler)
        self._console_handler.setLevel(_level_from_env())

        self._file_handler: Optional[logging.FileHandler] = None

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        # Keep the caller's ``extra`` instead of the adapter's empty mapping.
        return msg, kwargs

    def attach_file_handler(self, log_file: Path) -> Path:
        """Send DEBUG and above to ``log_file``, replacing any earlier file handler."""
        log_file = Path(log_file)
        if self._file_handler is not None:
            if Path(self._file_handler.baseFilename) == log_file.resolve():
                return log_file
            self.logger.removeHandler(self._file_handler)
            self._file_handler.close()

        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(StructuredFormatter(FILE_FORMAT))
        self.logger.addHandler(handler)
        self._file_handler = handler
        return log_file

    def set_console_level(self, verbose: bool = False, quiet: bool = False) -> None:
        """Adjust console verbosity; quiet wins over verbose."""
        if quiet:
            self._console_handler.setLevel(logging.ERROR)
        elif verbose:
            self._console_handler.setLevel(logging.DEBUG)


_logger: Optional[SynclaudeLogger] = None


def get_logger() -> SynclaudeLogger:
    """Return the process-wide logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = SynclaudeLogger()
    return _logger
