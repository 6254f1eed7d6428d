"""Logging utilities for TextAssist.

Modules log through one shared logger with a ``[tag]`` prefix and pass
context as ``extra={...}``. The console shows ``TEXTASSIST_LOG_LEVEL`` and
above; ``--log-dir`` adds a debug-level file that keeps the ``extra`` fields.
"""

import json
import logging
import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional


LOG_LEVEL_ENV = "TEXTASSIST_LOG_LEVEL"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


def _console_level() -> int:
    level = logging.getLevelName(os.getenv(LOG_LEVEL_ENV, "WARNING").strip().upper())
    return level if isinstance(level, int) else logging.WARNING


class StructuredFormatter(logging.Formatter):
    """UTC ISO timestamps, with ``extra`` fields appended as sorted JSON."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_FIELDS and not key.startswith("_")
        }
        if not context:
            return message
        return f"{message} | {json.dumps(context, sort_keys=True, default=str)}"


class TextAssistLogger:
    """Thin wrapper over a stdlib logger with an optional daily log file."""

    def __init__(self, name: str = "textassist", log_dir: Optional[Path] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        if not self.logger.handlers:
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(_console_level())
            console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
            self.logger.addHandler(console)

        self._file_handler: Optional[logging.FileHandler] = None
        if log_dir:
            self.attach_file_handler(Path(log_dir) / f"textassist_{date.today():%Y%m%d}.log")

    def attach_file_handler(self, log_file: Path) -> Path:
        """Send debug-level records to ``log_file``, replacing any earlier file."""
        if self._file_handler and self._file_handler.baseFilename == os.path.abspath(log_file):
            return log_file

        log_file.parent.mkdir(parents=True, exist_ok=True)
        if self._file_handler:
            self.logger.removeHandler(self._file_handler)
            self._file_handler.close()

        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(StructuredFormatter("%(asctime)s [%(levelname)s] %(message)s"))
        self.logger.addHandler(handler)
        self._file_handler = handler
        return log_file

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.error(message, *args, **kwargs)


_logger: Optional[TextAssistLogger] = None


def get_logger() -> TextAssistLogger:
    """Return the shared logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = TextAssistLogger()
    return _logger


def init_logger(log_dir: Optional[Path] = None) -> TextAssistLogger:
    """Recreate the shared logger, optionally writing to ``log_dir``."""
    global _logger
    _logger = TextAssistLogger(log_dir=log_dir)
    return _logger
