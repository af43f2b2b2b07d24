"""Logging setup for facegrid.

Standard output belongs to the in-place progress renderer, so log records
always go to stderr (and optionally a file).  The CLI keeps the console
quiet (WARNING) unless ``--verbose`` is given.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "facegrid"
DEFAULT_FORMAT = "%(levelname)-5s | %(name)-18s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-18s | %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        filename = getattr(record, "artifact", None)
        if filename:
            payload["artifact"] = filename
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _make_formatter(fmt: str, json_logs: bool) -> logging.Formatter:
    return JsonFormatter() if json_logs else logging.Formatter(fmt)


def setup_logging(
    level: int = logging.WARNING,
    verbose: bool = False,
    log_file: str | os.PathLike[str] | None = None,
    json_logs: bool = False,
) -> logging.Logger:
    """Configure the ``facegrid`` logger.

    Safe to call repeatedly: the stderr handler and any handler for the
    same *log_file* are reused rather than duplicated.

    Args:
        level: Threshold for the ``facegrid`` logger.
        verbose: Include timestamps in console output.
        log_file: Also append records to this file (always timestamped).
        json_logs: Emit JSON lines instead of text.

    Returns:
        The configured ``facegrid`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    console = None
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            continue
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr:
            if console is None:
                console = handler
            else:
                logger.removeHandler(handler)
    if console is None:
        console = logging.StreamHandler(sys.stderr)
        logger.addHandler(console)
    console.setFormatter(
        _make_formatter(VERBOSE_FORMAT if verbose else DEFAULT_FORMAT, json_logs)
    )

    if log_file is not None:
        target = os.path.abspath(os.fspath(log_file))
        file_handler = next(
            (
                h
                for h in logger.handlers
                if isinstance(h, logging.FileHandler) and h.baseFilename == target
            ),
            None,
        )
        if file_handler is None:
            file_handler = logging.FileHandler(target, encoding="utf-8")
            logger.addHandler(file_handler)
        file_handler.setFormatter(_make_formatter(VERBOSE_FORMAT, json_logs))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``facegrid.<name>`` logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
