"""Centralized logging configuration with JSON-formatted extras."""

import json
import logging
import sys
from typing import Any

ROOT_LOGGER_NAME = "newsroom"

# Extras that tie a line to one article run; always printed first
CORRELATION_KEYS = ("article_id", "run_id", "step", "step_name")
# Source texts and prompts can run to thousands of characters
MAX_EXTRA_TEXT_LENGTH = 300


def _clip(value: Any) -> Any:
    if isinstance(value, str) and len(value) > MAX_EXTRA_TEXT_LENGTH:
        return f"{value[:MAX_EXTRA_TEXT_LENGTH]}... [{len(value)} chars]"
    return value


class JSONExtrasFormatter(logging.Formatter):
    """Formatter that outputs a readable log line with extras as JSON.

    Output format:
        2024-01-15 10:30:45 | INFO     | newsroom.module | Message {"article_id": "...", "run_id": "..."}

    Article and run identifiers lead the JSON so lines from concurrent runs
    can be grepped apart; long text values are clipped.
    """

    RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
        "asctime",
        "message",
        "taskName",
    }

    def _extras(self, record: logging.LogRecord) -> dict[str, Any]:
        raw = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.RESERVED_ATTRS and not key.startswith("_")
        }
        extras = {key: raw[key] for key in CORRELATION_KEYS if raw.get(key) is not None}
        extras.update((key, value) for key, value in raw.items() if key not in CORRELATION_KEYS)
        return {key: _clip(value) for key, value in extras.items()}

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        timestamp = self.formatTime(record, self.datefmt)
        line = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.message}"

        extras = self._extras(record)
        if extras:
            try:
                line = f"{line} {json.dumps(extras, default=str, ensure_ascii=False)}"
            except (TypeError, ValueError):
                pass

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"

        return line


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the 'newsroom' logger with console output and JSON extras."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONExtrasFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    # Avoid duplicate lines through the root logger
    logger.propagate = False
