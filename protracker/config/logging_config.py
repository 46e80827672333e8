"""Logging setup for the ProTracker CLI.

Log lines go to stderr, and also to ``LOG_FILE`` when it is set, in the
standard text layout or as one JSON object per line.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from protracker.utils.logging_utils import _ContextFilter

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_FORMATS = ("standard", "json")

# Attributes every LogRecord has; anything else came from LogContext or extra={}
_RECORD_FIELDS = set(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with context fields as top level keys.

    Values that are not JSON types (Decimal, date) are rendered with ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                log_data[key] = value
        return json.dumps(log_data, default=str)


@dataclass
class LoggingConfig:
    """
    Where and how the CLI logs.

    Attributes:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: 'standard' or 'json'
        log_file: Also append log lines to this file when set
    """

    log_level: str = "INFO"
    log_format: str = "standard"
    log_file: Optional[str] = None

    def __post_init__(self):
        """
        Raises:
            ValueError: If the level or format is unknown
        """
        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of {', '.join(VALID_LEVELS)}"
            )
        if self.log_format not in VALID_FORMATS:
            raise ValueError(
                f"Invalid log format: {self.log_format}. "
                f"Must be one of {', '.join(VALID_FORMATS)}"
            )

    @classmethod
    def from_env(cls, default_level: str = "INFO") -> "LoggingConfig":
        """
        Create configuration from environment variables.

        Environment Variables:
            LOG_LEVEL: Log level (default: ``default_level``)
            LOG_FORMAT: standard or json (default: standard)
            LOG_FILE: Log file path (default: none)
        """
        return cls(
            log_level=os.getenv("LOG_LEVEL", default_level),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            log_file=os.getenv("LOG_FILE") or None,
        )


def configure_logging(config: LoggingConfig) -> None:
    """
    Install handlers on the root logger according to ``config``.

    Existing root handlers are removed first, so calling this twice does not
    duplicate output.
    """
    reset_logging()
    root_logger = logging.getLogger()
    root_logger.setLevel(config.log_level)

    if config.log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handlers = [logging.StreamHandler()]
    if config.log_file:
        Path(config.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

    context_filter = _ContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)


def reset_logging() -> None:
    """Remove all root handlers and restore the default WARNING level."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.WARNING)
