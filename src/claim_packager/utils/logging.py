# ============================================================================
# src/claim_packager/utils/logging.py
# ============================================================================
"""
Logging configuration and utilities for the claim packager.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional
from datetime import datetime, timezone
import json

from .exceptions import ConfigurationError


# Record attributes that are part of every LogRecord, not user extras
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Libraries that log per page/per chunk at DEBUG and INFO
_NOISY_LOGGERS = ("pypdf", "PIL")

_TEXT_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def resolve_level(level: str) -> int:
    """
    Map a level name to its logging constant.

    Raises:
        ConfigurationError: unknown level name
    """
    name = str(level).strip().upper()
    if name not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level '{level}' (expected one of {', '.join(LOG_LEVELS)})"
        )
    return logging.getLevelName(name)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_json: bool = False
) -> None:
    """
    Route run output to the console and, optionally, the run log.

    The run log is appended to, so successive runs over the same patients
    folder accumulate in one file.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Run log path (parent folders are created)
        format_json: One JSON object per line instead of plain text

    Raises:
        ConfigurationError: unknown level name
    """
    root_level = resolve_level(level)
    formatter = JsonFormatter() if format_json else logging.Formatter(
        _TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='a', encoding='utf-8'))

    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        extra = {
            key: value for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS
        }
        if extra:
            log_data['extra'] = extra

        return json.dumps(log_data, default=str)


class CaseLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter for one patient case.

    Prefixes every message with the patient folder name and attaches
    the visit number as a structured extra.
    """

    def __init__(self, logger: logging.Logger, display_name: str, visit_number: str = ""):
        super().__init__(logger, {
            'patient_folder': display_name,
            'visit_number': visit_number,
        })

    def process(self, msg, kwargs):
        if 'extra' not in kwargs:
            kwargs['extra'] = {}

        kwargs['extra'].update(self.extra)

        return f"{self.extra['patient_folder']}: {msg}", kwargs
