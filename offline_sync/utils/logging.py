"""
Logging setup for offline-sync.

Reconciliation passes report their progress through `extra=` fields
(`attempted`, `synced`, `page`, `offset`, `inserted`, `db_path`...). On the
console those stay out of the line; with `JSON_LOGS=true` every field becomes a
key of the JSON object, so a device running `offline-sync watch` can ship its
sync history to a log collector unchanged.

Usage:
    from offline_sync.utils.logging import configure_logging, get_logger

    configure_logging()  # LOG_LEVEL / JSON_LOGS from settings
    log = get_logger(__name__)
    log.info("Push complete", extra={"attempted": 12, "synced": 12})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

from offline_sync.config import get_settings

# Attributes every LogRecord carries; anything else was passed through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}

# Third-party loggers too chatty for a device that retries on every tick.
QUIET_LOGGERS = ("psycopg.pool",)


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record, with its `extra=` fields, as one JSON object."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            payload[key] = value
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    if hasattr(record, "extra") and isinstance(record.extra, dict):
        payload.update(record.extra)
    # Paths, datetimes and Decimals from the stores render as strings.
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    force: bool = True,
) -> None:
    """
    Configure root logging for the CLI, the scheduler and the seed script.

    Parameters
    ----------
    level : str, optional
        Root level name. Defaults to `settings.log_level` (`LOG_LEVEL`).
    json_logs : bool, optional
        Emit one JSON object per record. Defaults to `settings.json_logs`
        (`JSON_LOGS`).
    force : bool
        Replace an existing configuration. With False, a process that already
        has root handlers (an embedding host application) keeps them.
    """
    if not force and logging.getLogger().handlers:
        return

    if level is None or json_logs is None:
        settings = get_settings()
        level = settings.log_level if level is None else level
        json_logs = settings.json_logs if json_logs is None else json_logs

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level,
                }
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["QUIET_LOGGERS", "configure_logging", "get_logger", "JsonFormatter"]
