"""Logging setup for the storefront.

Records go through the standard library root logger; structlog builds the
event dicts. Checkout binds ``session_id`` and ``order_number`` with
``add_context`` so a whole checkout can be followed across modules. Payment
details handed to gateways are masked before anything is rendered.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

MAIN_LOG = "storefront.log"
ERROR_LOG = "storefront_error.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

LEVEL_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Event keys whose values never reach a log file
SECRET_KEYS = frozenset({"payment_data", "card_token", "token", "api_key", "client_secret", "authorization"})
MASK = "***"

QUIET_LOGGERS = ("urllib3", "protean", "uvicorn.access")


def _environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """``LOG_LEVEL`` if set, otherwise a level chosen by environment."""
    return os.getenv("LOG_LEVEL", LEVEL_BY_ENV.get(_environment(), "INFO"))


def redact_payment_secrets(_logger: Any, _method: str, event_dict: dict) -> dict:
    """structlog processor masking gateway credentials and payment tokens."""
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key] is not None:
            event_dict[key] = MASK
    return event_dict


def _rotating(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def _install_handlers(log_dir: Path, level: str) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    # Reconciliation alerts are logged at CRITICAL and so also land in the error log
    root.handlers = [console, _rotating(log_dir / MAIN_LOG, level), _rotating(log_dir / ERROR_LOG, logging.ERROR)]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _renderer(machine_readable: bool):
    if machine_readable:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
    )


def _install_structlog(machine_readable: bool) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            redact_payment_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(machine_readable),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | Path | None = None) -> None:
    """Install handlers under ``log_dir`` (default ``$LOG_DIR`` or ``logs``) and configure structlog.

    Production and staging render JSON lines; other environments get the
    rich console renderer.
    """
    _install_handlers(Path(log_dir or os.getenv("LOG_DIR", "logs")), get_log_level())
    _install_structlog(machine_readable=_environment() in ("production", "staging"))


def add_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context(*keys: str) -> None:
    """Unbind the given keys, or every bound key when none are given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()
