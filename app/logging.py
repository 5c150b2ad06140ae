from __future__ import annotations

import logging
import os
from typing import Any

import structlog

# Processors applied to structlog events and to records from stdlib loggers.
_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.format_exc_info,
]

# Libraries that log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def _log_level() -> int:
    return getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def _log_format(explicit: str | None) -> str:
    if explicit:
        return explicit.lower()
    if "LOG_FORMAT" in os.environ:
        return os.environ["LOG_FORMAT"].lower()
    return "console" if os.getenv("APP_ENV") == "dev" else "json"


def _handlers(log_file: str | os.PathLike | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        directory = os.path.dirname(os.fspath(log_file))
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(os.fspath(log_file), encoding="utf-8"))
    return handlers


def setup_logging(
    log_file: str | os.PathLike | None = None, *, log_format: str | None = None
) -> None:
    """Route structlog and stdlib logging through one formatter.

    Output is JSON lines unless ``log_format``/``LOG_FORMAT`` says
    ``console`` (also the default under ``APP_ENV=dev``). Contextvars such as
    ``request_id`` are merged into every line. ``log_file`` adds a second
    handler, which the import command uses for its run log.
    """

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if _log_format(log_format) == "console"
        else structlog.processors.JSONRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    handlers = _handlers(log_file)
    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=_log_level(), handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

