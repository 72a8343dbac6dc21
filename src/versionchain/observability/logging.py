"""Structured logging for versionchain.

Events are named ``versionchain.<area>.<what>`` and carry the version tag
they concern as a keyword. Inside a request, the negotiated version is
bound once with bind_api_version() and then appears on every event as
``api_version``.

Environment Variables:
    VERSIONCHAIN_LOG_FORMAT: "console" (default) or "json"
    VERSIONCHAIN_LOG_LEVEL: DEBUG, INFO (default), WARNING, ERROR
    VERSIONCHAIN_SERVICE_NAME: Value of the ``service`` key (default: versionchain)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

import structlog
from structlog.typing import Processor

ENV_LOG_FORMAT = "VERSIONCHAIN_LOG_FORMAT"
ENV_LOG_LEVEL = "VERSIONCHAIN_LOG_LEVEL"
ENV_SERVICE_NAME = "VERSIONCHAIN_SERVICE_NAME"

LOG_FORMATS = ("console", "json")

_handler: logging.Handler | None = None


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    raise ValueError(f"Unknown log format {log_format!r}; expected one of {LOG_FORMATS}")


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    *,
    stream: IO[str] | None = None,
    force: bool = False,
) -> None:
    """Route versionchain's structlog events through one stdlib handler.

    Unset arguments fall back to the VERSIONCHAIN_* variables. Only the
    handler installed here is replaced on reconfiguration; other handlers
    on the root logger are left alone.

    Raises:
        ValueError: If log_format is neither "console" nor "json".
    """
    global _handler

    if _handler is not None and not force:
        return

    log_format = (log_format or os.environ.get(ENV_LOG_FORMAT, "console")).lower()
    level_name = (log_level or os.environ.get(ENV_LOG_LEVEL, "INFO")).upper()
    service_name = service_name or os.environ.get(ENV_SERVICE_NAME, "versionchain")
    renderer = _renderer(log_format)

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(level_name, logging.INFO))
    _handler = handler

    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a logger, configuring logging from the environment on first use."""
    if _handler is None:
        configure_logging()
    return structlog.stdlib.get_logger(name)


def bind_api_version(version: str) -> None:
    """Tag later events in the current context with ``api_version``."""
    structlog.contextvars.bind_contextvars(api_version=version)
