"""Observability module for versionchain.

Structured logging (structlog) and in-process Prometheus-style counters.

Example:
    >>> from versionchain.observability import get_logger, get_metrics
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("versionchain.version.registered", version="v2")
    >>>
    >>> metrics = get_metrics()
    >>> metrics.increment_counter("versionchain_overrides_total", {"version": "v2"})
"""

from versionchain.observability.logging import (
    bind_api_version,
    configure_logging,
    get_logger,
)
from versionchain.observability.metrics import (
    CounterSpec,
    MetricsCollector,
    get_metrics,
    reset_metrics,
)

__all__ = [
    "CounterSpec",
    "MetricsCollector",
    "bind_api_version",
    "configure_logging",
    "get_logger",
    "get_metrics",
    "reset_metrics",
]
