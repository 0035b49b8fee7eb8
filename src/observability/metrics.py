"""Prometheus metrics for notification delivery."""

from __future__ import annotations

import os
import threading
from typing import Final

from prometheus_client import Counter, Histogram, start_http_server

from src.config.logging_config import get_logger

logger = get_logger(__name__)

DECISIONS_TOTAL: Final[Counter] = Counter(
    "notification_decisions_total",
    "Mute decisions resolved from IM history",
    labelnames=("decision",),
)

DISPATCH_TOTAL: Final[Counter] = Counter(
    "notification_dispatch_total",
    "Notification attempts by terminal outcome",
    labelnames=("outcome",),
)

HISTORY_PAGES_PER_DECISION: Final[Histogram] = Histogram(
    "notification_history_pages_fetched",
    "History pages fetched to reach one mute decision",
    buckets=(1, 2, 3, 5, 10, 25, 50),
)

_EXPORTER_LOCK = threading.Lock()
_EXPORTER_STARTED = False
_DEFAULT_METRICS_PORT: Final[int] = 9000
_METRICS_PORT_ENV: Final[str] = "METRICS_PORT"


def _resolve_metrics_port() -> int:
    port_raw = os.getenv(_METRICS_PORT_ENV)
    try:
        return int(port_raw) if port_raw else _DEFAULT_METRICS_PORT
    except ValueError:
        logger.warning("invalid_metrics_port", port=port_raw)
        return _DEFAULT_METRICS_PORT


def ensure_metrics_exporter() -> None:
    """Start Prometheus HTTP exporter once per process."""

    global _EXPORTER_STARTED
    with _EXPORTER_LOCK:
        if _EXPORTER_STARTED:
            return

        port = _resolve_metrics_port()

        try:
            start_http_server(port)
        except OSError as exc:
            logger.error(
                "metrics_exporter_start_failed",
                port=port,
                error=str(exc),
            )
            raise

        _EXPORTER_STARTED = True
        logger.info("metrics_exporter_started", port=port)


__all__ = [
    "DECISIONS_TOTAL",
    "DISPATCH_TOTAL",
    "HISTORY_PAGES_PER_DECISION",
    "ensure_metrics_exporter",
]
