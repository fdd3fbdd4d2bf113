# -*- coding: utf-8 -*-
"""
Prometheus Metrics - GreenVisio meeting damage engine

All metric names use the ``gl_visio_`` prefix. Recording is a no-op when
``enable_metrics`` is off in the configuration.

Metrics:
    1. gl_visio_estimations_total              (Counter,   labels: status)
    2. gl_visio_components_total               (Counter,   labels: category)
    3. gl_visio_estimation_duration_seconds    (Histogram)
    4. gl_visio_reference_entries              (Gauge,     labels: table)

Label Values Reference:
    status:
        success, validation_error, not_found, failure.
    category:
        hardware, software, journey.
    table:
        hardware, software, transport.

Example:
    >>> from greenvisio.metrics import record_estimation, record_components
    >>> record_estimation("success", 0.004)
    >>> record_components("hardware", 3)
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, Histogram

from greenvisio.config import get_config

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Meeting damage estimations by outcome
visio_estimations_total = Counter(
    "gl_visio_estimations_total",
    "Total meeting damage estimations handled by the engine",
    labelnames=["status"],
)

# 2. Components (hardware, software, journeys) processed by category
visio_components_total = Counter(
    "gl_visio_components_total",
    "Total meeting components whose damage was computed",
    labelnames=["category"],
)

# 3. Estimation latency
visio_estimation_duration_seconds = Histogram(
    "gl_visio_estimation_duration_seconds",
    "Duration of meeting damage estimations in seconds",
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
)

# 4. Size of the loaded reference tables
visio_reference_entries = Gauge(
    "gl_visio_reference_entries",
    "Number of entries in each loaded reference table",
    labelnames=["table"],
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def _enabled() -> bool:
    return get_config().enable_metrics


def record_estimation(status: str, seconds: float) -> None:
    """Record one estimation outcome and its duration.

    Args:
        status: success, validation_error, not_found or failure.
        seconds: Wall-clock duration of the estimation.
    """
    if not _enabled():
        return
    visio_estimations_total.labels(status=status).inc()
    visio_estimation_duration_seconds.observe(seconds)


def record_components(category: str, count: int) -> None:
    """Count ``count`` computed components of ``category``."""
    if not _enabled() or count <= 0:
        return
    visio_components_total.labels(category=category).inc(count)


def set_reference_entries(table: str, count: int) -> None:
    if not _enabled():
        return
    visio_reference_entries.labels(table=table).set(count)


__all__ = [
    "visio_estimations_total",
    "visio_components_total",
    "visio_estimation_duration_seconds",
    "visio_reference_entries",
    "record_estimation",
    "record_components",
    "set_reference_entries",
]
