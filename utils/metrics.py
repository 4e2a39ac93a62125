# utils/metrics.py
from prometheus_client import start_http_server, Counter, Histogram, Gauge
from contextlib import contextmanager
import time
import threading

import logging
from typing import Mapping, Optional

from config.settings import SETTINGS

_logger = logging.getLogger("metrics")

_started = False
_lock = threading.Lock()

_METRIC_LABELS = ("run_id",)
_DEFAULT_LABELS = {
    "run_id": SETTINGS.run_id or "bootstrap",
}

evaluation_latency = Histogram(
    "adaptation_evaluation_latency_seconds",
    "Latency of one adaptation cycle",
    _METRIC_LABELS,
)
evaluations_total = Counter(
    "adaptation_evaluations_total",
    "Adaptation cycles evaluated",
    _METRIC_LABELS,
)
evaluation_errors_total = Counter(
    "adaptation_evaluation_errors_total",
    "Adaptation cycles that raised",
    _METRIC_LABELS,
)
catalog_mismatch_total = Counter(
    "meditation_catalog_mismatch_total",
    "Meditation picks with no catalog entry for the target energy type",
    ("energy_type", *_METRIC_LABELS),
)
emotional_state_total = Counter(
    "emotional_state_total",
    "Emotional state classifications",
    ("state", *_METRIC_LABELS),
)
insights_emitted_total = Counter(
    "insights_emitted_total",
    "Insight messages produced, by type",
    ("type", *_METRIC_LABELS),
)
adaptation_score_gauge = Gauge(
    "adaptation_score_gauge",
    "Running adaptation score after the last cycle",
    _METRIC_LABELS,
)
biometric_score_gauge = Gauge(
    "biometric_score_gauge",
    "Rule-based biometric alignment score of the last snapshot",
    _METRIC_LABELS,
)


def init_metrics(port: Optional[int] = None):
    """Expose /metrics only once."""
    global _started
    if _started:
        return
    with _lock:
        if not _started:
            effective_port = port if port is not None else SETTINGS.metrics.port
            start_http_server(effective_port)
            _started = True
            # Pre-warm samples so they exist with default values
            try:
                evaluations_total.labels(**_DEFAULT_LABELS).inc(0)
                evaluation_errors_total.labels(**_DEFAULT_LABELS).inc(0)
                adaptation_score_gauge.labels(**_DEFAULT_LABELS).set(0.0)
                biometric_score_gauge.labels(**_DEFAULT_LABELS).set(0.0)
            except Exception:
                _logger.exception("init_metrics: failed to initialize default samples")


@contextmanager
def timeit(histogram, labels: Mapping[str, str]):
    """Record the duration of the block in the histogram with the provided labels."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def inc_counter(counter, labels: Mapping[str, str], amount: float = 1.0):
    counter.labels(**labels).inc(amount)


def set_gauge(gauge, labels: Mapping[str, str], value: float):
    gauge.labels(**labels).set(value)
