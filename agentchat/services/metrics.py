"""CloudWatch custom metrics for outbound calls.

Every external dependency the gateway talks to (completion API, embeddings
and vector store, agent LLM, tool APIs) is wrapped in ``metrics.track``,
which records a request count, the latency and, on failure, the exception
type.  Data points are buffered in memory and pushed by a daemon thread
every ``FLUSH_INTERVAL_SECONDS`` when ``METRICS_ENABLED=true``; otherwise
they are only logged at DEBUG.

>>> from agentchat.services.metrics import metrics
>>> with metrics.track("supabase", "similarity_search"):
...     store.nearest("query")
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "AgentChat"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # PutMetricData limit


class MetricsClient:
    """Buffers metric data points and ships them to CloudWatch in batches."""

    def __init__(self, enabled: bool | None = None) -> None:
        if enabled is None:
            enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self._enabled = enabled
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None

        if self._enabled:
            self._start_flush_thread()

    def record(
        self,
        service: str,
        operation: str,
        *,
        latency_ms: float,
        error_type: str | None = None,
    ) -> None:
        """Record one call to *service*; a non-``None`` *error_type* marks it failed."""
        now = datetime.now(UTC)
        status = "failure" if error_type else "success"
        service_dim = {"Name": "Service", "Value": service}
        points = [
            {
                "MetricName": "ExternalAPI/RequestCount",
                "Dimensions": [service_dim, {"Name": "Status", "Value": status}],
                "Timestamp": now,
                "Value": 1,
                "Unit": "Count",
            },
            {
                "MetricName": "ExternalAPI/Latency",
                "Dimensions": [service_dim, {"Name": "Operation", "Value": operation}],
                "Timestamp": now,
                "Value": latency_ms,
                "Unit": "Milliseconds",
            },
        ]
        if error_type:
            points.append(
                {
                    "MetricName": "ExternalAPI/ErrorCount",
                    "Dimensions": [service_dim, {"Name": "ErrorType", "Value": error_type}],
                    "Timestamp": now,
                    "Value": 1,
                    "Unit": "Count",
                }
            )
        with self._lock:
            self._buffer.extend(points)
        logger.debug(
            "Metric: %s %s %s latency=%.1fms", service, operation, status, latency_ms,
        )

    @contextmanager
    def track(self, service: str, operation: str) -> Iterator[None]:
        """Time the enclosed block and record it; exceptions are re-raised."""
        t0 = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.record(
                service, operation,
                latency_ms=(time.perf_counter() - t0) * 1000,
                error_type=type(exc).__name__,
            )
            raise
        self.record(service, operation, latency_ms=(time.perf_counter() - t0) * 1000)

    def flush(self) -> int:
        """Send buffered metrics to CloudWatch.  Returns the number sent."""
        with self._lock:
            batch = self._buffer[:]
            self._buffer.clear()

        if not batch or not self._enabled:
            return 0

        sent = 0
        try:
            if self._cw_client is None:
                import boto3  # noqa: PLC0415

                self._cw_client = boto3.client("cloudwatch")
            for i in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[i : i + MAX_BATCH_SIZE]
                self._cw_client.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    def _start_flush_thread(self) -> None:
        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                self.flush()

        threading.Thread(target=_loop, daemon=True, name="metrics-flush").start()
        atexit.register(self.flush)
        logger.info("Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS)


metrics = MetricsClient()
