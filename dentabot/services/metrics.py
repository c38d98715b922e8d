"""Conversation counters and CloudWatch telemetry for the bot.

Two collectors live here:

* ``ConversationMetrics`` — process-lifetime counters (turns handled,
  intents dispatched, QnA queries, errors).  Exposed by ``GET /api/metrics``
  and reset only on restart.
* ``MetricsClient`` — per-call metrics (count, latency, errors) for every
  external service the bot talks to (CLU, QnA, scheduler), batched and
  pushed to CloudWatch by a daemon thread.

When ``METRICS_ENABLED`` is off, ``MetricsClient`` still buffers and logs
at DEBUG level but never calls CloudWatch.

Usage
-----
>>> telemetry = MetricsClient(enabled=False)
>>> telemetry.record_success("scheduler", "GET /api/services", latency_ms=12.5)
>>> telemetry.record_failure("clu", "analyze-conversations", error_type="ConnectError")
"""

from __future__ import annotations

import atexit
import logging
import threading
import time
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "DentaBot"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # CloudWatch API limit per PutMetricData call


class ConversationMetrics:
    """Monotonic, lock-guarded usage counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._intents: dict[str, int] = {}
        self._qna_queries = 0
        self._errors = 0
        self.start_time = datetime.now(UTC)

    def record_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_intent(self, intent: str) -> None:
        with self._lock:
            self._intents[intent] = self._intents.get(intent, 0) + 1

    def record_qna_query(self) -> None:
        with self._lock:
            self._qna_queries += 1

    def record_error(self) -> None:
        with self._lock:
            self._errors += 1

    @property
    def requests(self) -> int:
        return self._requests

    @property
    def qna_queries(self) -> int:
        return self._qna_queries

    @property
    def errors(self) -> int:
        return self._errors

    @property
    def intents(self) -> dict[str, int]:
        """A copy of the per-intent dispatch counts."""
        with self._lock:
            return dict(self._intents)

    def snapshot(self) -> dict[str, Any]:
        """Return a consistent point-in-time view of every counter."""
        with self._lock:
            uptime = (datetime.now(UTC) - self.start_time).total_seconds()
            return {
                "requests": self._requests,
                "intents": dict(self._intents),
                "qna_queries": self._qna_queries,
                "errors": self._errors,
                "start_time": self.start_time,
                "uptime_seconds": uptime,
            }


class MetricsClient:
    """Batched CloudWatch publisher for outbound-call telemetry."""

    def __init__(self, enabled: bool = False) -> None:
        self._enabled = enabled
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None  # lazy-init

        if self._enabled:
            self._start_flush_thread()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _get_cw_client(self):
        """Create the boto3 CloudWatch client on first use."""
        if self._cw_client is None:
            import boto3

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    # ── Recording ─────────────────────────────────────────────────────

    def record_success(self, service: str, operation: str, latency_ms: float) -> None:
        """Record a call that returned a 2xx response."""
        now = datetime.now(UTC)
        self._append(_point("RequestCount", now, 1, "Count", service, Status="success"))
        self._append(
            _point("Latency", now, latency_ms, "Milliseconds", service, Operation=operation)
        )
        logger.debug("Metric: %s %s ok in %.1fms", service, operation, latency_ms)

    def record_failure(
        self,
        service: str,
        operation: str,
        error_type: str,
        latency_ms: float = 0,
    ) -> None:
        """Record a call that failed (transport error or non-2xx status)."""
        now = datetime.now(UTC)
        self._append(_point("RequestCount", now, 1, "Count", service, Status="failure"))
        self._append(_point("ErrorCount", now, 1, "Count", service, ErrorType=error_type))
        if latency_ms > 0:
            self._append(
                _point("Latency", now, latency_ms, "Milliseconds", service, Operation=operation)
            )
        logger.debug(
            "Metric: %s %s failed (%s) after %.1fms",
            service, operation, error_type, latency_ms,
        )

    def flush(self) -> int:
        """Send buffered metrics to CloudWatch.  Returns count sent."""
        with self._lock:
            if not self._buffer:
                return 0
            batch = self._buffer[:]
            self._buffer.clear()

        if not self._enabled:
            logger.debug("Metrics flush skipped (not enabled): %d items", len(batch))
            return 0

        sent = 0
        try:
            cw = self._get_cw_client()
            for i in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[i : i + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    # ── Internal ──────────────────────────────────────────────────────

    def _append(self, metric_data: dict[str, Any]) -> None:
        with self._lock:
            self._buffer.append(metric_data)

    def _start_flush_thread(self) -> None:
        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        threading.Thread(target=_loop, daemon=True, name="metrics-flush").start()
        atexit.register(self.flush)
        logger.info(
            "Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS,
        )


def _point(
    name: str,
    timestamp: datetime,
    value: float,
    unit: str,
    service: str,
    **dimensions: str,
) -> dict[str, Any]:
    """Build one CloudWatch ``MetricData`` entry under ``ExternalAPI/``."""
    dims = [{"Name": "Service", "Value": service}]
    dims.extend({"Name": k, "Value": v} for k, v in dimensions.items())
    return {
        "MetricName": f"ExternalAPI/{name}",
        "Dimensions": dims,
        "Timestamp": timestamp,
        "Value": value,
        "Unit": unit,
    }
