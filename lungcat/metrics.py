"""
Metrics and observability for Lungcat.

Provides structured logging and counters for served content, so the share
of cache / AI / fallback responses and the reasons behind them can be
monitored.
"""

import json
import logging
import statistics
from collections import defaultdict
from dataclasses import dataclass, asdict
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional, Any


@dataclass
class MetricEvent:
    """A single metric event."""
    timestamp: str
    event_type: str  # served, error
    request_id: str
    user_id: str
    data: dict[str, Any]


class MetricsCollector:
    """
    Collects and aggregates metrics from orchestrator requests.

    Provides both real-time stats and historical tracking.
    """

    def __init__(
        self,
        metrics_file: Optional[Path] = None,
        enable_logging: bool = True,
        max_events: int = 10_000,
    ):
        """
        Initialize metrics collector.

        Args:
            metrics_file: Optional file to write metrics to (JSONL format)
            enable_logging: Whether to enable structured logging
            max_events: In-memory event history cap
        """
        self.metrics_file = Path(metrics_file) if metrics_file else None
        self.enable_logging = enable_logging
        self.max_events = max_events

        # Configure logger
        self.logger = logging.getLogger("lungcat.metrics")
        if enable_logging and not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
                )
            )
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)
            self.logger.propagate = False

        self._events: list[MetricEvent] = []
        self._counters: dict[str, int] = defaultdict(int)
        self._histograms: dict[str, list[float]] = defaultdict(list)

    def record_served(
        self,
        request_id: str,
        user_id: str,
        content_type: str,
        source: str,
        reason: str,
        cost_usd: float = 0.0,
        **extra: Any,
    ) -> None:
        """
        Record the terminal state of one request.

        Args:
            request_id: Request identifier
            user_id: User identifier
            content_type: motivation, mission, tip or milestone
            source: cache, ai or fallback
            reason: Why that source was chosen
            cost_usd: Estimated upstream cost (0 unless source is ai)
            **extra: Additional fields
        """
        self._record_event(
            event_type="served",
            request_id=request_id,
            user_id=user_id,
            data={
                "content_type": content_type,
                "source": source,
                "reason": reason,
                "cost_usd": cost_usd,
                **extra,
            },
        )
        self._counters["requests_total"] += 1
        self._counters[f"served_{source}"] += 1
        self._counters[f"served_by_type_{content_type}"] += 1
        if source == "fallback":
            self._counters[f"fallback_{reason}"] += 1
        if source == "ai":
            self._histograms["cost_usd"].append(cost_usd)

    def record_error(
        self,
        request_id: str,
        user_id: str,
        error_type: str,
        error_message: str,
        **extra: Any,
    ) -> None:
        """Record an error that was absorbed by degrading to fallback."""
        self._record_event(
            event_type="error",
            request_id=request_id,
            user_id=user_id,
            data={
                "error_type": error_type,
                "error_message": error_message,
                **extra,
            },
        )
        self._counters["errors_total"] += 1
        self._counters[f"errors_{error_type}"] += 1

        if self.enable_logging:
            self.logger.error(
                f"Error in request {request_id}: {error_type} - {error_message}"
            )

    def _record_event(
        self,
        event_type: str,
        request_id: str,
        user_id: str,
        data: dict,
    ) -> None:
        event = MetricEvent(
            timestamp=datetime.now(UTC).isoformat(),
            event_type=event_type,
            request_id=request_id,
            user_id=user_id,
            data=data,
        )

        self._events.append(event)
        if len(self._events) > self.max_events:
            del self._events[: len(self._events) - self.max_events]

        if self.metrics_file:
            try:
                with open(self.metrics_file, "a") as f:
                    f.write(json.dumps(asdict(event), default=str) + "\n")
            except OSError as exc:
                self.logger.warning(f"Could not write metrics file {self.metrics_file}: {exc}")

        if self.enable_logging:
            self.logger.info(
                f"{event_type.upper()}: request_id={request_id}, "
                f"user_id={user_id}, data={data}"
            )

    def counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_stats(self) -> dict:
        """
        Get aggregated statistics.

        Returns:
            Dictionary with metrics summary
        """
        cost_values = self._histograms.get("cost_usd", [])
        total = self._counters.get("requests_total", 0)

        return {
            "counters": dict(self._counters),
            "cache_hit_rate": self._counters.get("served_cache", 0) / total if total else 0.0,
            "fallback_rate": self._counters.get("served_fallback", 0) / total if total else 0.0,
            "cost": {
                "total_usd": sum(cost_values),
                "avg_usd": statistics.mean(cost_values) if cost_values else 0,
                "max_usd": max(cost_values) if cost_values else 0,
            },
            "total_events": len(self._events),
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._events.clear()
        self._counters.clear()
        self._histograms.clear()
