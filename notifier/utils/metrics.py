"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- Poll cycle execution time
- Repository outcomes per cycle (unchanged, notified, failed)
- Git command counts and latency
"""

import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from contextlib import asynccontextmanager

from notifier.utils.logging import get_logger, log_git_command

logger = get_logger(__name__)


class PollMetrics:
    """
    Collects metrics during one poll cycle.

    Tracks:
    - Cycle start/end time
    - Repository outcome counts
    - Git command counts and latencies
    """

    def __init__(self, cycle_id: str = ""):
        """
        Initialize metrics collector.

        Args:
            cycle_id: Identifier of the poll cycle
        """
        self.cycle_id = cycle_id

        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None

        self.repository_outcomes: Dict[str, int] = {}

        self.git_calls: Dict[str, int] = {}
        self.git_latencies: Dict[str, List[float]] = {}

    def start(self, cycle_id: Optional[str] = None) -> None:
        """Mark cycle start and reset counters from any previous cycle."""
        if cycle_id is not None:
            self.cycle_id = cycle_id
        self.start_time = datetime.now(timezone.utc)
        self.end_time = None
        self.duration_ms = None
        self.repository_outcomes = {}
        self.git_calls = {}
        self.git_latencies = {}
        logger.info(
            f"Poll cycle {self.cycle_id} started",
            extra={"cycle_id": self.cycle_id}
        )

    def complete(self) -> None:
        """Mark cycle completion."""
        self.end_time = datetime.now(timezone.utc)

        if self.start_time:
            duration = (self.end_time - self.start_time).total_seconds()
            self.duration_ms = int(duration * 1000)

        logger.info(
            f"Poll cycle {self.cycle_id} completed",
            extra={
                "cycle_id": self.cycle_id,
                "duration_ms": self.duration_ms,
                "repository_outcomes": self.repository_outcomes,
            }
        )

    def record_outcome(self, status: str) -> None:
        """
        Record the outcome of one repository.

        Args:
            status: Poll status value ('unchanged', 'notified', 'failed')
        """
        self.repository_outcomes[status] = self.repository_outcomes.get(status, 0) + 1

    def record_git_call(self, command: str, duration_ms: float) -> None:
        """
        Record git invocation and latency.

        Args:
            command: Git subcommand
            duration_ms: Call duration in milliseconds
        """
        self.git_calls[command] = self.git_calls.get(command, 0) + 1
        self.git_latencies.setdefault(command, []).append(duration_ms)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.

        Returns:
            Dictionary of metrics
        """
        summary: Dict[str, Any] = {
            "cycle_id": self.cycle_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "repositories": sum(self.repository_outcomes.values()),
            "repository_outcomes": dict(self.repository_outcomes),
            "git_calls": dict(self.git_calls),
        }

        if self.git_latencies:
            latency_stats = {}
            for command, latencies in self.git_latencies.items():
                if latencies:
                    latency_stats[command] = {
                        "count": len(latencies),
                        "min_ms": round(min(latencies), 2),
                        "max_ms": round(max(latencies), 2),
                        "avg_ms": round(sum(latencies) / len(latencies), 2),
                    }
            summary["git_latencies"] = latency_stats

        return summary


@asynccontextmanager
async def track_git_command(
    metrics_collector: Optional[PollMetrics],
    command: str,
    argv: List[str],
    logger_adapter
):
    """
    Context manager to time a git invocation.

    Usage:
        async with track_git_command(metrics, "fetch", argv, logger):
            await proc.communicate()

    Args:
        metrics_collector: Metrics collector (optional)
        command: Git subcommand
        argv: Full argv of the invocation
        logger_adapter: Logger for logging the invocation

    Yields:
        None
    """
    start_time = time.monotonic()
    error = None

    try:
        yield
    except Exception as e:
        error = e
        raise
    finally:
        duration_ms = (time.monotonic() - start_time) * 1000

        if metrics_collector:
            metrics_collector.record_git_call(command, duration_ms)

        log_git_command(
            logger_adapter,
            command=command,
            args=argv,
            exit_status=getattr(error, "exit_code", None) if error else 0,
            duration_ms=duration_ms,
            error=str(error) if error else None
        )


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric as a structured log line.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
