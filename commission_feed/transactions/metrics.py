"""
Transaction feed metrics and monitoring.

Tracks fetch cycles, success rates and latency, and provides
observability into the refresh pipeline.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from enum import Enum


class CycleStatus(str, Enum):
    """Status of a fetch cycle."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SUPERSEDED = "superseded"  # A newer trigger replaced it before it finished


@dataclass
class FetchCycleMetrics:
    """Metrics for a single fetch cycle."""

    cycle_id: str
    generation: int
    trigger_source: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    status: CycleStatus = CycleStatus.RUNNING
    transactions_fetched: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for output."""
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["ended_at"] = self.ended_at.isoformat() if self.ended_at else None
        data["status"] = self.status.value
        return data


@dataclass
class AggregateMetrics:
    """Aggregated metrics across fetch cycles."""

    total_cycles: int = 0
    successful_cycles: int = 0
    failed_cycles: int = 0
    superseded_cycles: int = 0
    avg_duration_seconds: float = 0.0
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ["last_success", "last_failure"]:
            if data[key]:
                data[key] = data[key].isoformat()
        return data


class FeedMetrics:
    """
    In-memory metrics tracker for the transaction feed.

    Cycles can overlap while a superseded fetch unwinds, so open cycles are
    keyed by generation rather than held in a single "current" slot.
    """

    def __init__(self, history_size: int = 100):
        self.history_size = history_size
        self._open: Dict[int, FetchCycleMetrics] = {}
        self._history: List[FetchCycleMetrics] = []
        self._cycle_counter = 0

    def start_cycle(self, generation: int, trigger_source: str) -> str:
        """
        Start tracking a fetch cycle.

        Returns:
            Cycle ID used in logs
        """
        self._cycle_counter += 1
        now = datetime.now(timezone.utc)
        cycle_id = f"feed-{now.strftime('%Y%m%d-%H%M%S')}-{self._cycle_counter}"
        self._open[generation] = FetchCycleMetrics(
            cycle_id=cycle_id,
            generation=generation,
            trigger_source=trigger_source,
            started_at=now,
        )
        return cycle_id

    def end_cycle(
        self,
        generation: int,
        status: CycleStatus,
        transactions_fetched: int = 0,
        error: Optional[str] = None,
    ):
        """Close the cycle for ``generation`` and move it to history."""
        cycle = self._open.pop(generation, None)
        if cycle is None:
            return

        cycle.ended_at = datetime.now(timezone.utc)
        cycle.status = status
        cycle.transactions_fetched = transactions_fetched
        cycle.error = error
        cycle.duration_seconds = (cycle.ended_at - cycle.started_at).total_seconds()

        self._history.append(cycle)
        if len(self._history) > self.history_size:
            self._history = self._history[-self.history_size :]

    def get_last_cycle(self) -> Optional[FetchCycleMetrics]:
        """Get metrics for the most recent completed cycle."""
        return self._history[-1] if self._history else None

    def get_history(self, limit: Optional[int] = None) -> List[FetchCycleMetrics]:
        """Recent cycles, newest first."""
        history = list(reversed(self._history))
        if limit:
            history = history[:limit]
        return history

    def get_aggregate_metrics(self) -> AggregateMetrics:
        """Get aggregated metrics across the retained history."""
        cycles = self._history
        metrics = AggregateMetrics()
        if not cycles:
            return metrics

        metrics.total_cycles = len(cycles)
        for cycle in cycles:
            if cycle.status == CycleStatus.SUCCESS:
                metrics.successful_cycles += 1
                metrics.last_success = cycle.started_at
            elif cycle.status == CycleStatus.FAILED:
                metrics.failed_cycles += 1
                metrics.last_failure = cycle.started_at
            elif cycle.status == CycleStatus.SUPERSEDED:
                metrics.superseded_cycles += 1

        metrics.avg_duration_seconds = (
            sum(c.duration_seconds for c in cycles) / metrics.total_cycles
        )
        return metrics

    def get_success_rate(self) -> float:
        """
        Share of finished cycles that succeeded.

        Superseded cycles never finished, so they are left out.
        """
        agg = self.get_aggregate_metrics()
        finished = agg.successful_cycles + agg.failed_cycles
        if finished == 0:
            return 0.0
        return agg.successful_cycles / finished

    def to_dict(self, recent: int = 10) -> Dict[str, Any]:
        return {
            "aggregate": self.get_aggregate_metrics().to_dict(),
            "success_rate": self.get_success_rate(),
            "recent_cycles": [c.to_dict() for c in self.get_history(limit=recent)],
        }

    def clear_history(self):
        """Clear all metrics history."""
        self._history.clear()
        self._open.clear()
