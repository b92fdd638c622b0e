#!/usr/bin/env python3
"""
Run-level data models.

Contains the per-run test summary and the historical trend entry persisted
between runs.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from core.models.metrics import MetricStats


@dataclass(frozen=True)
class TestRunSummary:
    """
    Outcome counts for one run.

    ``total`` is derived from passed and failed so that
    ``total == passed + failed`` holds in every report. Skipped tests are
    carried separately and never counted in the total.
    """
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: float = 0.0
    start_time: Optional[str] = None

    __test__ = False

    @classmethod
    def zero(cls) -> 'TestRunSummary':
        """Zero-valued summary used when no results are available."""
        return cls()

    @property
    def total(self) -> int:
        return self.passed + self.failed

    @property
    def success_rate(self) -> float:
        """Percentage of passed tests, 0.0 when nothing ran."""
        if self.total == 0:
            return 0.0
        return self.passed / self.total * 100

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "total": self.total,
            "duration": self.duration_ms,
            "startTime": self.start_time
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TestRunSummary':
        return cls(
            passed=int(data.get("passed", 0) or 0),
            failed=int(data.get("failed", 0) or 0),
            skipped=int(data.get("skipped", 0) or 0),
            duration_ms=float(data.get("duration", 0) or 0),
            start_time=data.get("startTime")
        )


@dataclass
class TrendEntry:
    """One historical run, retained for run-over-run comparison."""
    timestamp: str
    commit: str
    branch: str
    run_id: str
    summary: TestRunSummary
    page_load_times: Dict[str, MetricStats] = field(default_factory=dict)
    navigation_times: Dict[str, MetricStats] = field(default_factory=dict)
    critical_operations: Dict[str, MetricStats] = field(default_factory=dict)
    alert_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "commit": self.commit,
            "branch": self.branch,
            "runId": self.run_id,
            "testResults": self.summary.to_dict(),
            "performance": {
                "pageLoadTimes": {name: stats.to_dict() for name, stats in self.page_load_times.items()},
                "navigationTimes": {name: stats.to_dict() for name, stats in self.navigation_times.items()},
                "criticalOperations": {name: stats.to_dict() for name, stats in self.critical_operations.items()},
                "alertCount": self.alert_count
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrendEntry':
        """Create from dictionary loaded from JSON."""
        performance = data.get("performance") or {}

        def _stats(key: str) -> Dict[str, MetricStats]:
            return {name: MetricStats.from_dict(values) for name, values in (performance.get(key) or {}).items()}

        return cls(
            timestamp=data.get("timestamp", ""),
            commit=data.get("commit", "unknown"),
            branch=data.get("branch", "unknown"),
            run_id=str(data.get("runId", "unknown")),
            summary=TestRunSummary.from_dict(data.get("testResults") or {}),
            page_load_times=_stats("pageLoadTimes"),
            navigation_times=_stats("navigationTimes"),
            critical_operations=_stats("criticalOperations"),
            alert_count=int(performance.get("alertCount", 0) or 0)
        )
