#!/usr/bin/env python3
"""
Performance run context.

One ``PerformanceRun`` is created per test run (or per test), passed
explicitly to whatever records measurements, and finalized into an
immutable ``RunSnapshot`` that the renderers consume. Nothing here is a
module-level singleton.
"""

import re
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from core.alerts import AlertCollector, FailureCollector
from core.exceptions import ReportWriteError, RunStateError
from core.metric_store import MetricStore
from core.models.metrics import Alert, Failure, Metric, MetricCategory
from core.models.run import TestRunSummary
from core.models.timestamps import utc_now, utc_now_iso
from core.thresholds import ThresholdConfig
from core.timers import TimerRegistry

logger = logging.getLogger(__name__)

# Navigation Timing Level 1, evaluated in the page
NAVIGATION_TIMING_SCRIPT = """() => {
    const timing = performance.timing;
    return {
        loadTime: timing.loadEventEnd - timing.navigationStart,
        domContentLoadedTime: timing.domContentLoadedEventEnd - timing.navigationStart,
        firstPaintTime: timing.responseEnd - timing.navigationStart
    };
}"""

PAGE_LOAD_TITLE = re.compile(r"(\w+) page load")
NAVIGATION_TITLE = re.compile(r"(\w+) navigation")
OPERATION_TITLE = re.compile(r"(\w+) operation")

TITLE_PATTERNS = (
    (PAGE_LOAD_TITLE, MetricCategory.PAGE_LOAD),
    (NAVIGATION_TITLE, MetricCategory.USER_ACTION),
    (OPERATION_TITLE, MetricCategory.OTHER),
)


@dataclass(frozen=True)
class RunSnapshot:
    """Read-only view of a finalized run, shared by every renderer."""
    summary: TestRunSummary
    metrics: MetricStore
    alerts: AlertCollector
    failures: FailureCollector
    thresholds: Dict[str, float] = field(default_factory=dict)
    generated_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def empty(cls, summary: Optional[TestRunSummary] = None) -> 'RunSnapshot':
        """Snapshot with no metrics, used for fallback reports."""
        return cls(
            summary=summary or TestRunSummary.zero(),
            metrics=MetricStore(),
            alerts=AlertCollector(),
            failures=FailureCollector()
        )


class PerformanceRun:
    """
    Explicit lifecycle for run-scoped performance state.

    create -> record (timers, page loads, API calls, outcomes) -> finalize.
    ``reset`` returns the context to a fresh, recordable state.
    """

    def __init__(self, thresholds: ThresholdConfig, test_name: str = "performance-run",
                 clock: Optional[Callable[[], float]] = None, page: Any = None):
        self.test_name = test_name
        self.thresholds = thresholds
        self._clock = clock
        self.page = page
        self._snapshot: Optional[RunSnapshot] = None
        self._init_collectors()

    @classmethod
    def create(cls, thresholds: Optional[Union[ThresholdConfig, Dict[str, float]]] = None,
               test_name: str = "performance-run", clock: Optional[Callable[[], float]] = None,
               page: Any = None) -> 'PerformanceRun':
        """
        Create a fresh run context.

        Args:
            thresholds: ThresholdConfig or a mapping of category overrides
            test_name: Name used for snapshot files and summaries
            clock: Wall-clock source in seconds for timers
            page: Browser page exposing ``url`` and ``evaluate``
        """
        if not isinstance(thresholds, ThresholdConfig):
            thresholds = ThresholdConfig(thresholds or {})
        logger.debug(f"Created performance run '{test_name}'")
        return cls(thresholds, test_name=test_name, clock=clock, page=page)

    def _init_collectors(self) -> None:
        self.metrics = MetricStore()
        self.alerts = AlertCollector()
        self.failures = FailureCollector()
        self.timers = TimerRegistry(self.metrics, self.thresholds, clock=self._clock,
                                    url_provider=self._page_url)

    @property
    def finalized(self) -> bool:
        return self._snapshot is not None

    def _ensure_open(self, operation: str) -> None:
        if self._snapshot is not None:
            raise RunStateError(operation, "finalized")

    def _page_url(self) -> str:
        if self.page is None:
            return "N/A"
        url = getattr(self.page, "url", None)
        return url() if callable(url) else (url or "N/A")

    # Timers

    def start_timer(self, name: str) -> None:
        self._ensure_open("start a timer")
        self.timers.start_timer(name)

    def end_timer(self, name: str, category: MetricCategory = MetricCategory.USER_ACTION) -> Optional[Metric]:
        self._ensure_open("end a timer")
        return self.timers.end_timer(name, category)

    @contextmanager
    def timed(self, name: str, category: MetricCategory = MetricCategory.USER_ACTION):
        self._ensure_open("time an operation")
        with self.timers.timed(name, category):
            yield

    # Direct recording

    def record_metric(self, name: str, category: MetricCategory, duration_ms: float,
                      url: Optional[str] = None, threshold_ms: Optional[float] = None) -> Metric:
        """Record a measurement taken outside the timer registry."""
        self._ensure_open("record a metric")
        category = MetricCategory.parse(category)
        threshold = threshold_ms if threshold_ms is not None else self.thresholds.threshold_for(category)
        metric = Metric.create(
            name=name,
            category=category,
            duration_ms=duration_ms,
            threshold_ms=threshold,
            context_url=url or self._page_url()
        )
        return self.metrics.add(metric)

    def add_metric(self, metric: Metric) -> Metric:
        """Add an already classified metric, e.g. one read back from a snapshot."""
        self._ensure_open("add a metric")
        return self.metrics.add(metric)

    def record_page_load(self, page_name: str, page: Any = None) -> Metric:
        """
        Record the browser's Navigation Timing load time for the current page.

        Args:
            page_name: Display name of the page
            page: Page to evaluate (defaults to the run's page)
        """
        page = page or self.page
        if page is None:
            raise RunStateError("record a page load", "page-less")
        timing = page.evaluate(NAVIGATION_TIMING_SCRIPT) or {}
        load_time = max(0, timing.get("loadTime") or 0)
        url = page.url() if callable(getattr(page, "url", None)) else getattr(page, "url", None)
        return self.record_metric(f"Page Load: {page_name}", MetricCategory.PAGE_LOAD, load_time, url=url)

    def record_api_call(self, api_name: str, url: str, started_at: float) -> Metric:
        """Record an API call that started at ``started_at`` (epoch seconds)."""
        now = self._clock() if self._clock else utc_now().timestamp()
        duration_ms = max(0, int(round((now - started_at) * 1000)))
        return self.record_metric(f"API Call: {api_name}", MetricCategory.API_CALL, duration_ms, url=url)

    def record_test_outcome(self, title: str, duration_ms: float, status: str,
                            error: Optional[str] = None, timeout_ms: Optional[float] = None) -> List[Metric]:
        """
        Record the outcome of one test, classifying it by its title.

        Titles like "Dashboard page load", "Settings navigation" or
        "export operation" become page-load, navigation and critical
        operation metrics; a title matching several patterns records one
        metric for each. Tests running past their timeout raise an alert;
        failed tests are recorded as failures.

        Returns:
            Metrics recorded for the title, possibly empty
        """
        self._ensure_open("record a test outcome")
        metrics = []

        for pattern, category in TITLE_PATTERNS:
            match = pattern.search(title)
            if match:
                metrics.append(self.record_metric(match.group(1), category, duration_ms))

        if timeout_ms and duration_ms > timeout_ms:
            self.add_alert("Timeout Alerts", f"{title} exceeded timeout of {timeout_ms}ms")

        if status == "failed":
            self.add_failure(title, error or "Unknown error")

        return metrics

    def add_alert(self, category: str, message: str) -> Alert:
        self._ensure_open("add an alert")
        return self.alerts.add_alert(category, message)

    def add_failure(self, test_name: str, error_text: str) -> Failure:
        self._ensure_open("add a failure")
        return self.failures.add_failure(test_name, error_text)

    def slow_metrics(self) -> Tuple[Metric, ...]:
        return self.metrics.slow()

    # Lifecycle

    def finalize(self, summary: Optional[TestRunSummary] = None) -> RunSnapshot:
        """
        Close the run and return its immutable snapshot.

        Pending timers without a matching end are dropped. Finalizing twice
        returns the same snapshot.
        """
        if self._snapshot is not None:
            return self._snapshot

        self.timers.clear()
        self._snapshot = RunSnapshot(
            summary=summary or TestRunSummary.zero(),
            metrics=self.metrics,
            alerts=self.alerts,
            failures=self.failures,
            thresholds=self.thresholds.as_dict()
        )
        logger.info(f"Finalized run '{self.test_name}': {len(self.metrics)} metrics, "
                    f"{len(self.alerts)} alerts, {len(self.failures)} failures")
        return self._snapshot

    def reset(self) -> None:
        """Discard everything recorded and reopen the run."""
        self.timers.clear()
        self._snapshot = None
        self._init_collectors()
        logger.debug(f"Reset performance run '{self.test_name}'")

    # Persistence

    def to_snapshot_dict(self) -> Dict[str, Any]:
        return {
            "testName": self.test_name,
            "timestamp": utc_now_iso(),
            "metrics": [metric.to_dict() for metric in self.metrics.all()],
            "thresholds": self.thresholds.as_dict()
        }

    def render_text_summary(self) -> str:
        """Plain-text per-category summary of the recorded metrics."""
        lines = [f"Performance Summary for {self.test_name}", "=" * 50, ""]

        categories = []
        for metric in self.metrics.all():
            if metric.category not in categories:
                categories.append(metric.category)

        for category in categories:
            lines.append(f"{category.value} Metrics:")
            lines.append("-" * 30)
            for metric in self.metrics.by_category(category):
                lines.append(f"{metric.name}:")
                lines.append(f"  Duration: {metric.duration_ms}ms")
                lines.append(f"  Threshold: {metric.threshold_ms}ms")
                lines.append(f"  Status: {'⚠️ Slow' if metric.is_slow else '✅ OK'}")
                lines.append(f"  URL: {metric.context_url}")
                lines.append("")

        return "\n".join(lines) + "\n"

    def save_snapshot(self, directory: Union[str, Path], summary_dir: Union[str, Path, None] = None) -> Path:
        """
        Write the metrics snapshot (JSON) and text summary for this run.

        The JSON goes into ``directory``; the text summary goes into
        ``summary_dir``, by default the parent of ``directory``
        (``test-reports/metrics`` -> ``test-reports``), so the metrics
        directory only ever holds snapshots.

        Returns:
            Path of the JSON snapshot

        Raises:
            ReportWriteError: If the files cannot be written
        """
        directory = Path(directory)
        summary_dir = Path(summary_dir) if summary_dir is not None else directory.parent
        stamp = int(utc_now().timestamp() * 1000)
        sanitized = re.sub(r"[^a-zA-Z0-9-]", "-", self.test_name).lower()
        json_path = directory / f"{sanitized}-{stamp}.json"
        summary_path = summary_dir / f"{sanitized}-summary-{stamp}.txt"

        try:
            directory.mkdir(parents=True, exist_ok=True)
            with open(json_path, 'w', encoding='utf-8') as f:
                json.dump(self.to_snapshot_dict(), f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise ReportWriteError(str(json_path), e) from e

        try:
            summary_dir.mkdir(parents=True, exist_ok=True)
            with open(summary_path, 'w', encoding='utf-8') as f:
                f.write(self.render_text_summary())
        except OSError as e:
            raise ReportWriteError(str(summary_path), e) from e

        logger.info(f"Saved metrics snapshot for '{self.test_name}' to {json_path}")
        return json_path
