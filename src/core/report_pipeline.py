#!/usr/bin/env python3
"""
Post-run report generation.

Collects everything a finished test run left behind (metric snapshots, the
results document, captured output), renders every report and publishes
the CI side channels. Each stage is isolated: a failing stage is logged and
the rest still run. If the primary path fails outright, a zero-valued
fallback report is written; only a failure to write that fallback
propagates.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.collector import CollectionResult, MetricsSnapshotCollector
from core.config import Config
from core.exceptions import PerfwatchError, ReportWriteError, ResultsError
from core.models.metrics import Alert, Metric
from core.models.run import TestRunSummary
from core.models.test_record import SuiteRecord, TestRecord
from core.rendering import (
    build_test_summary,
    render_detailed_test_report,
    render_html_report,
    render_markdown_report,
    render_step_summary,
)
from core.results_loader import (
    count_result_directories,
    failures_from_results,
    find_results_file,
    flatten_suites,
    iter_captured_output,
    load_results,
    summarize_results,
)
from core.run_context import PerformanceRun, RunSnapshot
from core.signal_parser import parse_output_lines
from core.trend_store import TrendComparison, TrendStore, build_trend_entry

logger = logging.getLogger(__name__)

# Stage failures that are logged instead of raised
STAGE_ERRORS = (PerfwatchError, OSError, ValueError, TypeError, KeyError, AttributeError)

# A results document that parses but has the wrong shape
DOCUMENT_ERRORS = (ValueError, TypeError, KeyError, AttributeError)


@dataclass
class ReportPaths:
    """Paths to generated report files."""
    markdown: Optional[Path] = None
    html: Optional[Path] = None
    summary_json: Optional[Path] = None
    detailed_html: Optional[Path] = None
    trends: Optional[Path] = None
    trend_report: Optional[Path] = None
    fallback: bool = False
    failed_stages: List[str] = field(default_factory=list)

    def written(self) -> Dict[str, Path]:
        names = ("markdown", "html", "summary_json", "detailed_html", "trends", "trend_report")
        return {name: getattr(self, name) for name in names if getattr(self, name) is not None}


def write_text(path: Path, content: str) -> Path:
    """
    Write a report file, creating parent directories.

    Raises:
        ReportWriteError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise ReportWriteError(str(path), e) from e
    return path


class ReportPipeline:
    """Runs the post-run aggregation and report generation."""

    def __init__(self, config: Config, trend_store: Optional[TrendStore] = None,
                 github=None, notifier=None, collector: Optional[MetricsSnapshotCollector] = None,
                 results_path: Optional[Path] = None):
        """
        Initialize the pipeline.

        Args:
            config: Application configuration
            trend_store: Trend history (None disables trends)
            github: GitHubActions channels (None disables CI publishing)
            notifier: SlackNotifier for the run summary (optional)
            collector: Snapshot collector (defaults to the configured directories)
            results_path: Explicit results document, overriding the search
        """
        self.config = config
        self.trend_store = trend_store
        self.github = github
        self.notifier = notifier
        self.collector = collector or MetricsSnapshotCollector(config.paths.metrics_dirs)
        self.results_path = results_path

        self.suites: List[SuiteRecord] = []
        self.tests: List[TestRecord] = []
        self.comparison: Optional[TrendComparison] = None

    def _stage(self, paths: ReportPaths, name: str, action: Callable[[], Any]) -> Any:
        try:
            return action()
        except STAGE_ERRORS as e:
            logger.warning(f"⚠️ Report stage '{name}' failed: {e}")
            paths.failed_stages.append(name)
            return None

    # Input

    def load_inputs(self, run: PerformanceRun) -> Tuple[TestRunSummary, CollectionResult]:
        """
        Fill the run from snapshots, results and captured output.

        A missing or malformed results document falls back to the per-test
        artifacts directory, then to a zero summary.
        """
        collection = self.collector.collect(run)

        try:
            path = self.results_path or find_results_file(self.config.paths.results_candidates())
            document = load_results(path)
        except ResultsError as e:
            logger.warning(f"⚠️ {e.message}")
            summary = count_result_directories(self.config.paths.results_dir)
            if summary is None:
                logger.warning("⚠️ No test results found, using zero summary")
                summary = TestRunSummary.zero()
            return summary, collection

        # Read the whole document before touching the run so a bad shape leaves it untouched
        try:
            summary = summarize_results(document)
            suites, tests = flatten_suites(document, collection.snapshots)
            signals = [signal for entries in iter_captured_output(document)
                       for signal in parse_output_lines(entries, run.thresholds)]
            failures = failures_from_results(document)
        except DOCUMENT_ERRORS as e:
            logger.warning(f"⚠️ Results document {path} has an unexpected shape ({e}), using zero summary")
            return TestRunSummary.zero(), collection

        self.suites, self.tests = suites, tests

        recovered = 0
        for signal in signals:
            if isinstance(signal, Metric):
                run.add_metric(signal)
                recovered += 1
            elif isinstance(signal, Alert):
                run.add_alert(signal.category, signal.message)
        if recovered:
            logger.info(f"📈 Recovered {recovered} metrics from captured test output")

        for title, error in failures:
            run.add_failure(title, error)

        return summary, collection

    # Output

    def render_reports(self, snapshot: RunSnapshot, paths: ReportPaths) -> None:
        p = self.config.paths
        paths.markdown = self._stage(paths, "markdown", lambda: write_text(
            p.markdown_report, render_markdown_report(snapshot)))
        paths.html = self._stage(paths, "html", lambda: write_text(
            p.html_report, render_html_report(snapshot)))
        paths.summary_json = self._stage(paths, "summary_json", lambda: write_text(
            p.summary_json,
            json.dumps(build_test_summary(snapshot, self.suites, self.tests), ensure_ascii=False, indent=2)))
        paths.detailed_html = self._stage(paths, "detailed_html", lambda: write_text(
            p.detailed_report, render_detailed_test_report(snapshot, self.suites, self.tests)))

    def update_trends(self, snapshot: RunSnapshot, paths: ReportPaths) -> None:
        if self.trend_store is None:
            return

        def _append():
            entries = self.trend_store.append(build_trend_entry(snapshot, self.config.ci))
            self.comparison = self.trend_store.latest_comparison(entries)
            return entries

        entries = self._stage(paths, "trends", _append)
        if entries is None:
            return
        paths.trends = self.trend_store.path
        paths.trend_report = self._stage(paths, "trend_report", lambda: self.trend_store.save_report(
            self.config.trends.report_file, entries))

    def publish_ci(self, snapshot: RunSnapshot, paths: ReportPaths) -> None:
        if self.github is None:
            return
        self._stage(paths, "step_summary", lambda: self.github.append_step_summary(
            render_step_summary(snapshot, self.comparison)))
        self._stage(paths, "annotations", lambda: self.github.report_performance_metrics(snapshot))
        self._stage(paths, "outputs", lambda: self.github.set_outputs(snapshot))

    def notify(self, snapshot: RunSnapshot, paths: ReportPaths) -> None:
        if self.notifier is None:
            return
        sent = self._stage(paths, "slack", lambda: self.notifier.send_run_summary(snapshot, self.comparison))
        if sent is False:
            paths.failed_stages.append("slack")

    # Entry points

    def build_snapshot(self) -> RunSnapshot:
        """Load every input into a fresh run and finalize it."""
        run = PerformanceRun.create(self.config.thresholds.to_threshold_config(), test_name="report")
        summary, _ = self.load_inputs(run)
        return run.finalize(summary)

    def run(self) -> ReportPaths:
        """
        Generate every report for the finished run.

        Returns:
            Paths of the written reports

        Raises:
            ReportWriteError: If even the fallback report cannot be written
        """
        logger.info("🎯 Starting comprehensive performance report generation...")
        paths = ReportPaths()

        try:
            snapshot = self.build_snapshot()
            self.render_reports(snapshot, paths)
        except STAGE_ERRORS as e:
            logger.error(f"❌ Error generating performance report: {e}")
            return self.write_fallback_report()

        if paths.markdown is None:
            logger.error("❌ Markdown report could not be written, generating fallback")
            fallback = self.write_fallback_report()
            paths.markdown = fallback.markdown
            paths.fallback = True

        self.update_trends(snapshot, paths)
        self.publish_ci(snapshot, paths)
        self.notify(snapshot, paths)

        logger.info("📊 Performance Report Summary:")
        summary = snapshot.summary
        logger.info(f"   🎭 Tests: {summary.passed} passed, {summary.failed} failed, {summary.total} total")
        logger.info(f"   📈 Metrics: {len(snapshot.metrics)} ({len(snapshot.metrics.slow())} slow)")
        logger.info(f"   ⚠️ Alerts: {len(snapshot.alerts)}  ❌ Failures: {len(snapshot.failures)}")
        return paths

    def write_fallback_report(self) -> ReportPaths:
        """
        Write a zero-valued markdown report.

        Raises:
            ReportWriteError: If the report cannot be written
        """
        logger.info("📝 Generating fallback report...")
        snapshot = RunSnapshot.empty()
        path = write_text(self.config.paths.markdown_report, render_markdown_report(snapshot))
        logger.info(f"✅ Fallback performance report generated: {path}")
        return ReportPaths(markdown=path, fallback=True)
