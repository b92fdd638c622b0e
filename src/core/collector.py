#!/usr/bin/env python3
"""
Post-run collection of per-test metric snapshots.

Tests write one JSON snapshot each while they run; the aggregation step
reads them all back into a single PerformanceRun.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from core.exceptions import SnapshotParseError, ValidationError
from core.models.metrics import Metric, MetricCategory, plain_number
from core.run_context import PerformanceRun

logger = logging.getLogger(__name__)

DEFAULT_METRICS_DIRS = ("performance-metrics", "test-reports/metrics")


def infer_category(name: str) -> MetricCategory:
    """Guess a category from a metric name when the snapshot omits it."""
    lowered = name.lower()
    if "page" in lowered or "load" in lowered:
        return MetricCategory.PAGE_LOAD
    if "interaction" in lowered or "click" in lowered:
        return MetricCategory.USER_ACTION
    return MetricCategory.OTHER


@dataclass
class CollectionResult:
    """What a collection pass found."""
    files: Dict[str, int] = field(default_factory=dict)
    snapshots: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def metric_count(self) -> int:
        return sum(self.files.values())


class MetricsSnapshotCollector:
    """Reads metric snapshot files into a run."""

    def __init__(self, directories: Optional[Sequence[Union[str, Path]]] = None):
        self.directories = [Path(d) for d in (directories or DEFAULT_METRICS_DIRS)]

    def collect(self, run: PerformanceRun) -> CollectionResult:
        """
        Load every ``*.json`` snapshot in the configured directories.

        Missing directories and unreadable files are logged and skipped.

        Returns:
            Per-file metric counts and snapshots keyed by test name
        """
        result = CollectionResult()
        logger.info("🔍 Collecting performance data from metric snapshots...")

        for directory in self.directories:
            if not directory.is_dir():
                logger.debug(f"Metrics directory not found: {directory}")
                continue

            files = sorted(directory.glob("*.json"))
            logger.info(f"📁 Found {len(files)} metrics files in {directory}")
            for path in files:
                try:
                    data = self.read_snapshot(path)
                except SnapshotParseError as e:
                    logger.warning(f"⚠️ Skipping {path.name}: {e.message}")
                    continue

                result.files[str(path)] = self.apply_snapshot(run, data, path.name)
                test_name = data.get("testName")
                if test_name:
                    result.snapshots[test_name] = data

        logger.info(f"✅ Collected {result.metric_count} metrics from {len(result.files)} files")
        return result

    @staticmethod
    def read_snapshot(path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SnapshotParseError(str(path), e) from e
        if not isinstance(data, dict):
            raise SnapshotParseError(str(path), TypeError("snapshot is not a JSON object"))
        return data

    def apply_snapshot(self, run: PerformanceRun, data: Dict[str, Any], source: str = "snapshot") -> int:
        """Add one snapshot's metrics, timers and alerts to the run. Returns metrics added."""
        added = 0

        for raw in data.get("metrics") or []:
            if not isinstance(raw, dict):
                continue
            metric = self._metric_from_snapshot(run, raw, source)
            if metric is None:
                continue
            run.add_metric(metric)
            added += 1
            if metric.is_slow:
                run.add_alert(
                    "Performance Warning",
                    f"{metric.name} took {plain_number(metric.duration_ms)}ms "
                    f"(threshold: {plain_number(metric.threshold_ms)}ms)"
                )

        timers = data.get("timers")
        if isinstance(timers, dict):
            for name, duration in timers.items():
                if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration < 0:
                    logger.warning(f"⚠️ Ignoring timer {name} in {source}: invalid duration {duration!r}")
                    continue
                run.record_metric(name, MetricCategory.OTHER, duration, url="N/A")
                added += 1

        for alert in data.get("alerts") or []:
            message = alert.get("message") if isinstance(alert, dict) else alert
            if message:
                run.add_alert("Test Alert", str(message))

        logger.debug(f"📊 Processed {source}: {added} metrics")
        return added

    @staticmethod
    def _metric_from_snapshot(run: PerformanceRun, raw: Dict[str, Any], source: str) -> Optional[Metric]:
        raw_category = raw.get("category")
        if raw_category in [c.value for c in MetricCategory]:
            category = MetricCategory.parse(raw_category)
        else:
            category = infer_category(str(raw.get("name") or ""))

        try:
            return Metric.from_dict(raw, category=category,
                                    default_threshold=run.thresholds.threshold_for(category))
        except ValidationError as e:
            logger.warning(f"⚠️ Ignoring metric in {source}: {e.message}")
            return None
