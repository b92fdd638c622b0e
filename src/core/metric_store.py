#!/usr/bin/env python3
"""
Append-only store of the metrics captured during one run.

Stored metrics are frozen and never removed, so every report rendered from
the same store sees the same data regardless of render order.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from core.models.metrics import Metric, MetricCategory, MetricStats, Section

logger = logging.getLogger(__name__)


class MetricStore:
    """Accumulates Metric records for a run and answers aggregate queries."""

    def __init__(self, metrics: Iterable[Metric] = ()):
        self._metrics: List[Metric] = []
        for metric in metrics:
            self.add(metric)

    def add(self, metric: Metric) -> Metric:
        """Append a metric to the run."""
        self._metrics.append(metric)
        logger.debug(f"Stored metric {metric.name} ({metric.category.value}) = {metric.duration_ms}ms")
        return metric

    def __len__(self) -> int:
        return len(self._metrics)

    def is_empty(self) -> bool:
        return not self._metrics

    def all(self) -> Tuple[Metric, ...]:
        return tuple(self._metrics)

    def slow(self) -> Tuple[Metric, ...]:
        """Metrics flagged slow at creation time."""
        return tuple(m for m in self._metrics if m.is_slow)

    def by_category(self, category: MetricCategory) -> Tuple[Metric, ...]:
        category = MetricCategory.parse(category)
        return tuple(m for m in self._metrics if m.category is category)

    def by_section(self, section: Section) -> Tuple[Metric, ...]:
        return tuple(m for m in self._metrics if m.section is section)

    @staticmethod
    def aggregate(metrics: Iterable[Metric]) -> Dict[str, MetricStats]:
        """
        Group durations by metric name and summarise each group.

        Names appear in the order they were first seen.
        """
        durations: Dict[str, List[float]] = {}
        for metric in metrics:
            durations.setdefault(metric.name, []).append(metric.duration_ms)
        return {name: MetricStats.from_durations(values) for name, values in durations.items()}

    def section_stats(self, section: Section) -> Dict[str, MetricStats]:
        return self.aggregate(self.by_section(section))

    def overall_stats(self, section: Optional[Section] = None) -> MetricStats:
        """Statistics over every duration, optionally limited to one section."""
        metrics = self.by_section(section) if section else self._metrics
        return MetricStats.from_durations(m.duration_ms for m in metrics)
