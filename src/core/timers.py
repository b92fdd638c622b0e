#!/usr/bin/env python3
"""
Named timers for a single test run.

Timers are keyed by name only: starting a name that is already pending
replaces its start instant, and a name can have at most one pending start.
"""

import time
import logging
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional

from core.metric_store import MetricStore
from core.models.metrics import Metric, MetricCategory, plain_number
from core.thresholds import ThresholdConfig

logger = logging.getLogger(__name__)


class TimerRegistry:
    """
    Starts and stops named timers and turns elapsed time into metrics.

    Every completed timer is classified against the threshold of its
    category and appended to the run's MetricStore.
    """

    def __init__(self, store: MetricStore, thresholds: ThresholdConfig,
                 clock: Optional[Callable[[], float]] = None,
                 url_provider: Optional[Callable[[], str]] = None):
        """
        Initialize timer registry.

        Args:
            store: Store receiving completed metrics
            thresholds: Threshold configuration used for classification
            clock: Wall-clock source in seconds (defaults to time.time)
            url_provider: Returns the current page URL for metric context
        """
        self.store = store
        self.thresholds = thresholds
        self._clock = clock or time.time
        self._url_provider = url_provider
        self._start_times: Dict[str, float] = {}

    def start_timer(self, name: str) -> None:
        """Record the start instant for ``name`` (last start wins)."""
        if name in self._start_times:
            logger.debug(f"Timer '{name}' restarted; previous start discarded")
        self._start_times[name] = self._clock()

    def end_timer(self, name: str, category: MetricCategory = MetricCategory.USER_ACTION,
                  url: Optional[str] = None) -> Optional[Metric]:
        """
        Stop the timer for ``name`` and record a metric.

        Args:
            name: Timer name passed to start_timer
            category: Metric category used for the threshold lookup
            url: Page URL for context (defaults to the url provider)

        Returns:
            The recorded metric, or None if the timer was never started
        """
        start_time = self._start_times.pop(name, None)
        if start_time is None:
            logger.warning(f"No start time found for action: {name}")
            return None

        category = MetricCategory.parse(category)
        duration_ms = max(0, int(round((self._clock() - start_time) * 1000)))
        threshold = self.thresholds.threshold_for(category)

        metric = Metric.create(
            name=name,
            category=category,
            duration_ms=duration_ms,
            threshold_ms=threshold,
            context_url=url or self._current_url()
        )
        self.store.add(metric)

        if metric.is_slow:
            logger.warning(f"⚠️  SLOW PERFORMANCE: {name} took {duration_ms}ms (threshold: {plain_number(threshold)}ms)")
        else:
            logger.info(f"✅ {name} completed in {duration_ms}ms")

        return metric

    @contextmanager
    def timed(self, name: str, category: MetricCategory = MetricCategory.USER_ACTION):
        """Context manager timing the enclosed block."""
        self.start_timer(name)
        try:
            yield
        finally:
            self.end_timer(name, category)

    def pending(self) -> List[str]:
        """Names started but not yet ended."""
        return list(self._start_times)

    def clear(self) -> None:
        """Drop all pending timers without recording them."""
        if self._start_times:
            logger.debug(f"Dropping {len(self._start_times)} abandoned timer(s): {', '.join(self._start_times)}")
        self._start_times.clear()

    def _current_url(self) -> str:
        if self._url_provider is None:
            return "N/A"
        try:
            return self._url_provider() or "N/A"
        except Exception as e:
            logger.debug(f"Could not read current URL: {e}")
            return "N/A"

