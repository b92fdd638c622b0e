#!/usr/bin/env python3
"""
Best-effort recovery of metrics and alerts from captured test output.

When structured metric snapshots are unavailable, the aggregation step
falls back to scraping the log lines the timers and tests print. Parsing is
line-oriented: a line matching no pattern contributes nothing, and every
match found is returned. The functions here have no side effects.
"""

import re
import logging
from typing import Any, Iterable, List, Optional, Union

from core.models.metrics import Alert, Metric, MetricCategory, plain_number
from core.models.timestamps import utc_now_iso
from core.thresholds import ThresholdConfig

logger = logging.getLogger(__name__)

_NUMBER = r"(\d+(?:\.\d+)?)"

PAGE_LOADED = re.compile(r"(\w+) page loaded in " + _NUMBER + r"ms")
SLOW_PERFORMANCE = re.compile(
    r"SLOW PERFORMANCE: (.+?) took " + _NUMBER + r"ms \(threshold: " + _NUMBER + r"ms\)"
)
MARKED_COMPLETED = re.compile(r"✅\s*(.+?) completed in " + _NUMBER + r"ms")
COMPLETED = re.compile(r"(\w+) completed in " + _NUMBER + r"ms")
TIMER_COMPLETED = re.compile(r"Timer completed: (.+?) = " + _NUMBER + r"ms")

Signal = Union[Metric, Alert]


def _number(text: str):
    return plain_number(float(text))


def parse_signals(text: str, thresholds: Optional[ThresholdConfig] = None) -> List[Signal]:
    """
    Extract metrics and alerts from raw captured text.

    Recognized lines:
        "<name> page loaded in <N>ms"                         -> pageLoad metric
        "SLOW PERFORMANCE: <name> took <N>ms (threshold: <T>ms)" -> metric + alert
        "<name> completed in <N>ms" (optionally after ✅)       -> other metric
        "Timer completed: <name> = <N>ms"                      -> other metric

    Args:
        text: Captured stdout/stderr
        thresholds: Thresholds used to classify metrics whose line carries none

    Returns:
        Metrics and alerts in the order they appear
    """
    if not text:
        return []

    thresholds = thresholds or ThresholdConfig()
    signals: List[Signal] = []

    for line in text.splitlines():
        slow = SLOW_PERFORMANCE.search(line)
        if slow:
            name, duration, threshold = slow.group(1).strip(), _number(slow.group(2)), _number(slow.group(3))
            signals.append(Metric.create(name, MetricCategory.OTHER, duration, threshold))
            signals.append(Alert(
                category="Performance Warning",
                message=f"{name} took {duration}ms (threshold: {threshold}ms)",
                timestamp=utc_now_iso()
            ))
            continue

        page = PAGE_LOADED.search(line)
        if page:
            signals.append(_metric(page.group(1), MetricCategory.PAGE_LOAD, page.group(2), thresholds))
            continue

        completed = MARKED_COMPLETED.search(line) or COMPLETED.search(line)
        if completed:
            signals.append(_metric(completed.group(1).strip(), MetricCategory.OTHER, completed.group(2), thresholds))
            continue

        timer = TIMER_COMPLETED.search(line)
        if timer:
            signals.append(_metric(timer.group(1).strip(), MetricCategory.OTHER, timer.group(2), thresholds))

    return signals


def _metric(name: str, category: MetricCategory, duration: str, thresholds: ThresholdConfig) -> Metric:
    return Metric.create(name, category, _number(duration), thresholds.threshold_for(category))


def parse_output_lines(entries: Iterable[Any], thresholds: Optional[ThresholdConfig] = None) -> List[Signal]:
    """
    Parse a results document's stdout/stderr array.

    Entries are either plain strings or ``{"text": ...}`` objects; anything
    else is ignored.
    """
    chunks = []
    for entry in entries or []:
        if isinstance(entry, str):
            chunks.append(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("text"), str):
            chunks.append(entry["text"])
        else:
            logger.debug(f"Skipping unreadable output entry of type {type(entry).__name__}")

    # Extra blank lines between newline-terminated chunks match nothing
    return parse_signals("\n".join(chunks), thresholds)
