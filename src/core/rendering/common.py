#!/usr/bin/env python3
"""
Shared helpers for the report renderers.
"""

from typing import Dict, List, Tuple

from core.metric_store import MetricStore
from core.models.metrics import MetricStats, Section

# (warning, slow) average-duration tiers per section
SECTION_TIERS: Dict[Section, Tuple[float, float]] = {
    Section.PAGE_LOAD: (3000, 5000),
    Section.NAVIGATION: (1500, 3000),
    Section.CRITICAL_OPERATIONS: (1000, 2000),
}

SECTION_ORDER = (Section.PAGE_LOAD, Section.NAVIGATION, Section.CRITICAL_OPERATIONS)


def fmt_ms(value: float) -> str:
    return f"{value:.2f}ms"


def fmt_pct(value: float) -> str:
    return f"{value:.1f}%"


def tier(average: float, section: Section) -> str:
    """Classify an average as good, warning or slow for its section."""
    warning, slow = SECTION_TIERS[section]
    if average > slow:
        return "slow"
    if average > warning:
        return "warning"
    return "good"


TIER_LABELS = {
    "good": "🟢 Good",
    "warning": "🟡 Warning",
    "slow": "🔴 Slow",
}


def sorted_by_average(stats: Dict[str, MetricStats]) -> List[Tuple[str, MetricStats]]:
    """Name/stats pairs, slowest average first; ties keep first-seen order."""
    return sorted(stats.items(), key=lambda item: item[1].average, reverse=True)


def section_rows(store: MetricStore, section: Section) -> List[Tuple[str, MetricStats]]:
    """Rows for a section table; critical operations are sorted slowest first."""
    stats = store.section_stats(section)
    if section is Section.CRITICAL_OPERATIONS:
        return sorted_by_average(stats)
    return list(stats.items())
