#!/usr/bin/env python3
"""
Machine-readable test and performance summary (test-summary.json).
"""

from typing import Any, Dict, List, Sequence

from core.models.test_record import SuiteRecord, TestRecord
from core.rendering.common import SECTION_ORDER, section_rows

TOP_N = 10


def slowest_tests(tests: Sequence[TestRecord], limit: int = TOP_N) -> List[TestRecord]:
    """Longest first; equal durations keep their input order."""
    return sorted(tests, key=lambda t: t.duration_ms, reverse=True)[:limit]


def fastest_tests(tests: Sequence[TestRecord], limit: int = TOP_N) -> List[TestRecord]:
    """Shortest first; equal durations keep their input order."""
    return sorted(tests, key=lambda t: t.duration_ms)[:limit]


def build_test_summary(snapshot, suites: Sequence[SuiteRecord] = (),
                       tests: Sequence[TestRecord] = ()) -> Dict[str, Any]:
    """
    Build the JSON summary document.

    Args:
        snapshot: Finalized RunSnapshot
        suites: Top-level suites from the results document
        tests: Flattened leaf tests, in document order

    Returns:
        JSON-serializable dictionary
    """
    summary = snapshot.summary
    average = sum(t.duration_ms for t in tests) / len(tests) if tests else 0

    return {
        "overview": {
            "totalTests": summary.total,
            "passed": summary.passed,
            "failed": summary.failed,
            "skipped": summary.skipped,
            "duration": summary.duration_ms,
            "startTime": summary.start_time,
            "successRate": round(summary.success_rate, 1)
        },
        "suites": [suite.to_dict() for suite in suites],
        "tests": [test.to_dict() for test in tests],
        "performance": {
            "slowestTests": [test.to_dict() for test in slowest_tests(tests)],
            "fastestTests": [test.to_dict() for test in fastest_tests(tests)],
            "avgDuration": average
        },
        "metrics": {
            "sections": {
                section.value: {name: stats.to_dict() for name, stats in section_rows(snapshot.metrics, section)}
                for section in SECTION_ORDER
            },
            "slowMetrics": [metric.to_dict() for metric in snapshot.metrics.slow()],
            "thresholds": dict(snapshot.thresholds)
        },
        "alerts": [alert.to_dict() for alert in snapshot.alerts.all()],
        "failures": [failure.to_dict() for failure in snapshot.failures.all()],
        "generatedAt": snapshot.generated_at
    }
