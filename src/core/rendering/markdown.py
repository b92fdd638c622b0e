#!/usr/bin/env python3
"""
Markdown performance report (performance.md).
"""

from typing import List

from core.models.metrics import Section
from core.models.timestamps import utc_now_iso
from core.rendering.common import fmt_ms, fmt_pct, section_rows

SECTION_HEADINGS = {
    Section.PAGE_LOAD: ("Page Load Times", "page load time"),
    Section.NAVIGATION: ("Navigation Times", "navigation time"),
    Section.CRITICAL_OPERATIONS: ("Critical Operations", "critical operation"),
}


def operation_status(average: float) -> str:
    if average > 10000:
        return "⚠️ Very Slow (>10s)"
    if average > 5000:
        return "⚠️ Slow (>5s)"
    if average > 2000:
        return "⚠️ Moderate (>2s)"
    return "✅ Good (<2s)"


def _section_lines(snapshot, section: Section) -> List[str]:
    heading, noun = SECTION_HEADINGS[section]
    lines = [f"## {heading}", ""]
    rows = section_rows(snapshot.metrics, section)
    if not rows:
        lines.extend([f"*No {noun} data captured in this run.*", ""])
        return lines

    for name, stats in rows:
        lines.extend([
            f"### {name}",
            f"- **Average**: {fmt_ms(stats.average)}",
            f"- **Minimum**: {fmt_ms(stats.minimum)}",
            f"- **Maximum**: {fmt_ms(stats.maximum)}",
        ])
        if section is Section.CRITICAL_OPERATIONS:
            lines.append(f"- **Executions**: {stats.count}")
            lines.append(f"- **Status**: {operation_status(stats.average)}")
        else:
            lines.append(f"- **Samples**: {stats.count}")
        lines.append("")
    return lines


def render_markdown_report(snapshot, generated_at: str = None) -> str:
    """
    Render the markdown report for a finalized run.

    Sections always appear in the same order; sections without data render
    an empty-state line instead of being dropped.

    Args:
        snapshot: RunSnapshot to render
        generated_at: Timestamp to print (defaults to now)
    """
    summary = snapshot.summary
    metrics = snapshot.metrics
    generated_at = generated_at or utc_now_iso()

    lines: List[str] = [
        "# Performance Test Report",
        "",
        "## Overview",
        "",
        f"- **Metrics Captured**: {len(metrics)}",
        f"- **Slow Metrics**: {len(metrics.slow())}",
        f"- **Performance Alerts**: {len(snapshot.alerts)}",
        f"- **Test Failures**: {len(snapshot.failures)}",
        "",
        "## Test Run Summary",
        "",
        f"- **Total Duration**: {summary.duration_ms:.2f}ms ({summary.duration_seconds:.2f}s)",
        f"- **Tests Passed**: {summary.passed}",
        f"- **Tests Failed**: {summary.failed}",
        f"- **Tests Skipped**: {summary.skipped}",
        f"- **Total Tests**: {summary.total}",
    ]
    if summary.total > 0:
        lines.append(f"- **Success Rate**: {fmt_pct(summary.success_rate)}")
    lines.extend([f"- **Report Generated**: {generated_at}", ""])

    for section in (Section.PAGE_LOAD, Section.NAVIGATION, Section.CRITICAL_OPERATIONS):
        lines.extend(_section_lines(snapshot, section))

    critical = metrics.by_section(Section.CRITICAL_OPERATIONS)
    if critical:
        overall = metrics.overall_stats(Section.CRITICAL_OPERATIONS)
        lines.extend([
            "## Overall Performance Statistics",
            "",
            f"- **Total Operations Measured**: {overall.count}",
            f"- **Average Operation Time**: {fmt_ms(overall.average)}",
            f"- **Fastest Operation**: {fmt_ms(overall.minimum)}",
            f"- **Slowest Operation**: {fmt_ms(overall.maximum)}",
            "",
        ])

    lines.extend(["## Performance Alerts", ""])
    if len(snapshot.alerts):
        lines.extend([f"*{len(snapshot.alerts)} performance alert(s) detected*", ""])
        for category, alerts in snapshot.alerts.grouped().items():
            lines.append(f"### {category}")
            for index, alert in enumerate(alerts, 1):
                lines.append(f"{index}. {alert.message}")
            lines.append("")
    else:
        lines.extend(["*No performance alerts in this run.*", ""])

    lines.extend(["## Failed Tests Analysis", ""])
    if len(snapshot.failures):
        lines.extend([f"*{len(snapshot.failures)} test failure(s) recorded*", ""])
        for failure in snapshot.failures.all():
            lines.extend([
                f"### {failure.test_name}",
                f"- **Error**: {failure.error_text}",
                f"- **Time**: {failure.timestamp}",
                "",
            ])
    else:
        lines.extend(["*No test failures recorded.*", ""])

    lines.extend([
        "## Historical Performance",
        "",
        "Run-over-run comparisons are kept in `performance-reports/trend-report.md`; "
        "the raw history lives in `performance-reports/trends.json`.",
        "",
        "## How to Read This Report",
        "",
        "- **Average / Minimum / Maximum**: aggregated over every sample with the same name.",
        "- **Critical Operations** are sorted slowest first.",
        "- **Status** tiers: Good (<2s), Moderate (>2s), Slow (>5s), Very Slow (>10s).",
        "- A metric is flagged slow when its duration exceeds the threshold of its category.",
        "",
    ])

    return "\n".join(lines)
