#!/usr/bin/env python3
"""
GitHub-flavoured markdown for the CI job step summary.
"""

from typing import List

from core.models.metrics import Section
from core.models.timestamps import utc_now_iso
from core.rendering.common import SECTION_ORDER, TIER_LABELS, fmt_ms, fmt_pct, section_rows, tier

SECTION_TABLES = {
    Section.PAGE_LOAD: ("🏃 Page Load Performance", "Page", "Average Load Time"),
    Section.NAVIGATION: ("🧭 Navigation Performance", "Navigation", "Average Time"),
    Section.CRITICAL_OPERATIONS: ("⚡ Critical Operations", "Operation", "Average Time"),
}


def render_step_summary(snapshot, comparison=None, generated_at: str = None) -> str:
    """
    Render the step summary markdown.

    Args:
        snapshot: Finalized RunSnapshot
        comparison: Optional TrendComparison against the previous run
        generated_at: Timestamp to print (defaults to now)
    """
    summary = snapshot.summary
    generated_at = generated_at or utc_now_iso()

    lines: List[str] = [
        "# 🚀 Performance Test Results",
        "",
        "## 📊 Test Summary",
        "| Metric | Value |",
        "|--------|-------|",
        f"| ✅ Tests Passed | {summary.passed} |",
        f"| ❌ Tests Failed | {summary.failed} |",
        f"| ⏭️ Tests Skipped | {summary.skipped} |",
        f"| 📝 Total Tests | {summary.total} |",
        f"| ⏱️ Duration | {summary.duration_seconds:.2f}s |",
        "",
    ]

    for section in SECTION_ORDER:
        rows = section_rows(snapshot.metrics, section)
        if not rows:
            continue
        title, column, average_column = SECTION_TABLES[section]
        lines.extend([
            f"## {title}",
            f"| {column} | {average_column} | Status |",
            "|------|------|--------|",
        ])
        for name, stats in rows:
            lines.append(f"| {name} | {fmt_ms(stats.average)} | {TIER_LABELS[tier(stats.average, section)]} |")
        lines.append("")

    alerts = snapshot.alerts.all()
    if alerts:
        lines.append("## ⚠️ Performance Alerts")
        lines.extend(f"- **{alert.category}**: {alert.message}" for alert in alerts)
        lines.append("")

    failures = snapshot.failures.all()
    if failures:
        lines.extend([
            "## ❌ Test Failures",
            "<details>",
            f"<summary>Click to see failed tests ({len(failures)})</summary>",
            "",
        ])
        for failure in failures:
            lines.extend([f"**{failure.test_name}**", "```", failure.error_text, "```", ""])
        lines.extend(["</details>", ""])

    lines.extend([
        "## 📈 Trend Information",
        f"- **Run Date**: {generated_at}",
        f"- **Total Duration**: {summary.duration_seconds / 60:.2f} minutes",
        f"- **Success Rate**: {fmt_pct(summary.success_rate)}",
    ])
    if comparison is not None:
        changes = comparison.formatted()
        lines.extend([
            f"- **Duration Change**: {changes['duration']}",
            f"- **Passed Change**: {changes['passed']}",
            f"- **Failed Change**: {changes['failed']}",
        ])
    lines.append("")

    return "\n".join(lines)
