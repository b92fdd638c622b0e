#!/usr/bin/env python3
"""
Self-contained HTML performance report (performance-report.html).
"""

from html import escape
from typing import List

from core.models.metrics import Section
from core.models.timestamps import utc_now_iso
from core.rendering.common import SECTION_ORDER, TIER_LABELS, fmt_ms, section_rows, tier

SECTION_TITLES = {
    Section.PAGE_LOAD: "Page Load Performance",
    Section.NAVIGATION: "Navigation Performance",
    Section.CRITICAL_OPERATIONS: "Critical Operations",
}

STYLE = """
        body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
        .container { max-width: 1200px; margin: 0 auto; background: white; padding: 20px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .header { text-align: center; margin-bottom: 30px; }
        .metrics { display: grid; grid-template-columns: repeat(auto-fit, minmax(250px, 1fr)); gap: 20px; margin-bottom: 30px; }
        .metric-card { background: #f8f9fa; padding: 20px; border-radius: 8px; border-left: 4px solid #007bff; }
        .metric-value { font-size: 2em; font-weight: bold; color: #007bff; }
        .metric-label { color: #666; margin-top: 5px; }
        .section { margin-bottom: 30px; }
        .section h2 { color: #333; border-bottom: 2px solid #007bff; padding-bottom: 10px; }
        table { width: 100%; border-collapse: collapse; margin-top: 10px; }
        th, td { padding: 12px; text-align: left; border-bottom: 1px solid #ddd; }
        th { background-color: #f8f9fa; font-weight: bold; }
        .status-good { color: #28a745; font-weight: bold; }
        .status-warning { color: #ffc107; font-weight: bold; }
        .status-slow { color: #dc3545; font-weight: bold; }
        .alert { padding: 10px; margin: 10px 0; border-radius: 4px; }
        .alert-warning { background-color: #fff3cd; border: 1px solid #ffeaa7; color: #856404; }
        .alert-error { background-color: #f8d7da; border: 1px solid #f5c6cb; color: #721c24; }
        .timestamp { color: #666; font-size: 0.9em; }
        .empty { color: #666; font-style: italic; }
        .progress-bar { width: 100%; height: 20px; background-color: #e9ecef; border-radius: 10px; overflow: hidden; }
        .progress-fill { height: 100%; background-color: #28a745; transition: width 0.3s ease; }
"""


def _card(value, label: str) -> str:
    return (f'<div class="metric-card"><div class="metric-value">{escape(str(value))}</div>'
            f'<div class="metric-label">{escape(label)}</div></div>')


def _section_table(snapshot, section: Section) -> str:
    rows = section_rows(snapshot.metrics, section)
    if not rows:
        return ""

    body: List[str] = []
    for name, stats in rows:
        level = tier(stats.average, section)
        body.append(
            "<tr>"
            f"<td>{escape(name)}</td>"
            f"<td>{fmt_ms(stats.average)}</td>"
            f"<td>{stats.count}</td>"
            f"<td>{fmt_ms(stats.minimum)}</td>"
            f"<td>{fmt_ms(stats.maximum)}</td>"
            f'<td class="status-{level}">{TIER_LABELS[level]}</td>'
            "</tr>"
        )

    return f"""
        <div class="section">
            <h2>{SECTION_TITLES[section]}</h2>
            <table>
                <thead>
                    <tr><th>Name</th><th>Average</th><th>Count</th><th>Min</th><th>Max</th><th>Status</th></tr>
                </thead>
                <tbody>
                    {''.join(body)}
                </tbody>
            </table>
        </div>"""


def _alerts_block(snapshot) -> str:
    alerts = snapshot.alerts.all()
    if not alerts:
        return ""
    items = "".join(
        f'<div class="alert alert-warning"><strong>{escape(a.category)}:</strong> {escape(a.message)}</div>'
        for a in alerts
    )
    return f'\n        <div class="section"><h2>⚠️ Performance Alerts</h2>{items}</div>'


def _failures_block(snapshot) -> str:
    failures = snapshot.failures.all()
    if not failures:
        return ""
    items = "".join(
        f'<div class="alert alert-error"><strong>{escape(f.test_name)}:</strong><br>'
        f'<pre style="white-space: pre-wrap; margin-top: 10px;">{escape(f.error_text)}</pre></div>'
        for f in failures
    )
    return f'\n        <div class="section"><h2>❌ Test Failures</h2>{items}</div>'


def render_html_report(snapshot, generated_at: str = None) -> str:
    """Render the HTML report; every interpolated string is escaped."""
    summary = snapshot.summary
    generated_at = generated_at or utc_now_iso()
    # success_rate is 0.0 when nothing ran
    progress = summary.success_rate

    tables = "".join(_section_table(snapshot, section) for section in SECTION_ORDER)
    if not tables:
        tables = '\n        <div class="section"><p class="empty">No performance metrics captured in this run.</p></div>'

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Performance Test Report</title>
    <style>{STYLE}    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>🚀 Performance Test Report</h1>
            <p class="timestamp">Generated: {escape(generated_at)}</p>
        </div>

        <div class="metrics">
            {_card(summary.passed, "Tests Passed")}
            {_card(summary.failed, "Tests Failed")}
            {_card(summary.total, "Total Tests")}
            {_card(f"{summary.duration_seconds:.1f}s", "Total Duration")}
        </div>

        <div class="section">
            <h2>Success Rate</h2>
            <div class="progress-bar">
                <div class="progress-fill" style="width: {progress:.1f}%"></div>
            </div>
            <p>{progress:.1f}% of tests passed</p>
        </div>
{tables}{_alerts_block(snapshot)}{_failures_block(snapshot)}
    </div>
</body>
</html>
"""
