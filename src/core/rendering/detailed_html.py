#!/usr/bin/env python3
"""
Detailed per-test HTML report (detailed-test-report.html).

Tabbed view over every flattened test: all, passed, failed, slowest and
fastest, and grouped by suite.
"""

from html import escape
from pathlib import PurePosixPath
from typing import Sequence

from core.models.test_record import SuiteRecord, TestRecord
from core.results_loader import FAILED_STATUSES
from core.rendering.summary_json import fastest_tests, slowest_tests

STACK_LINES = 5

STYLE = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; background: #f5f7fa; }
        .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 2rem; text-align: center; }
        .container { max-width: 1400px; margin: 0 auto; padding: 2rem; }
        .overview-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1rem; margin-bottom: 2rem; }
        .stat-card { background: white; padding: 1.5rem; border-radius: 8px; text-align: center; border-left: 4px solid #667eea; }
        .stat-card.passed { border-left-color: #10b981; }
        .stat-card.failed { border-left-color: #ef4444; }
        .stat-card.skipped { border-left-color: #f59e0b; }
        .stat-value { font-size: 2rem; font-weight: bold; }
        .stat-label { color: #6b7280; font-size: 0.9rem; }
        .tabs { display: flex; border-bottom: 1px solid #e5e7eb; margin-bottom: 1rem; }
        .tab { padding: 0.75rem 1.5rem; cursor: pointer; border: none; background: none; color: #6b7280; border-bottom: 2px solid transparent; }
        .tab.active { color: #667eea; border-bottom-color: #667eea; }
        .tab-content { display: none; }
        .tab-content.active { display: block; }
        .test-grid { display: grid; gap: 1rem; }
        .test-item { border: 1px solid #e5e7eb; border-radius: 6px; padding: 1rem; background: white; }
        .test-header { display: flex; justify-content: space-between; align-items: center; }
        .test-title { font-weight: 600; }
        .test-status { padding: 0.25rem 0.75rem; border-radius: 12px; font-size: 0.75rem; font-weight: 600; text-transform: uppercase; }
        .test-status.passed { background: #dcfce7; color: #166534; }
        .test-status.failed { background: #fef2f2; color: #991b1b; }
        .test-status.skipped { background: #fef3c7; color: #92400e; }
        .test-meta { display: flex; gap: 1rem; color: #6b7280; font-size: 0.9rem; }
        .error-details { background: #fef2f2; border-radius: 4px; padding: 0.75rem; margin-top: 0.5rem; }
        .error-stack { font-family: monospace; font-size: 0.8rem; white-space: pre-wrap; }
        .performance-insight { color: #4b5563; margin-top: 0.5rem; }
        .suite-header { background: #f3f4f6; padding: 1rem; border-radius: 6px; margin: 1rem 0; border-left: 4px solid #667eea; }
        .suite-file { font-family: monospace; font-size: 0.9rem; color: #6b7280; }
        .empty { color: #6b7280; font-style: italic; }
"""

SCRIPT = """
        function showTab(name, button) {
            document.querySelectorAll('.tab-content').forEach(c => c.classList.remove('active'));
            document.querySelectorAll('.tab').forEach(t => t.classList.remove('active'));
            document.getElementById('tab-' + name).classList.add('active');
            button.classList.add('active');
        }
"""


def _error_block(test: TestRecord) -> str:
    blocks = []
    for attempt in test.results:
        if not attempt.error_message:
            continue
        stack = ""
        if attempt.error_stack:
            excerpt = "\n".join(attempt.error_stack.splitlines()[:STACK_LINES])
            stack = f'<div class="error-stack">{escape(excerpt)}...</div>'
        blocks.append(f'<div class="error-details"><div class="error-message">❌ {escape(attempt.error_message)}</div>{stack}</div>')
    return "".join(blocks)


def render_test_items(tests: Sequence[TestRecord]) -> str:
    if not tests:
        return '<p class="empty">No tests in this view.</p>'

    items = []
    for test in tests:
        status = escape(test.status)
        performance = ""
        if test.performance:
            performance = '<div class="performance-insight">⚡ Performance data available - check individual metrics</div>'
        items.append(f"""
            <div class="test-item" data-browser="{escape(test.browser)}" data-status="{status}">
                <div class="test-header">
                    <div class="test-title">{escape(test.title)}</div>
                    <div class="test-status {status}">{status}</div>
                </div>
                <div class="test-meta">
                    <span class="test-browser">🌐 {escape(test.browser)}</span>
                    <span class="test-duration">⏱️ {test.duration_ms / 1000:.2f}s</span>
                    <span class="test-file">📁 {escape(PurePosixPath(test.file).name)}</span>
                </div>
                {_error_block(test)}{performance}
            </div>""")
    return "".join(items)


def render_suite_items(suites: Sequence[SuiteRecord]) -> str:
    if not suites:
        return '<p class="empty">No suites found.</p>'
    return "".join(
        f'<div class="suite-header"><div class="suite-title">{escape(suite.title)}</div>'
        f'<div class="suite-file">{escape(suite.file)}</div></div>'
        f'<div class="test-grid">{render_test_items(suite.tests)}</div>'
        for suite in suites
    )


def render_detailed_test_report(snapshot, suites: Sequence[SuiteRecord] = (),
                                tests: Sequence[TestRecord] = ()) -> str:
    """Render the tabbed per-test HTML report."""
    summary = snapshot.summary
    passed = [t for t in tests if t.status in ("passed", "expected")]
    failed = [t for t in tests if t.status in FAILED_STATUSES]

    cards = [
        ("", summary.total, "Total Tests"),
        ("passed", summary.passed, "Tests Passed"),
        ("failed", summary.failed, "Tests Failed"),
        ("skipped", summary.skipped, "Tests Skipped"),
        ("", f"{summary.duration_seconds:.1f}s", "Total Duration"),
        ("", f"{summary.success_rate:.1f}%", "Success Rate"),
    ]
    cards_html = "".join(
        f'<div class="stat-card {css}"><div class="stat-value">{value}</div><div class="stat-label">{label}</div></div>'
        for css, value, label in cards
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Detailed Test Report</title>
    <style>{STYLE}    </style>
</head>
<body>
    <div class="header">
        <h1>🎭 Test Report</h1>
        <p>Detailed test execution results and performance insights</p>
    </div>

    <div class="container">
        <div class="overview-grid">{cards_html}</div>

        <div class="tabs">
            <button class="tab active" onclick="showTab('all', this)">All Tests ({len(tests)})</button>
            <button class="tab" onclick="showTab('passed', this)">Passed ({len(passed)})</button>
            <button class="tab" onclick="showTab('failed', this)">Failed ({len(failed)})</button>
            <button class="tab" onclick="showTab('performance', this)">Performance</button>
            <button class="tab" onclick="showTab('suites', this)">By Suite</button>
        </div>

        <div id="tab-all" class="tab-content active"><div class="test-grid">{render_test_items(tests)}</div></div>
        <div id="tab-passed" class="tab-content"><div class="test-grid">{render_test_items(passed)}</div></div>
        <div id="tab-failed" class="tab-content"><div class="test-grid">{render_test_items(failed)}</div></div>
        <div id="tab-performance" class="tab-content">
            <h3>Slowest Tests</h3>
            <div class="test-grid">{render_test_items(slowest_tests(tests))}</div>
            <h3>Fastest Tests</h3>
            <div class="test-grid">{render_test_items(fastest_tests(tests))}</div>
        </div>
        <div id="tab-suites" class="tab-content">{render_suite_items(suites)}</div>
    </div>

    <script>{SCRIPT}    </script>
</body>
</html>
"""
