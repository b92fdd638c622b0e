import json

import pytest

from core.models.metrics import MetricCategory, Section
from core.models.run import TestRunSummary
from core.models.test_record import TestRecord
from core.rendering import (
    build_test_summary,
    fastest_tests,
    render_detailed_test_report,
    render_html_report,
    render_markdown_report,
    render_step_summary,
    slowest_tests,
)
from core.rendering.common import tier
from core.results_loader import flatten_suites, summarize_results
from core.run_context import PerformanceRun, RunSnapshot
from core.trend_store import TrendComparison

GENERATED_AT = "2024-05-01T12:00:00+00:00"


@pytest.fixture
def populated_snapshot():
    run = PerformanceRun.create({"pageLoad": 1000})
    run.record_metric("Dashboard", MetricCategory.PAGE_LOAD, 980)
    run.record_metric("Dashboard", MetricCategory.PAGE_LOAD, 1020)
    run.record_metric("Settings", MetricCategory.USER_ACTION, 1600)
    run.record_metric("export", MetricCategory.OTHER, 400)
    run.record_metric("import", MetricCategory.API_CALL, 2500)
    run.add_alert("Performance Warning", "Dashboard took 1020ms (threshold: 1000ms)")
    run.add_alert("Test Alert", "Chart render retried")
    run.add_failure("Export operation", "Timeout <3000ms> exceeded")
    return run.finalize(TestRunSummary(passed=3, failed=1, skipped=1, duration_ms=12500))


def make_test(title: str, duration: float) -> TestRecord:
    return TestRecord(title=title, full_title=f"suite > {title}", status="passed", duration_ms=duration)


def test_markdown_empty_run_renders_zero_counts():
    report = render_markdown_report(RunSnapshot.empty(), GENERATED_AT)

    assert "- **Total Tests**: 0" in report
    assert "Success Rate" not in report
    assert "*No page load time data captured in this run.*" in report
    assert "*No critical operation data captured in this run.*" in report
    assert "*No performance alerts in this run.*" in report
    assert "Overall Performance Statistics" not in report


def test_markdown_sections_in_fixed_order(populated_snapshot):
    report = render_markdown_report(populated_snapshot, GENERATED_AT)

    headings = [line for line in report.splitlines() if line.startswith("## ")]
    assert headings == [
        "## Overview", "## Test Run Summary", "## Page Load Times", "## Navigation Times",
        "## Critical Operations", "## Overall Performance Statistics", "## Performance Alerts",
        "## Failed Tests Analysis", "## Historical Performance", "## How to Read This Report",
    ]
    assert "- **Success Rate**: 75.0%" in report
    assert "- **Average**: 1000.00ms" in report
    assert "- **Slow Metrics**: 2" in report
    # Critical operations are listed slowest first
    assert report.index("### import") < report.index("### export")
    assert "- **Status**: ⚠️ Moderate (>2s)" in report
    assert "### Performance Warning\n1. Dashboard took 1020ms (threshold: 1000ms)" in report


def test_html_report_escapes_and_shows_progress(populated_snapshot):
    html = render_html_report(populated_snapshot, GENERATED_AT)

    assert "Timeout &lt;3000ms&gt; exceeded" in html
    assert "Timeout <3000ms>" not in html
    assert "width: 75.0%" in html
    assert "<h2>Page Load Performance</h2>" in html
    assert "No performance metrics captured" not in html


def test_html_report_empty_state():
    html = render_html_report(RunSnapshot.empty(), GENERATED_AT)

    assert "No performance metrics captured in this run." in html
    assert "width: 0.0%" in html


@pytest.mark.parametrize("average, section, expected", [
    (3000, Section.PAGE_LOAD, "good"),
    (3001, Section.PAGE_LOAD, "warning"),
    (5001, Section.PAGE_LOAD, "slow"),
    (1600, Section.NAVIGATION, "warning"),
    (2001, Section.CRITICAL_OPERATIONS, "slow"),
])
def test_section_tiers(average, section, expected):
    assert tier(average, section) == expected


def test_slowest_and_fastest_are_stable():
    tests = [make_test("a", 100), make_test("b", 300), make_test("c", 100), make_test("d", 300)]

    assert [t.title for t in slowest_tests(tests)] == ["b", "d", "a", "c"]
    assert [t.title for t in fastest_tests(tests)] == ["a", "c", "b", "d"]
    assert len(slowest_tests([make_test(str(i), i) for i in range(15)])) == 10


def test_summary_json_document(results_document):
    summary = summarize_results(results_document)
    suites, tests = flatten_suites(results_document)
    snapshot = RunSnapshot.empty(summary)

    document = build_test_summary(snapshot, suites, tests)

    json.dumps(document)
    assert document["overview"]["totalTests"] == 4
    assert document["overview"]["successRate"] == 75.0
    assert [t["title"] for t in document["performance"]["slowestTests"]][:2] == [
        "Export operation", "Dashboard page load"
    ]
    assert document["performance"]["avgDuration"] == 1500
    assert set(document["metrics"]["sections"]) == {"Page Load", "Navigation", "Critical Operations"}


def test_summary_json_empty_run():
    document = build_test_summary(RunSnapshot.empty())

    assert document["overview"]["totalTests"] == 0
    assert document["overview"]["successRate"] == 0.0
    assert document["performance"]["avgDuration"] == 0


def test_detailed_report_tabs_and_stack_excerpt(results_document):
    suites, tests = flatten_suites(results_document)
    snapshot = RunSnapshot.empty(summarize_results(results_document))

    html = render_detailed_test_report(snapshot, suites, tests)

    assert "showTab('failed', this)\">Failed (1)" in html
    assert "Passed (2)" in html
    assert "❌ Timeout 3000ms exceeded" in html
    assert "at runner.ts:20" in html
    assert html.count('class="suite-title"') == 2


def test_step_summary_with_comparison(populated_snapshot):
    comparison = TrendComparison(duration_change_pct=-4.2, passed_change=1, failed_change=0)

    summary = render_step_summary(populated_snapshot, comparison, GENERATED_AT)

    assert "| 📝 Total Tests | 4 |" in summary
    assert "| Settings | 1600.00ms | 🟡 Warning |" in summary
    assert "<summary>Click to see failed tests (1)</summary>" in summary
    assert "- **Duration Change**: -4.2%" in summary
    assert "- **Passed Change**: +1" in summary


def test_step_summary_without_metrics_skips_tables():
    summary = render_step_summary(RunSnapshot.empty(), None, GENERATED_AT)

    assert "Page Load Performance" not in summary
    assert "Duration Change" not in summary
