import io
import json

import pytest

from core.config import ConfigManager
from core.exceptions import ReportWriteError
from core.models.metrics import Section
from core.report_pipeline import ReportPipeline
from core.trend_store import TrendStore
from integrations.github_actions import GitHubActions
from integrations.slack_notifier import SlackNotifier

from conftest import FakeSlackResponse


@pytest.fixture
def config(monkeypatch, tmp_path):
    monkeypatch.setenv("PERF_OUTPUT_DIR", str(tmp_path))
    return ConfigManager(load_env=False).get_config()


class ExplodingCollector:
    def collect(self, run):
        raise ValueError("snapshot directory vanished")


def test_full_run_writes_every_report(config, tmp_path, results_file, metrics_snapshot_file):
    summary_path = tmp_path / "step-summary.md"
    output_path = tmp_path / "github-output"
    github = GitHubActions(step_summary_path=str(summary_path), output_path=str(output_path), stream=io.StringIO())
    pipeline = ReportPipeline(config, trend_store=TrendStore(config.trends.trends_file), github=github)

    paths = pipeline.run()

    assert paths.failed_stages == []
    assert not paths.fallback
    assert set(paths.written()) == {"markdown", "html", "summary_json", "detailed_html", "trends", "trend_report"}

    markdown = paths.markdown.read_text(encoding="utf-8")
    assert "- **Tests Passed**: 3" in markdown
    assert "- **Total Tests**: 4" in markdown
    assert "### Dashboard\n- **Average**: 1083.33ms" in markdown
    assert "### Export" in markdown
    assert "### Export operation\n- **Error**: Timeout 3000ms exceeded" in markdown

    summary = json.loads(paths.summary_json.read_text(encoding="utf-8"))
    assert summary["overview"]["totalTests"] == 4
    assert summary["tests"][0]["performance"]["testName"] == "Dashboard page load"
    assert [a["category"] for a in summary["alerts"]] == [
        "Performance Warning", "Test Alert", "Performance Warning"
    ]

    trends = json.loads(paths.trends.read_text(encoding="utf-8"))
    assert len(trends["runs"]) == 1
    assert trends["runs"][0]["testResults"]["total"] == 4
    assert pipeline.comparison is not None and not pipeline.comparison.has_baseline

    assert "total_tests=4" in output_path.read_text(encoding="utf-8").splitlines()
    assert summary_path.read_text(encoding="utf-8").startswith("# 🚀 Performance Test Results")


def test_build_snapshot_merges_snapshots_and_captured_output(config, results_file, metrics_snapshot_file):
    snapshot = ReportPipeline(config).build_snapshot()

    stats = snapshot.metrics.section_stats(Section.PAGE_LOAD)
    assert stats["Dashboard"].count == 3
    critical = snapshot.metrics.section_stats(Section.CRITICAL_OPERATIONS)
    assert set(critical) == {"filter-apply", "Export"}
    assert snapshot.summary.skipped == 1


def test_malformed_results_file_falls_back_to_zero_summary(config, tmp_path):
    results = tmp_path / "test-reports" / "test-results.json"
    results.parent.mkdir(parents=True)
    results.write_text("{truncated", encoding="utf-8")

    paths = ReportPipeline(config).run()

    assert not paths.fallback
    markdown = paths.markdown.read_text(encoding="utf-8")
    assert "- **Total Tests**: 0" in markdown
    assert "*No page load time data captured in this run.*" in markdown


@pytest.mark.parametrize("document", [
    {"stats": {"expected": "n/a"}, "suites": []},
    {"stats": "broken", "suites": []},
    {"stats": {"expected": 2}, "suites": "broken"},
])
def test_wrongly_shaped_results_keep_every_report(config, tmp_path, metrics_snapshot_file, document):
    results = tmp_path / "test-reports" / "test-results.json"
    results.parent.mkdir(parents=True)
    results.write_text(json.dumps(document), encoding="utf-8")

    paths = ReportPipeline(config, trend_store=TrendStore(config.trends.trends_file)).run()

    assert not paths.fallback
    assert paths.failed_stages == []
    assert {"markdown", "html", "summary_json", "detailed_html", "trends"} <= set(paths.written())
    markdown = paths.markdown.read_text(encoding="utf-8")
    assert "- **Total Tests**: 0" in markdown
    assert "### Dashboard\n- **Average**: 1000.00ms" in markdown
    assert "Dashboard" in paths.html.read_text(encoding="utf-8")


def test_results_directory_used_when_document_missing(config, tmp_path):
    for name, files in (("a-chromium", ["trace.zip"]), ("b-chromium", ["error-context.md"])):
        directory = tmp_path / "test-results" / name
        directory.mkdir(parents=True)
        for file_name in files:
            (directory / file_name).write_text("", encoding="utf-8")

    snapshot = ReportPipeline(config).build_snapshot()

    assert (snapshot.summary.passed, snapshot.summary.failed) == (1, 1)


def test_primary_failure_writes_fallback_report(config):
    paths = ReportPipeline(config, collector=ExplodingCollector()).run()

    assert paths.fallback
    assert set(paths.written()) == {"markdown"}
    assert "- **Total Tests**: 0" in paths.markdown.read_text(encoding="utf-8")


def test_fallback_write_failure_propagates(monkeypatch, tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("PERF_OUTPUT_DIR", str(blocker))
    config = ConfigManager(load_env=False).get_config()

    with pytest.raises(ReportWriteError):
        ReportPipeline(config).run()


def test_slack_failure_is_recorded_not_raised(config, results_file, slack_post):
    slack_post.response = FakeSlackResponse(status_code=500, text="boom")
    notifier = SlackNotifier("https://hooks.slack.com/services/x")

    paths = ReportPipeline(config, notifier=notifier).run()

    assert paths.failed_stages == ["slack"]
    assert paths.markdown.exists()
    assert len(slack_post.calls) == 1


def test_trends_disabled_skips_history(config, results_file):
    paths = ReportPipeline(config, trend_store=None).run()

    assert paths.trends is None
    assert not config.trends.trends_file.exists()
