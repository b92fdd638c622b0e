import io

import pytest

from core.exceptions import NotificationChannelError
from core.models.metrics import MetricCategory
from core.models.run import TestRunSummary
from core.run_context import PerformanceRun, RunSnapshot
from integrations.github_actions import GitHubActions, performance_score


@pytest.fixture
def snapshot():
    run = PerformanceRun.create()
    run.record_metric("Reports", MetricCategory.PAGE_LOAD, 5200)
    run.record_metric("Settings", MetricCategory.USER_ACTION, 1600)
    run.record_metric("export", MetricCategory.OTHER, 300)
    run.add_alert("Test Alert", "Chart render retried")
    run.add_failure("Export operation", "Timeout")
    return run.finalize(TestRunSummary(passed=9, failed=1, skipped=2, duration_ms=42000))


@pytest.mark.parametrize("alerts, failures, expected", [(0, 0, 100), (2, 1, 80), (10, 6, 0)])
def test_performance_score(alerts, failures, expected):
    assert performance_score(alerts, failures) == expected


def test_outputs_written_as_name_value_lines(tmp_path, snapshot):
    output = tmp_path / "github_output"
    github = GitHubActions(output_path=str(output))

    outputs = github.set_outputs(snapshot)

    assert output.read_text(encoding="utf-8").splitlines() == [
        "tests_passed=9",
        "tests_failed=1",
        "total_tests=10",
        "test_duration=42000",
        "success_rate=90.0",
        "performance_score=85",
    ]
    assert outputs["performance_score"] == 85


def test_outputs_printed_without_output_file():
    stream = io.StringIO()
    GitHubActions(stream=stream).set_outputs(RunSnapshot.empty())

    lines = stream.getvalue().splitlines()
    assert "total_tests=0" in lines
    assert "success_rate=0.0" in lines


def test_annotations_follow_section_tiers(snapshot):
    stream = io.StringIO()

    count = GitHubActions(stream=stream).report_performance_metrics(snapshot)

    lines = stream.getvalue().splitlines()
    assert count == 3
    assert lines == [
        "::error title=Slow Page Load::Reports page is slow: 5200.00ms",
        "::warning title=Navigation Warning::Settings navigation time is concerning: 1600.00ms",
        "::warning title=Test Alert::Chart render retried",
    ]


def test_annotation_messages_are_escaped():
    stream = io.StringIO()
    GitHubActions(stream=stream).error("line one\nline two 100%", title="Slow: a, b")

    assert stream.getvalue().strip() == "::error title=Slow%3A a%2C b::line one%0Aline two 100%25"


def test_step_summary_appends(tmp_path):
    path = tmp_path / "summary.md"
    github = GitHubActions(step_summary_path=str(path))

    assert github.append_step_summary("# one\n")
    assert github.append_step_summary("# two\n")
    assert path.read_text(encoding="utf-8") == "# one\n# two\n"


def test_step_summary_without_path_logs_only():
    assert GitHubActions().append_step_summary("# hello") is False


def test_step_summary_write_failure_raises(tmp_path):
    github = GitHubActions(step_summary_path=str(tmp_path / "missing-dir" / "summary.md"))

    with pytest.raises(NotificationChannelError):
        github.append_step_summary("# hello")


def test_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(tmp_path / "summary.md"))

    github = GitHubActions.from_environment()

    assert github.status() == {"step_summary": True, "github_output": False}
