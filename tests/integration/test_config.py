import os
from pathlib import Path

import pytest

from core.config import ConfigManager
from core.env_loader import get_env_flag, get_env_list, load_env_file, parse_env_line
from core.exceptions import ConfigurationError
from core.models.metrics import MetricCategory


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    config = ConfigManager(load_env=False).get_config()

    assert config.paths.markdown_report == Path("performance.md")
    assert config.paths.html_report == Path("test-reports/performance-report.html")
    assert config.paths.metrics_dirs == [Path("performance-metrics"), Path("test-reports/metrics")]
    assert config.trends.trends_file == Path("performance-reports/trends.json")
    assert config.trends.report_file == Path("performance-reports/trend-report.md")
    assert config.trends.max_entries == 50
    assert config.trends.enabled
    assert not config.has_slack()
    assert not config.ci.github_actions


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PERF_OUTPUT_DIR", str(tmp_path))
    monkeypatch.setenv("PERF_THRESHOLD_PAGE_LOAD", "2500")
    monkeypatch.setenv("PERF_METRICS_DIRS", "a, b")
    monkeypatch.setenv("PERF_DISABLE_TRENDS", "true")
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    monkeypatch.setenv("GITHUB_SHA", "abc1234def")
    monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.com/services/x")

    config = ConfigManager(load_env=False).get_config()

    assert config.paths.summary_json == tmp_path / "test-reports" / "test-summary.json"
    assert config.paths.metrics_dirs == [Path("a"), Path("b")]
    thresholds = config.thresholds.to_threshold_config()
    assert thresholds.threshold_for(MetricCategory.PAGE_LOAD) == 2500
    assert not config.trends.enabled
    assert config.ci.github_actions and config.ci.is_ci
    assert config.ci.sha == "abc1234def"
    assert config.has_slack()


def test_results_candidates(tmp_path):
    config = ConfigManager(load_env=False).get_config()
    assert config.paths.results_candidates()[0] == Path("test-reports/test-results.json")

    config.paths.results_file = tmp_path / "custom.json"
    assert config.paths.results_candidates() == [tmp_path / "custom.json"]


def test_invalid_values_are_collected(monkeypatch):
    monkeypatch.setenv("PERF_THRESHOLD_OTHER", "-1")
    monkeypatch.setenv("PERF_TREND_MAX_ENTRIES", "lots")
    monkeypatch.setenv("SLACK_WEBHOOK_URL", "http://insecure")
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    with pytest.raises(ConfigurationError) as excinfo:
        ConfigManager(load_env=False).get_config()

    message = str(excinfo.value)
    assert "PERF_THRESHOLD_OTHER must be positive" in message
    assert "PERF_TREND_MAX_ENTRIES must be a number" in message
    assert "SLACK_WEBHOOK_URL must start with https://" in message
    assert "LOG_LEVEL must be one of" in message


@pytest.mark.parametrize("value, message", [
    ("0", "PERF_TREND_MAX_ENTRIES must be at least 1"),
    ("-5", "PERF_TREND_MAX_ENTRIES must be at least 1"),
    ("inf", "PERF_TREND_MAX_ENTRIES must be a finite number"),
])
def test_trend_max_entries_rejects_out_of_range(monkeypatch, value, message):
    monkeypatch.setenv("PERF_TREND_MAX_ENTRIES", value)

    with pytest.raises(ConfigurationError) as excinfo:
        ConfigManager(load_env=False).get_config()

    assert message in str(excinfo.value)


def test_trend_max_entries_override(monkeypatch):
    monkeypatch.setenv("PERF_TREND_MAX_ENTRIES", "7")
    assert ConfigManager(load_env=False).get_config().trends.max_entries == 7


@pytest.mark.parametrize("line, expected", [
    ("KEY=value", ("KEY", "value")),
    ("export KEY='quoted value'", ("KEY", "quoted value")),
    ('KEY="a=b"', ("KEY", "a=b")),
    ("# comment", None),
    ("   ", None),
])
def test_parse_env_line(line, expected):
    assert parse_env_line(line) == expected


def test_env_file_does_not_override_existing(monkeypatch, tmp_path):
    monkeypatch.setenv("PERF_OUTPUT_DIR", "from-env")
    monkeypatch.setenv("PERF_REPORTS_DIR", "unset")
    monkeypatch.delenv("PERF_REPORTS_DIR")
    env_file = tmp_path / ".env"
    env_file.write_text("PERF_OUTPUT_DIR=from-file\nPERF_REPORTS_DIR=reports\nnot a pair\n", encoding="utf-8")

    loaded = load_env_file(env_file)

    assert loaded == 1
    assert os.environ["PERF_OUTPUT_DIR"] == "from-env"
    assert os.environ["PERF_REPORTS_DIR"] == "reports"


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("FLAG_ON", "Yes")
    monkeypatch.setenv("LIST", "one,, two ,")

    assert get_env_flag("FLAG_ON")
    assert not get_env_flag("FLAG_MISSING")
    assert get_env_list("LIST") == ["one", "two"]
    assert get_env_list("LIST_MISSING", ["x"]) == ["x"]
