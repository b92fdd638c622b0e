import pytest

from core.models.metrics import Alert, Metric, MetricCategory
from core.signal_parser import parse_output_lines, parse_signals
from core.thresholds import ThresholdConfig


def test_page_loaded_line_becomes_page_load_metric():
    signals = parse_signals("Analysis page loaded in 1250ms")

    assert len(signals) == 1
    metric = signals[0]
    assert metric.category is MetricCategory.PAGE_LOAD
    assert metric.name == "Analysis"
    assert metric.duration_ms == 1250
    assert metric.threshold_ms == 5000
    assert not metric.is_slow


def test_slow_performance_line_yields_metric_and_alert():
    metric, alert = parse_signals("⚠️  SLOW PERFORMANCE: Export CSV took 3500ms (threshold: 3000ms)")

    assert isinstance(metric, Metric)
    assert metric.name == "Export CSV"
    assert metric.threshold_ms == 3000
    assert metric.is_slow
    assert isinstance(alert, Alert)
    assert alert.category == "Performance Warning"
    assert alert.message == "Export CSV took 3500ms (threshold: 3000ms)"


@pytest.mark.parametrize("line, name", [
    ("✅ open alert drawer completed in 420ms", "open alert drawer"),
    ("Search completed in 88ms", "Search"),
    ("Timer completed: chart-render = 95.5ms", "chart-render"),
])
def test_completion_lines_become_other_metrics(line, name):
    [metric] = parse_signals(line)

    assert metric.category is MetricCategory.OTHER
    assert metric.name == name


def test_unmatched_lines_contribute_nothing():
    assert parse_signals("") == []
    assert parse_signals("starting worker 3\nnavigating to /dashboard") == []


def test_configured_thresholds_apply_to_parsed_metrics():
    signals = parse_signals("Reports page loaded in 1500ms", ThresholdConfig({"pageLoad": 1000}))
    assert signals[0].is_slow


def test_output_lines_accept_text_objects_and_strings():
    entries = [
        {"text": "Dashboard page loaded in 900ms\n"},
        "Timer completed: filter = 30ms",
        {"buffer": "aGVsbG8="},
        42,
    ]

    names = [s.name for s in parse_output_lines(entries)]

    assert names == ["Dashboard", "filter"]
