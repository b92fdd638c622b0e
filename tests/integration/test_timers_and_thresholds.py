import logging

import pytest

from core.exceptions import ThresholdError, ThresholdLockedError
from core.metric_store import MetricStore
from core.models.metrics import MetricCategory, Section
from core.thresholds import DEFAULT_THRESHOLDS_MS, ThresholdConfig
from core.timers import TimerRegistry


def make_registry(clock, overrides=None):
    store = MetricStore()
    return store, TimerRegistry(store, ThresholdConfig(overrides), clock=clock)


@pytest.mark.parametrize("duration, expected_slow", [(2999, False), (3000, False), (3001, True)])
def test_metric_is_slow_only_when_strictly_above_threshold(fake_clock, duration, expected_slow):
    store, timers = make_registry(fake_clock)

    timers.start_timer("open-menu")
    fake_clock.advance(duration)
    metric = timers.end_timer("open-menu", MetricCategory.USER_ACTION)

    assert metric.duration_ms == duration
    assert metric.threshold_ms == 3000
    assert metric.is_slow is expected_slow
    assert store.all() == (metric,)


def test_end_timer_without_start_records_nothing(fake_clock, caplog):
    caplog.set_level(logging.WARNING, logger="core.timers")
    store, timers = make_registry(fake_clock)

    assert timers.end_timer("never-started") is None
    assert len(store) == 0
    assert "No start time found for action: never-started" in caplog.text


def test_restarting_a_timer_discards_the_first_start(fake_clock):
    store, timers = make_registry(fake_clock)

    timers.start_timer("search")
    fake_clock.advance(5000)
    timers.start_timer("search")
    fake_clock.advance(250)
    metric = timers.end_timer("search")

    assert metric.duration_ms == 250
    assert timers.pending() == []
    # A second end has no pending start
    assert timers.end_timer("search") is None
    assert len(store) == 1


def test_timed_context_records_even_when_block_raises(fake_clock):
    store, timers = make_registry(fake_clock)

    with pytest.raises(RuntimeError):
        with timers.timed("flaky-step", MetricCategory.OTHER):
            fake_clock.advance(40)
            raise RuntimeError("boom")

    assert [m.name for m in store.all()] == ["flaky-step"]
    assert store.all()[0].section is Section.CRITICAL_OPERATIONS


def test_slow_timer_logs_warning(fake_clock, caplog):
    caplog.set_level(logging.INFO, logger="core.timers")
    _, timers = make_registry(fake_clock, {"apiCall": 100})

    timers.start_timer("GET /alerts")
    fake_clock.advance(150)
    timers.end_timer("GET /alerts", MetricCategory.API_CALL)

    assert "SLOW PERFORMANCE: GET /alerts took 150ms (threshold: 100ms)" in caplog.text


def test_threshold_defaults_and_overrides():
    thresholds = ThresholdConfig({"pageLoad": 1000, MetricCategory.NETWORK: 750})

    assert thresholds.threshold_for(MetricCategory.PAGE_LOAD) == 1000
    assert thresholds.threshold_for(MetricCategory.NETWORK) == 750
    assert thresholds.threshold_for(MetricCategory.API_CALL) == DEFAULT_THRESHOLDS_MS[MetricCategory.API_CALL]
    assert thresholds.as_dict()["userAction"] == 3000


@pytest.mark.parametrize("value", [0, -5, "fast", True])
def test_threshold_rejects_non_positive_values(value):
    with pytest.raises(ThresholdError):
        ThresholdConfig({"pageLoad": value})


@pytest.mark.parametrize("key", ["pageload", "apicall", ""])
def test_threshold_rejects_unknown_category(key):
    with pytest.raises(ThresholdError) as excinfo:
        ThresholdConfig({key: 100})

    assert "unknown metric category" in str(excinfo.value)


def test_threshold_typo_leaves_other_untouched():
    thresholds = ThresholdConfig()

    with pytest.raises(ThresholdError):
        thresholds.override({"other": 400, "pageload": 100})

    assert thresholds.as_dict()["other"] == DEFAULT_THRESHOLDS_MS[MetricCategory.OTHER]


def test_threshold_accepts_member_names():
    thresholds = ThresholdConfig({"API_CALL": 1500})
    assert thresholds.threshold_for(MetricCategory.API_CALL) == 1500


def test_thresholds_lock_after_first_read():
    thresholds = ThresholdConfig()
    thresholds.override({"other": 500})
    assert not thresholds.locked

    thresholds.threshold_for(MetricCategory.OTHER)

    assert thresholds.locked
    with pytest.raises(ThresholdLockedError):
        thresholds.override({"other": 900})
    assert thresholds.threshold_for(MetricCategory.OTHER) == 500
