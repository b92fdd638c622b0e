import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from core.config import reset_config  # noqa: E402
from core.container import reset_container  # noqa: E402

ENV_VARS = (
    "CI", "GITHUB_ACTIONS", "GITHUB_STEP_SUMMARY", "GITHUB_OUTPUT", "GITHUB_SHA",
    "GITHUB_REF_NAME", "GITHUB_RUN_ID", "SLACK_WEBHOOK_URL", "SLACK_TIMEOUT",
    "PERF_OUTPUT_DIR", "PERF_REPORTS_DIR", "PERF_RESULTS_FILE", "PERF_METRICS_DIRS",
    "PERF_TRENDS_FILE", "PERF_TREND_MAX_ENTRIES", "PERF_DISABLE_TRENDS",
    "PERF_THRESHOLD_PAGE_LOAD", "PERF_THRESHOLD_USER_ACTION", "PERF_THRESHOLD_API_CALL",
    "PERF_THRESHOLD_NETWORK", "PERF_THRESHOLD_OTHER", "LOG_LEVEL", "VERBOSE_LOGGING",
)


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000


class FakePage:
    def __init__(self, url: str = "https://monitor.local/dashboard", load_time: Optional[float] = 1800) -> None:
        self.url = url
        self.load_time = load_time
        self.scripts: List[str] = []

    def evaluate(self, script: str) -> Dict[str, Any]:
        self.scripts.append(script)
        return {"loadTime": self.load_time, "domContentLoaded": 900, "firstPaint": 0}


class FakeSlackResponse:
    def __init__(self, status_code: int = 200, text: str = "ok") -> None:
        self.status_code = status_code
        self.text = text


class FakeSlackPost:
    """Stands in for requests.post and records every call."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.response: Any = FakeSlackResponse()

    def __call__(self, url, json=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    reset_container()
    yield
    reset_config()
    reset_container()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def slack_post(monkeypatch) -> FakeSlackPost:
    fake = FakeSlackPost()
    monkeypatch.setattr("integrations.slack_notifier.requests.post", fake)
    return fake


def build_results_document() -> Dict[str, Any]:
    return {
        "stats": {
            "expected": 3,
            "unexpected": 1,
            "skipped": 1,
            "duration": 12500,
            "startTime": "2024-05-01T10:00:00.000Z",
        },
        "suites": [
            {
                "title": "dashboard.spec.ts",
                "file": "dashboard.spec.ts",
                "specs": [
                    {
                        "title": "Dashboard page load",
                        "tests": [{
                            "projectName": "chromium",
                            "status": "expected",
                            "results": [{
                                "status": "passed",
                                "duration": 1200,
                                "stdout": [{"text": "Dashboard page loaded in 1250ms\n"}],
                                "stderr": [],
                            }],
                        }],
                    },
                    {
                        "title": "Export operation",
                        "tests": [{
                            "projectName": "chromium",
                            "results": [{
                                "status": "failed",
                                "duration": 4000,
                                "errors": [{
                                    "message": "Timeout 3000ms exceeded",
                                    "stack": "Error: Timeout\n    at export.spec.ts:10\n    at runner.ts:20",
                                }],
                                "stdout": ["SLOW PERFORMANCE: Export took 3500ms (threshold: 3000ms)"],
                            }],
                        }],
                    },
                ],
                "suites": [
                    {
                        "title": "nested",
                        "specs": [{
                            "title": "Settings navigation",
                            "tests": [{"results": [{"status": "passed", "duration": 800}]}],
                        }],
                    }
                ],
            },
            {
                "title": "search.spec.ts",
                "file": "search.spec.ts",
                "specs": [{
                    "title": "Search filter",
                    "tests": [{"results": [{"status": "skipped", "duration": 0}]}],
                }],
            },
        ],
    }


@pytest.fixture
def results_document() -> Dict[str, Any]:
    return build_results_document()


@pytest.fixture
def results_file(tmp_path, results_document) -> Path:
    path = tmp_path / "test-reports" / "test-results.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(results_document), encoding="utf-8")
    return path


@pytest.fixture
def metrics_snapshot_file(tmp_path) -> Path:
    path = tmp_path / "performance-metrics" / "dashboard-1700000000000.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({
        "testName": "Dashboard page load",
        "timestamp": "2024-05-01T10:00:05+00:00",
        "metrics": [
            {"name": "Dashboard", "duration": 980, "category": "pageLoad", "threshold": 1000,
             "isSlowPerformance": False, "url": "https://monitor.local/dashboard"},
            {"name": "Dashboard", "duration": 1020, "category": "pageLoad", "threshold": 1000,
             "isSlowPerformance": True, "url": "https://monitor.local/dashboard"},
        ],
        "timers": {"filter-apply": 420},
        "alerts": [{"message": "Chart render retried"}],
    }), encoding="utf-8")
    return path
