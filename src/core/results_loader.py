#!/usr/bin/env python3
"""
Test-results document loader.

Reads the JSON document the browser test runner writes at the end of a run
(``stats`` plus a nested ``suites`` tree) and turns it into summaries,
flattened test records and captured output for the signal parser.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from core.exceptions import ResultsNotFoundError, ResultsParseError
from core.models.run import TestRunSummary
from core.models.test_record import ResultAttempt, SuiteRecord, TestRecord

logger = logging.getLogger(__name__)

DEFAULT_RESULTS_CANDIDATES = (
    "test-reports/test-results.json",
    "playwright-report/results.json",
    "results.json",
)

FAILED_STATUSES = ("failed", "timedOut", "unexpected", "interrupted")


def find_results_file(candidates: Iterable[Union[str, Path]] = DEFAULT_RESULTS_CANDIDATES,
                      base_dir: Union[str, Path] = ".") -> Path:
    """
    Return the first candidate results file that exists.

    Raises:
        ResultsNotFoundError: If none of the candidates exist
    """
    base = Path(base_dir)
    candidates = [Path(c) for c in candidates]
    for candidate in candidates:
        path = candidate if candidate.is_absolute() else base / candidate
        if path.is_file():
            logger.info(f"📊 Reading test results from {path}")
            return path
    raise ResultsNotFoundError([str(c) for c in candidates])


def load_results(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a results document.

    Raises:
        ResultsParseError: If the file cannot be read or is not a JSON object
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ResultsParseError(str(path), e) from e

    if not isinstance(document, dict):
        raise ResultsParseError(str(path), TypeError(f"expected a JSON object, got {type(document).__name__}"))
    return document


def summarize_results(document: Dict[str, Any]) -> TestRunSummary:
    """Build the run summary from the document's ``stats`` block."""
    stats = document.get("stats") or {}
    summary = TestRunSummary(
        passed=int(stats.get("expected") or 0),
        failed=int(stats.get("unexpected") or 0),
        skipped=int(stats.get("skipped") or 0),
        duration_ms=float(stats.get("duration") or 0),
        start_time=stats.get("startTime")
    )
    logger.info(f"✅ Test stats: {summary.passed} passed, {summary.failed} failed, "
                f"{summary.total} total, {summary.duration_ms}ms")
    return summary


def _test_status(test: Dict[str, Any]) -> str:
    if test.get("status"):
        return test["status"]
    statuses = [result.get("status") for result in test.get("results") or []]
    for status in ("passed", "failed", "skipped"):
        if status in statuses:
            return status
    return "unknown"


def _join_output(entries: Optional[List[Any]]) -> str:
    texts = []
    for entry in entries or []:
        if isinstance(entry, dict):
            entry = entry.get("text", "")
        if isinstance(entry, str):
            texts.append(entry)
    return "\n".join(texts)


def _attempt(result: Dict[str, Any]) -> ResultAttempt:
    errors = result.get("errors") or []
    first_error = errors[0] if errors and isinstance(errors[0], dict) else {}
    return ResultAttempt(
        status=result.get("status", "unknown"),
        duration_ms=result.get("duration") or 0,
        error_message=first_error.get("message"),
        error_stack=first_error.get("stack"),
        retry=result.get("retry") or 0,
        start_time=result.get("startTime"),
        attachments=len(result.get("attachments") or []),
        worker_index=result.get("workerIndex"),
        stdout=_join_output(result.get("stdout")),
        stderr=_join_output(result.get("stderr"))
    )


def _collect_tests(suite: Dict[str, Any], into: List[TestRecord],
                   performance: Dict[str, Dict[str, Any]]) -> None:
    for spec in suite.get("specs") or []:
        for test in spec.get("tests") or []:
            results = test.get("results") or []
            title = test.get("title") or spec.get("title", "")
            record = TestRecord(
                title=title,
                full_title=f"{suite.get('title', '')} > {spec.get('title', '')}",
                status=_test_status(test),
                duration_ms=sum(result.get("duration") or 0 for result in results),
                browser=test.get("projectName") or "Unknown",
                file=suite.get("file", ""),
                project_id=test.get("projectId"),
                results=[_attempt(result) for result in results],
                performance=performance.get(title)
            )
            into.append(record)

    for nested in suite.get("suites") or []:
        _collect_tests(nested, into, performance)


def flatten_suites(document: Dict[str, Any],
                   performance: Optional[Dict[str, Dict[str, Any]]] = None) -> Tuple[List[SuiteRecord], List[TestRecord]]:
    """
    Flatten the suite tree into top-level suites and leaf tests.

    Nested suites are visited recursively; their tests are attributed to the
    enclosing top-level suite.

    Args:
        document: Results document
        performance: Metric snapshots keyed by test name, attached to matching tests

    Returns:
        (suites, tests) with tests in document order
    """
    performance = performance or {}
    suites: List[SuiteRecord] = []
    tests: List[TestRecord] = []

    for suite in document.get("suites") or []:
        suite_tests: List[TestRecord] = []
        _collect_tests(suite, suite_tests, performance)
        suites.append(SuiteRecord(title=suite.get("title", ""), file=suite.get("file", ""), tests=suite_tests))
        tests.extend(suite_tests)

    return suites, tests


def _iter_results(suite: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    for spec in suite.get("specs") or []:
        for test in spec.get("tests") or []:
            for result in test.get("results") or []:
                yield result
    for nested in suite.get("suites") or []:
        yield from _iter_results(nested)


def iter_captured_output(document: Dict[str, Any]) -> Iterator[List[Any]]:
    """Yield each result's stdout and stderr arrays, in document order."""
    for suite in document.get("suites") or []:
        for result in _iter_results(suite):
            for stream in ("stdout", "stderr"):
                entries = result.get(stream)
                if entries:
                    yield entries


def failures_from_results(document: Dict[str, Any]) -> List[Tuple[str, str]]:
    """(title, first error message) for every failed test."""
    _, tests = flatten_suites(document)
    failures = []
    for test in tests:
        if test.status in FAILED_STATUSES:
            failures.append((test.title, test.first_error or "Unknown error"))
    return failures


def count_result_directories(path: Union[str, Path]) -> Optional[TestRunSummary]:
    """
    Derive a summary from a per-test artifacts directory.

    Each subdirectory is one test; it counts as failed when any file name in
    it contains "failed" or "error".

    Returns:
        Summary, or None if the directory does not exist
    """
    directory = Path(path)
    if not directory.is_dir():
        return None

    passed = failed = 0
    for entry in sorted(directory.iterdir()):
        if not entry.is_dir():
            continue
        names = [child.name for child in entry.iterdir()]
        if any("failed" in name or "error" in name for name in names):
            failed += 1
        else:
            passed += 1

    logger.info(f"📁 Extracted from {directory}: {passed + failed} total, {passed} passed, {failed} failed")
    return TestRunSummary(passed=passed, failed=failed)
