#!/usr/bin/env python3
"""
Flattened test-result records.

Leaf tests pulled out of the nested suite tree of a results document.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


@dataclass
class ResultAttempt:
    """One execution attempt of a test (retries produce several)."""
    status: str
    duration_ms: float
    error_message: Optional[str] = None
    error_stack: Optional[str] = None
    retry: int = 0
    start_time: Optional[str] = None
    attachments: int = 0
    worker_index: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    def to_dict(self) -> Dict[str, Any]:
        error = None
        if self.error_message is not None:
            error = {"message": self.error_message, "stack": self.error_stack}
        return {
            "status": self.status,
            "duration": self.duration_ms,
            "error": error,
            "retry": self.retry,
            "startTime": self.start_time,
            "attachments": self.attachments,
            "workerIndex": self.worker_index,
            "stdout": self.stdout,
            "stderr": self.stderr
        }


@dataclass
class TestRecord:
    """A single leaf test with its attempts."""
    title: str
    full_title: str
    status: str
    duration_ms: float
    browser: str = "Unknown"
    file: str = ""
    project_id: Optional[str] = None
    results: List[ResultAttempt] = field(default_factory=list)
    performance: Optional[Dict[str, Any]] = None

    __test__ = False

    @property
    def first_error(self) -> Optional[str]:
        for attempt in self.results:
            if attempt.error_message:
                return attempt.error_message
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "title": self.title,
            "fullTitle": self.full_title,
            "status": self.status,
            "duration": self.duration_ms,
            "browser": self.browser,
            "file": self.file,
            "projectId": self.project_id,
            "results": [attempt.to_dict() for attempt in self.results]
        }
        if self.performance is not None:
            data["performance"] = self.performance
        return data


@dataclass
class SuiteRecord:
    """A top-level suite and every leaf test beneath it."""
    title: str
    file: str
    tests: List[TestRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "file": self.file,
            "tests": [test.to_dict() for test in self.tests]
        }
