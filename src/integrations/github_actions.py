#!/usr/bin/env python3
"""
GitHub Actions side channels.

Writes the job step summary, emits ``::notice`` / ``::warning`` /
``::error`` workflow annotations and publishes named step outputs.
Outside of Actions every channel degrades to logging or stdout.
"""

import os
import sys
import logging
from typing import Any, Dict, List, Optional, TextIO

from core.exceptions import NotificationChannelError
from core.models.metrics import Section
from core.rendering.common import SECTION_ORDER, SECTION_TIERS, tier

logger = logging.getLogger(__name__)

# (error title, warning title, subject template) per section
ANNOTATION_WORDING = {
    Section.PAGE_LOAD: ("Slow Page Load", "Page Load Warning", "{name} page"),
    Section.NAVIGATION: ("Slow Navigation", "Navigation Warning", "{name} navigation"),
    Section.CRITICAL_OPERATIONS: ("Slow Operation", "Operation Warning", "{name} operation"),
}


def _escape_data(value: str) -> str:
    return str(value).replace('%', '%25').replace('\r', '%0D').replace('\n', '%0A')


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(':', '%3A').replace(',', '%2C')


def performance_score(alert_count: int, failure_count: int) -> int:
    """100 minus 5 per alert and 10 per failure, never below zero."""
    return max(0, 100 - alert_count * 5 - failure_count * 10)


class GitHubActions:
    """Publishes run results through the GitHub Actions workflow channels."""

    def __init__(self, step_summary_path: Optional[str] = None, output_path: Optional[str] = None,
                 stream: Optional[TextIO] = None):
        """
        Initialize GitHub Actions channels.

        Args:
            step_summary_path: File behind $GITHUB_STEP_SUMMARY
            output_path: File behind $GITHUB_OUTPUT
            stream: Where annotations are printed (defaults to stdout)
        """
        self.step_summary_path = step_summary_path
        self.output_path = output_path
        self._stream = stream

    @classmethod
    def from_config(cls, ci) -> 'GitHubActions':
        return cls(step_summary_path=ci.step_summary_path, output_path=ci.output_path)

    @classmethod
    def from_environment(cls) -> 'GitHubActions':
        return cls(step_summary_path=os.getenv('GITHUB_STEP_SUMMARY'),
                   output_path=os.getenv('GITHUB_OUTPUT'))

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def _print(self, line: str) -> None:
        print(line, file=self.stream)

    # Step summary

    def append_step_summary(self, content: str) -> bool:
        """
        Append markdown to the step summary.

        Returns:
            True if written to the summary file, False if only logged

        Raises:
            NotificationChannelError: If the summary file cannot be written
        """
        if not self.step_summary_path:
            logger.info("GitHub step summary not available, writing to log")
            logger.info(content)
            return False

        try:
            with open(self.step_summary_path, 'a', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise NotificationChannelError("github_step_summary", "append", e) from e
        logger.debug(f"Appended {len(content)} characters to step summary")
        return True

    # Annotations

    def annotate(self, level: str, message: str, title: str) -> None:
        self._print(f"::{level} title={_escape_property(title)}::{_escape_data(message)}")

    def notice(self, message: str, title: str = 'Performance Notice') -> None:
        self.annotate('notice', message, title)

    def warning(self, message: str, title: str = 'Performance Warning') -> None:
        self.annotate('warning', message, title)

    def error(self, message: str, title: str = 'Performance Error') -> None:
        self.annotate('error', message, title)

    def report_performance_metrics(self, snapshot) -> int:
        """
        Annotate slow sections and echo alerts as warnings.

        Averages above a section's slow tier become errors, above its warning
        tier warnings.

        Returns:
            Number of annotations emitted
        """
        count = 0
        for section in SECTION_ORDER:
            error_title, warning_title, subject = ANNOTATION_WORDING[section]
            for name, stats in snapshot.metrics.section_stats(section).items():
                level = tier(stats.average, section)
                label = subject.format(name=name)
                if level == "slow":
                    self.error(f"{label} is slow: {stats.average:.2f}ms", error_title)
                elif level == "warning":
                    self.warning(f"{label} time is concerning: {stats.average:.2f}ms", warning_title)
                else:
                    continue
                count += 1

        for alert in snapshot.alerts.all():
            self.warning(alert.message, alert.category)
            count += 1

        return count

    # Outputs

    def set_output(self, name: str, value: Any) -> None:
        """
        Publish a step output as ``name=value``.

        Raises:
            NotificationChannelError: If the output file cannot be written
        """
        line = f"{name}={value}"
        if not self.output_path:
            self._print(line)
            return
        try:
            with open(self.output_path, 'a', encoding='utf-8') as f:
                f.write(line + "\n")
        except OSError as e:
            raise NotificationChannelError("github_output", "write", e) from e

    def build_outputs(self, snapshot) -> Dict[str, Any]:
        summary = snapshot.summary
        return {
            'tests_passed': summary.passed,
            'tests_failed': summary.failed,
            'total_tests': summary.total,
            'test_duration': summary.duration_ms,
            'success_rate': f"{summary.success_rate:.1f}",
            'performance_score': performance_score(len(snapshot.alerts), len(snapshot.failures)),
        }

    def set_outputs(self, snapshot) -> Dict[str, Any]:
        """Publish the standard run outputs; returns what was published."""
        outputs = self.build_outputs(snapshot)
        for name, value in outputs.items():
            self.set_output(name, value)
        return outputs

    def status(self) -> Dict[str, bool]:
        return {
            'step_summary': bool(self.step_summary_path),
            'github_output': bool(self.output_path),
        }


def section_tier_table() -> List[str]:
    """Human-readable tier boundaries, used by `ci` command help output."""
    return [f"{section.value}: warning > {warning}ms, slow > {slow}ms"
            for section, (warning, slow) in SECTION_TIERS.items()]
