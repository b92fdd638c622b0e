#!/usr/bin/env python3
"""
Bounded run-over-run trend history.

The history is a single JSON file (``{"runs": [...]}``) holding the most
recent runs in append order. Appending beyond the bound drops the oldest
entries first; order is append order, never timestamp order.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from core.exceptions import ReportWriteError
from core.models.metrics import Section
from core.models.run import TrendEntry
from core.models.timestamps import parse_timestamp, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
HISTORY_ROWS = 10
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class TrendComparison:
    """Deltas between two runs; every field is "N/A" without a baseline."""
    duration_change_pct: Union[float, str] = NOT_AVAILABLE
    passed_change: Union[int, str] = NOT_AVAILABLE
    failed_change: Union[int, str] = NOT_AVAILABLE

    @property
    def has_baseline(self) -> bool:
        return self.passed_change != NOT_AVAILABLE

    @staticmethod
    def _signed(value: Any, suffix: str = "") -> str:
        if value == NOT_AVAILABLE:
            return NOT_AVAILABLE
        return f"{'+' if value > 0 else ''}{value}{suffix}"

    def formatted(self) -> dict:
        """Display strings, e.g. {"duration": "+12.5%", "passed": "-1", ...}."""
        return {
            "duration": self._signed(self.duration_change_pct, "%"),
            "passed": self._signed(self.passed_change),
            "failed": self._signed(self.failed_change),
        }


def build_trend_entry(snapshot, ci=None) -> TrendEntry:
    """
    Summarise a finalized run as a trend entry.

    Args:
        snapshot: RunSnapshot of the run
        ci: CIConfig supplying commit, branch and run id (``unknown`` when absent)
    """
    metrics = snapshot.metrics
    return TrendEntry(
        timestamp=snapshot.generated_at or utc_now_iso(),
        commit=getattr(ci, "sha", None) or "unknown",
        branch=getattr(ci, "ref_name", None) or "unknown",
        run_id=getattr(ci, "run_id", None) or "unknown",
        summary=snapshot.summary,
        page_load_times=metrics.section_stats(Section.PAGE_LOAD),
        navigation_times=metrics.section_stats(Section.NAVIGATION),
        critical_operations=metrics.section_stats(Section.CRITICAL_OPERATIONS),
        alert_count=len(snapshot.alerts)
    )


class TrendStore:
    """Reads, appends to and reports on the trend history file."""

    def __init__(self, path: Union[str, Path], max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.path = Path(path)
        self.max_entries = max_entries

    def load(self) -> List[TrendEntry]:
        """
        Load the history in append order.

        A missing file is an empty history; a corrupt one is logged and
        treated as empty.
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            runs = data.get("runs", []) if isinstance(data, dict) else data
            if not isinstance(runs, list):
                raise ValueError("runs is not a list")
            return [TrendEntry.from_dict(run) for run in runs if isinstance(run, dict)]
        except (OSError, UnicodeDecodeError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not load trends file {self.path}: {e}")
            return []

    def append(self, entry: TrendEntry) -> List[TrendEntry]:
        """
        Append an entry and keep only the most recent ``max_entries``.

        Returns:
            The history as written

        Raises:
            ReportWriteError: If the history cannot be written
        """
        entries = self.load()
        entries.append(entry)
        if len(entries) > self.max_entries:
            dropped = len(entries) - self.max_entries
            entries = entries[-self.max_entries:]
            logger.debug(f"Evicted {dropped} oldest trend entr{'y' if dropped == 1 else 'ies'}")

        self._write(entries)
        logger.info(f"Performance trends updated ({len(entries)} runs)")
        return entries

    def _write(self, entries: List[TrendEntry]) -> None:
        temp_path = self.path.with_suffix('.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump({"runs": [e.to_dict() for e in entries]}, f, ensure_ascii=False, indent=2)
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise ReportWriteError(str(self.path), e) from e

    @staticmethod
    def compare(latest: TrendEntry, previous: Optional[TrendEntry]) -> TrendComparison:
        """Percentage duration change and absolute passed/failed changes."""
        if previous is None:
            return TrendComparison()

        duration_change: Union[float, str] = NOT_AVAILABLE
        if previous.summary.duration_ms:
            change = (latest.summary.duration_ms - previous.summary.duration_ms) / previous.summary.duration_ms * 100
            duration_change = round(change, 1)

        return TrendComparison(
            duration_change_pct=duration_change,
            passed_change=latest.summary.passed - previous.summary.passed,
            failed_change=latest.summary.failed - previous.summary.failed
        )

    def latest_comparison(self, entries: Optional[List[TrendEntry]] = None) -> Optional[TrendComparison]:
        """Comparison of the two most recent entries, or None without history."""
        entries = self.load() if entries is None else entries
        if not entries:
            return None
        previous = entries[-2] if len(entries) > 1 else None
        return self.compare(entries[-1], previous)

    def render_report(self, entries: Optional[List[TrendEntry]] = None) -> str:
        """Markdown trend report for the stored history."""
        entries = self.load() if entries is None else entries
        if not entries:
            return "No trend data available yet.\n"

        latest = entries[-1]
        previous = entries[-2] if len(entries) > 1 else None
        changes = self.compare(latest, previous).formatted()

        def seconds(entry: Optional[TrendEntry]) -> str:
            return f"{entry.summary.duration_seconds:.2f}s" if entry else NOT_AVAILABLE

        lines = [
            "# Performance Trends Report",
            "",
            "## Latest Run vs Previous",
            "",
            "| Metric | Latest | Previous | Change |",
            "|--------|--------|----------|--------|",
            f"| Duration | {seconds(latest)} | {seconds(previous)} | {changes['duration']} |",
            f"| Passed | {latest.summary.passed} | {previous.summary.passed if previous else NOT_AVAILABLE} | {changes['passed']} |",
            f"| Failed | {latest.summary.failed} | {previous.summary.failed if previous else NOT_AVAILABLE} | {changes['failed']} |",
            "",
            "## Recent Performance History",
            "",
            "| Date | Commit | Passed | Failed | Duration | Alerts |",
            "|------|--------|--------|--------|----------|--------|",
        ]

        for entry in entries[-HISTORY_ROWS:]:
            parsed = parse_timestamp(entry.timestamp)
            date = parsed.strftime("%Y-%m-%d") if parsed else entry.timestamp or NOT_AVAILABLE
            lines.append(
                f"| {date} | {entry.commit[:7]} | {entry.summary.passed} | {entry.summary.failed} "
                f"| {seconds(entry)} | {entry.alert_count} |"
            )

        lines.append("")
        return "\n".join(lines)

    def save_report(self, path: Union[str, Path], entries: Optional[List[TrendEntry]] = None) -> Path:
        """
        Write the trend report.

        Raises:
            ReportWriteError: If the file cannot be written
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.render_report(entries), encoding='utf-8')
        except OSError as e:
            raise ReportWriteError(str(path), e) from e
        logger.info(f"Trend report saved to: {path}")
        return path
