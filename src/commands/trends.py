#!/usr/bin/env python3
"""
Trend command endpoints for inspecting run-over-run history.
"""

import logging
from argparse import Namespace

from core.trend_store import TrendStore

from .base import BaseCommand

logger = logging.getLogger(__name__)


class TrendsCommand(BaseCommand):
    """Show and compare stored performance trends."""

    subcommands = ['show', 'compare']

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute trends subcommand."""
        try:
            if subcommand == "show":
                return self.show(args)
            elif subcommand == "compare":
                return self.compare(args)
            else:
                return self.unknown_subcommand(subcommand)

        except Exception as e:
            return self.handle_error(e, f"trends {subcommand}")

    def _store(self, args: Namespace) -> TrendStore:
        path = getattr(args, 'file', None)
        if path:
            return TrendStore(path)
        return self.trend_store

    def show(self, args: Namespace) -> int:
        """Print the markdown trend report."""
        store = self._store(args)
        print(store.render_report())
        return 0

    def compare(self, args: Namespace) -> int:
        """Compare the two most recent runs."""
        store = self._store(args)
        entries = store.load()
        comparison = store.latest_comparison(entries)

        if comparison is None:
            print(f"📭 No trend data in {store.path}")
            return 0

        latest = entries[-1]
        changes = comparison.formatted()
        print(f"📊 Latest run: {latest.timestamp} ({latest.commit[:7]} on {latest.branch})")
        print(f"   • Passed: {latest.summary.passed} ({changes['passed']})")
        print(f"   • Failed: {latest.summary.failed} ({changes['failed']})")
        print(f"   • Duration: {latest.summary.duration_seconds:.2f}s ({changes['duration']})")
        if not comparison.has_baseline:
            print("ℹ️  Only one run recorded, nothing to compare against yet")
        return 0
