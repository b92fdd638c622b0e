#!/usr/bin/env python3
"""
CI command endpoints for the GitHub Actions side channels.

Each subcommand rebuilds the run snapshot from the artifacts on disk, so
they can be run as separate workflow steps after the test job.
"""

import logging
from argparse import Namespace

from core.report_pipeline import ReportPipeline
from core.rendering import render_step_summary
from integrations.github_actions import section_tier_table

from .base import BaseCommand

logger = logging.getLogger(__name__)


class CICommand(BaseCommand):
    """Publish annotations, step outputs and the step summary."""

    subcommands = ['annotate', 'outputs', 'summary']

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute ci subcommand."""
        try:
            if subcommand == "annotate":
                return self.annotate(args)
            elif subcommand == "outputs":
                return self.outputs(args)
            elif subcommand == "summary":
                return self.summary(args)
            else:
                return self.unknown_subcommand(subcommand)

        except Exception as e:
            return self.handle_error(e, f"ci {subcommand}")

    def _snapshot(self):
        return ReportPipeline(self.config, collector=self.create_snapshot_collector()).build_snapshot()

    def annotate(self, args: Namespace) -> int:
        """Emit workflow annotations for slow sections and alerts."""
        count = self.github.report_performance_metrics(self._snapshot())
        if count == 0:
            logger.info("✅ No sections above their warning tier")
            for line in section_tier_table():
                logger.info(f"   {line}")
        else:
            logger.info(f"Emitted {count} annotations")
        return 0

    def outputs(self, args: Namespace) -> int:
        """Publish the standard step outputs."""
        outputs = self.github.set_outputs(self._snapshot())
        logger.info(f"Published {len(outputs)} step outputs")
        return 0

    def summary(self, args: Namespace) -> int:
        """Append the run summary to the job step summary."""
        comparison = None
        if self.config.trends.enabled:
            comparison = self.trend_store.latest_comparison()

        written = self.github.append_step_summary(render_step_summary(self._snapshot(), comparison))
        if written:
            print("✅ Step summary updated")
        else:
            print("ℹ️  GITHUB_STEP_SUMMARY not set, summary written to log")
        return 0
