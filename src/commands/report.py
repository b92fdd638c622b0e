#!/usr/bin/env python3
"""
Report command endpoints: post-run aggregation and report generation.
"""

import json
import logging
from argparse import Namespace
from dataclasses import replace
from pathlib import Path

from core.config import Config, PathsConfig
from core.report_pipeline import ReportPipeline
from core.rendering import build_test_summary
from core.trend_store import TrendStore
from integrations.github_actions import GitHubActions

from .base import BaseCommand

logger = logging.getLogger(__name__)


class ReportCommand(BaseCommand):
    """Generate performance reports from a finished test run."""

    subcommands = ['generate', 'summary']

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute report subcommand."""
        try:
            if subcommand == "generate":
                return self.generate(args)
            elif subcommand == "summary":
                return self.summary(args)
            else:
                return self.unknown_subcommand(subcommand)

        except Exception as e:
            return self.handle_error(e, f"report {subcommand}")

    def effective_config(self, args: Namespace) -> Config:
        """Configuration with command line overrides applied."""
        config = self.config
        output_dir = getattr(args, 'output_dir', None)
        if output_dir:
            output_dir = Path(output_dir)
            config = replace(
                config,
                paths=replace(PathsConfig.rooted_at(output_dir), results_file=config.paths.results_file),
                trends=replace(config.trends, trends_file=output_dir / 'performance-reports' / 'trends.json')
            )
        return config

    def build_pipeline(self, args: Namespace, with_outputs: bool = True) -> ReportPipeline:
        config = self.effective_config(args)
        results = getattr(args, 'results', None)

        trend_store = None
        github = None
        notifier = None
        if with_outputs:
            if config.trends.enabled and not getattr(args, 'no_trends', False):
                trend_store = TrendStore(config.trends.trends_file, max_entries=config.trends.max_entries)
            if config.ci.github_actions and not getattr(args, 'no_ci', False):
                github = GitHubActions.from_config(config.ci)
            if getattr(args, 'slack', False):
                notifier = self.create_slack_notifier()

        return ReportPipeline(
            config,
            trend_store=trend_store,
            github=github,
            notifier=notifier,
            results_path=Path(results) if results else None
        )

    def generate(self, args: Namespace) -> int:
        """Aggregate metrics and write every report."""
        if getattr(args, 'verbose', False):
            logging.getLogger().setLevel(logging.DEBUG)

        print("🎯 Generating performance reports...")
        pipeline = self.build_pipeline(args)
        paths = pipeline.run()

        if paths.fallback:
            print("⚠️  Inputs could not be processed, fallback report written")

        print(f"\n=== Generated Reports ===")
        for name, path in paths.written().items():
            print(f"📄 {name}: {path}")

        if pipeline.comparison is not None and pipeline.comparison.has_baseline:
            changes = pipeline.comparison.formatted()
            print(f"\n📈 vs previous run: duration {changes['duration']}, "
                  f"passed {changes['passed']}, failed {changes['failed']}")

        if paths.failed_stages:
            print(f"\n⚠️  Stages with errors: {', '.join(paths.failed_stages)}")

        print("✅ Performance report generation complete")
        return 0

    def summary(self, args: Namespace) -> int:
        """Print the machine-readable run summary."""
        pipeline = self.build_pipeline(args, with_outputs=False)
        snapshot = pipeline.build_snapshot()
        print(json.dumps(build_test_summary(snapshot, pipeline.suites, pipeline.tests),
                         ensure_ascii=False, indent=2))
        return 0
