#!/usr/bin/env python3
"""
Signal command endpoints: recover metrics from captured test logs.
"""

import json
import logging
from argparse import Namespace
from pathlib import Path

from core.models.metrics import Metric
from core.signal_parser import parse_signals

from .base import BaseCommand

logger = logging.getLogger(__name__)


class SignalsCommand(BaseCommand):
    """Parse performance signals out of captured output."""

    subcommands = ['parse']

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute signals subcommand."""
        try:
            if subcommand == "parse":
                return self.parse(args)
            else:
                return self.unknown_subcommand(subcommand)

        except Exception as e:
            return self.handle_error(e, f"signals {subcommand}")

    def parse(self, args: Namespace) -> int:
        """Run the signal parser over a log file."""
        path = Path(args.file)
        text = path.read_text(encoding='utf-8', errors='replace')
        signals = parse_signals(text, self.config.thresholds.to_threshold_config())

        metrics = [s for s in signals if isinstance(s, Metric)]
        alerts = [s for s in signals if not isinstance(s, Metric)]

        if getattr(args, 'format', 'text') == 'json':
            print(json.dumps({
                'metrics': [m.to_dict() for m in metrics],
                'alerts': [a.to_dict() for a in alerts],
            }, ensure_ascii=False, indent=2))
            return 0

        print(f"🔍 Parsed {path}: {len(metrics)} metrics, {len(alerts)} alerts")
        for metric in metrics:
            marker = "🔴" if metric.is_slow else "🟢"
            print(f"   {marker} [{metric.category.value}] {metric.name}: {metric.duration_ms}ms "
                  f"(threshold {metric.threshold_ms}ms)")
        for alert in alerts:
            print(f"   ⚠️  {alert.category}: {alert.message}")
        return 0
