#!/usr/bin/env python3
"""
Integrations command endpoints for managing external service connections.
"""

import logging
from argparse import Namespace

from core.config import get_config_manager

from .base import BaseCommand

logger = logging.getLogger(__name__)


class IntegrationsCommand(BaseCommand):
    """Handle external integration operations."""

    subcommands = ['status', 'slack']

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute integrations subcommand."""
        try:
            if subcommand == "status":
                return self.status(args)
            elif subcommand == "slack":
                return self.slack(args)
            else:
                return self.unknown_subcommand(subcommand)

        except Exception as e:
            return self.handle_error(e, f"integrations {subcommand}")

    def status(self, args: Namespace) -> int:
        """Show status of all integrations."""
        status = get_config_manager().get_integration_status()
        labels = {
            'slack_webhook': 'SLACK_WEBHOOK_URL',
            'github_actions': 'GITHUB_ACTIONS',
            'step_summary': 'GITHUB_STEP_SUMMARY',
            'github_output': 'GITHUB_OUTPUT',
        }

        print("📊 Integration Status:")
        for key, label in labels.items():
            print(f"   • {label}: {'✅ Set' if status.get(key) else '❌ Missing'}")
        return 0

    def slack(self, args: Namespace) -> int:
        """Test or manage Slack integration."""
        action = getattr(args, 'action', 'test')

        if action == 'test':
            print("🔍 Testing Slack connection...")
            success = self.create_slack_notifier().test_connection()

            if success:
                print("✅ Slack integration working")
                return 0
            print("❌ Slack integration failed")
            return 1

        elif action == 'send':
            message = getattr(args, 'message', None) or 'Test message from perfwatch CLI'
            if self.create_slack_notifier().send_message(message):
                print(f"✅ Message sent to Slack: {message}")
                return 0
            print("❌ Failed to send message")
            return 1

        else:
            self.logger.error(f"Unknown slack action '{action}'. Use 'test' or 'send'")
            return 1
