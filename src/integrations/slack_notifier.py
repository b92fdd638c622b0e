#!/usr/bin/env python3
"""
Slack integration for sending performance run summaries.

Posts a compact block-kit summary of a finalized run to a Slack incoming
webhook.
"""

import os
import logging
from typing import Any, Dict, List, Optional

import requests

from core.models.timestamps import utc_now
from core.rendering.common import SECTION_ORDER, fmt_ms, fmt_pct

logger = logging.getLogger(__name__)

MAX_SLOW_ITEMS = 5


class SlackNotifier:
    """Handles sending run summaries to Slack."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: int = 10):
        """
        Initialize Slack notifier.

        Args:
            webhook_url: Slack webhook URL. If None, tries to get from environment.
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url or os.getenv('SLACK_WEBHOOK_URL')
        if not self.webhook_url:
            raise ValueError("Slack webhook URL not provided and not found in SLACK_WEBHOOK_URL environment variable")

        self.timeout = timeout
        self.max_message_length = 4000

    def send_message(self, text: str, username: str = "PerfWatch") -> bool:
        """
        Send a simple text message to Slack.

        Returns:
            True if sent successfully, False otherwise
        """
        if len(text) > self.max_message_length:
            text = text[:self.max_message_length - 3] + "..."

        payload = {
            "text": text,
            "username": username,
            "icon_emoji": ":stopwatch:"
        }
        return self._send_webhook_message(payload)

    def format_run_summary(self, snapshot, comparison=None) -> Dict[str, Any]:
        """Build the block-kit payload for a run summary."""
        summary = snapshot.summary
        status = "✅" if summary.failed == 0 else "❌"

        blocks: List[Dict[str, Any]] = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f"{status} Performance Test Results", "emoji": True}
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Passed:* {summary.passed}"},
                    {"type": "mrkdwn", "text": f"*Failed:* {summary.failed}"},
                    {"type": "mrkdwn", "text": f"*Total:* {summary.total}"},
                    {"type": "mrkdwn", "text": f"*Success rate:* {fmt_pct(summary.success_rate)}"},
                    {"type": "mrkdwn", "text": f"*Duration:* {summary.duration_seconds:.2f}s"},
                    {"type": "mrkdwn", "text": f"*Alerts:* {len(snapshot.alerts)}"},
                ]
            }
        ]

        section_lines = []
        for section in SECTION_ORDER:
            overall = snapshot.metrics.overall_stats(section)
            if overall.count:
                section_lines.append(f"• *{section.value}*: {overall.count} samples, avg {fmt_ms(overall.average)}")
        if section_lines:
            blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(section_lines)}})

        slow = snapshot.metrics.slow()
        if slow:
            items = [f"• {m.name}: {m.duration_ms}ms (threshold {m.threshold_ms}ms)" for m in slow[:MAX_SLOW_ITEMS]]
            if len(slow) > MAX_SLOW_ITEMS:
                items.append(f"…and {len(slow) - MAX_SLOW_ITEMS} more")
            blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": "*🐢 Slow metrics*\n" + "\n".join(items)}})

        context = f"📅 {utc_now().strftime('%Y-%m-%d %H:%M')} UTC"
        if comparison is not None and comparison.has_baseline:
            changes = comparison.formatted()
            context += f" | Duration {changes['duration']} vs previous run"
        blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": context}]})

        return {
            "text": f"Performance tests: {summary.passed} passed, {summary.failed} failed",
            "username": "PerfWatch",
            "icon_emoji": ":stopwatch:",
            "blocks": blocks
        }

    def send_run_summary(self, snapshot, comparison=None) -> bool:
        """Send a run summary; returns False on any delivery failure."""
        return self._send_webhook_message(self.format_run_summary(snapshot, comparison))

    def _send_webhook_message(self, payload: Dict[str, Any]) -> bool:
        """
        Send a message via Slack webhook.

        Returns:
            True if sent successfully, False otherwise
        """
        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout,
                verify=True,
                headers={"Content-Type": "application/json"}
            )

            if response.status_code == 200:
                logger.info("Slack message sent successfully")
                return True
            else:
                logger.error(f"Slack webhook failed with status {response.status_code}: {response.text}")
                return False

        except requests.RequestException as e:
            logger.error(f"Failed to send Slack message: {e}")
            return False

    def test_connection(self) -> bool:
        """Test Slack webhook connection."""
        success = self.send_message(
            f"🧪 Test message from PerfWatch - {utc_now().strftime('%Y-%m-%d %H:%M:%S')} UTC",
            username="PerfWatch Test"
        )

        if success:
            logger.info("Slack connection test successful")
        else:
            logger.error("Slack connection test failed")

        return success
