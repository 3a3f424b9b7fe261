"""
Slack notification utility.

Sends the optimizer run summary to Slack via webhook integration.
"""

import requests
from datetime import datetime, timezone
from typing import Dict, List, Optional

from campaign_optimizer.models.actions import RunSummary, StopReason


class SlackNotifier:
    """
    Send formatted Slack notifications for optimizer runs.

    The message states how the run ended (completed, budget exhausted or
    failed), the action counts, and the first few errors for diagnosis.
    """

    MAX_ERROR_LINES = 10

    STOP_REASON_TEXT = {
        StopReason.COMPLETED: "Completed",
        StopReason.BUDGET_EXCEEDED: "Stopped at execution budget",
        StopReason.FETCH_FAILED: "Failed: report fetch error",
        StopReason.INVALID_INPUT: "Failed: invalid report data",
    }

    def __init__(self, webhook_url: str, timeout: float = 10):
        """
        Initialize Slack notifier with webhook URL.

        Args:
            webhook_url: Slack incoming webhook URL
            timeout: HTTP timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def _get_emoji(self, summary: RunSummary) -> str:
        """Get appropriate emoji for the run outcome."""
        if summary.stopped_for_failure:
            return "🚨"
        elif summary.stopped_for_budget or summary.failed or summary.records_invalid:
            return "⚠️"
        else:
            return "✅"

    def _get_status(self, summary: RunSummary) -> str:
        """Stop reason text, flagging rows that were set aside as invalid."""
        status = self.STOP_REASON_TEXT[summary.stop_reason]
        if summary.records_invalid:
            status += f" with {summary.records_invalid} invalid records"
        return status

    def build_summary_blocks(
        self,
        summary: RunSummary,
        platform: str,
        dry_run: bool = False
    ) -> List[Dict]:
        """Build Slack message blocks for a run summary."""
        emoji = self._get_emoji(summary)
        status = self._get_status(summary)
        data = summary.to_dict()
        title = f"{emoji} Campaign Optimizer: {status}"
        if dry_run:
            title += " (dry run)"

        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": title, "emoji": True}
            },
            {"type": "divider"},
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Platform:*\n{platform.upper()}"},
                    {"type": "mrkdwn", "text": f"*Campaigns reviewed:*\n{summary.records_processed}"},
                    {"type": "mrkdwn", "text": f"*Paused:*\n{summary.paused}"},
                    {"type": "mrkdwn", "text": f"*Bids lowered:*\n{summary.bid_adjusted}"},
                    {"type": "mrkdwn", "text": f"*Failed:*\n{summary.failed}"},
                    {"type": "mrkdwn", "text": f"*Skipped:*\n{summary.skipped}"},
                    {"type": "mrkdwn", "text": f"*Spend paused:*\n${data['spend_paused']}"},
                    {"type": "mrkdwn", "text": f"*Elapsed:*\n{summary.elapsed_seconds:.1f}s"},
                ]
            },
        ]

        if summary.fetch_error:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Fetch error:*\n{summary.fetch_error}"}
            })

        if summary.errors:
            lines = [
                f"• `{campaign_id}`: {detail}"
                for campaign_id, detail in summary.errors[:self.MAX_ERROR_LINES]
            ]
            hidden = len(summary.errors) - self.MAX_ERROR_LINES
            if hidden > 0:
                lines.append(f"…and {hidden} more")
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": "*Errors:*\n" + "\n".join(lines)}
            })

        blocks.extend([
            {"type": "divider"},
            {
                "type": "context",
                "elements": [
                    {
                        "type": "mrkdwn",
                        "text": f"Generated at {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}"
                    }
                ]
            }
        ])

        return blocks

    def send_run_summary(
        self,
        summary: RunSummary,
        platform: str,
        dry_run: bool = False
    ) -> bool:
        """
        Send a run summary to Slack.

        Args:
            summary: Final RunSummary of the run
            platform: Platform name (google, meta, etc.)
            dry_run: Whether mutations were suppressed

        Returns:
            True if message sent successfully, False otherwise
        """
        status = self._get_status(summary)
        message = {
            "text": f"Campaign Optimizer {status}: {summary.applied} applied, "
                    f"{summary.failed} failed, {summary.skipped} skipped",
            "blocks": self.build_summary_blocks(summary, platform, dry_run),
        }
        return self._post(message, "summary")

    def _post(self, message: Dict, label: str) -> bool:
        try:
            response = requests.post(
                self.webhook_url,
                json=message,
                timeout=self.timeout
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            print(f"Failed to send Slack {label}: {e}")
            return False

    def test_connection(self) -> bool:
        """
        Test Slack webhook connection.

        Returns:
            True if connection successful
        """
        message = {
            "text": "🤖 Campaign Optimizer - Test Message",
            "blocks": [
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": "Campaign Optimizer webhook test successful! :white_check_mark:"
                    }
                }
            ]
        }
        return self._post(message, "test message")
