"""
Main orchestrator for running the Campaign Optimizer.

This module provides the entry point: it wires the report source, the
platform API, the pipeline and the output collaborators (console, audit
log, results history, Slack) around a single optimizer run.
"""

import os
import sys
from datetime import datetime, timezone
from typing import Optional

from campaign_optimizer.agents.optimizer_brain import OptimizerBrain
from campaign_optimizer.api.mock_platform_api import MockPlatformAPI
from campaign_optimizer.config import OptimizerConfig
from campaign_optimizer.models.actions import RunSummary, StopReason
from campaign_optimizer.utils.audit_logger import AuditLogger
from campaign_optimizer.utils.results_tracker import ResultsTracker
from campaign_optimizer.utils.slack_notifier import SlackNotifier


class OptimizerOrchestrator:
    """
    Orchestrates one optimizer run and delivers its summary.

    Responsibilities:
    - Initialize the platform API (mock by default) and the pipeline
    - Run the pipeline under the configured execution budget
    - Print a console report, save the run, and notify Slack
    """

    def __init__(
        self,
        config: Optional[OptimizerConfig] = None,
        platform_api=None,
        report_source=None,
        slack_webhook: Optional[str] = None,
        audit_log_file: str = "audit_log.jsonl",
        results_dir: Optional[str] = "results",
        **brain_kwargs
    ):
        """
        Initialize orchestrator.

        Args:
            config: Optimizer configuration (from environment if omitted)
            platform_api: Platform client for mutations (mock if omitted)
            report_source: Paginated report source (platform_api if omitted)
            slack_webhook: Slack webhook URL for the run summary
            audit_log_file: Path to audit log file
            results_dir: Directory for saved runs (None disables saving)
            **brain_kwargs: Extra OptimizerBrain arguments (clock, sleep, today)
        """
        self.config = config or OptimizerConfig.from_env()
        self.slack_webhook = slack_webhook or os.getenv("SLACK_WEBHOOK_URL")

        self.audit_logger = AuditLogger(log_file=audit_log_file)
        self.results_tracker = ResultsTracker(results_dir) if results_dir else None
        self.slack_notifier = SlackNotifier(self.slack_webhook) if self.slack_webhook else None

        # Mock API for MVP
        self.platform_api = platform_api or MockPlatformAPI(
            self.config.platform, num_campaigns=25, seed=42
        )
        self.report_source = report_source or self.platform_api

        self.brain = OptimizerBrain(
            report_source=self.report_source,
            platform_api=self.platform_api,
            config=self.config,
            audit_logger=self.audit_logger,
            **brain_kwargs
        )

    def run(self, run_name: Optional[str] = None, verbose: bool = True) -> RunSummary:
        """
        Run the optimizer once and deliver the summary.

        Returns:
            RunSummary of the run
        """
        if verbose:
            print(f"\n{'=' * 70}")
            print("Campaign Optimizer - Run Started")
            print(f"Timestamp: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}")
            print(f"Platform:  {self.config.platform.value.upper()}")
            print(f"Budget:    {self.config.ceiling_seconds:.0f}s "
                  f"(host limit {self.config.host_limit_seconds:.0f}s)")
            if self.config.dry_run:
                print("Mode:      DRY RUN (no mutations)")
            print(f"{'=' * 70}\n")

        summary = self.brain.run()

        if verbose:
            self._print_summary(summary)

        if self.results_tracker:
            path = self.results_tracker.save_run(
                summary, self.config.to_dict(), run_name=run_name
            )
            if verbose:
                print(f"Results saved to: {path}")

        if self.slack_notifier:
            self.slack_notifier.send_run_summary(
                summary,
                platform=self.config.platform.value,
                dry_run=self.config.dry_run
            )

        return summary

    def _get_result_emoji(self, stop_reason: StopReason) -> str:
        """Get emoji for result display."""
        return {
            StopReason.COMPLETED: "✅",
            StopReason.BUDGET_EXCEEDED: "⏱️",
            StopReason.FETCH_FAILED: "🚨",
            StopReason.INVALID_INPUT: "🚨",
        }.get(stop_reason, "❓")

    def _print_summary(self, summary: RunSummary):
        """Print summary report of the run."""
        data = summary.to_dict()
        emoji = self._get_result_emoji(summary.stop_reason)

        print(f"{'=' * 70}")
        status = summary.stop_reason.value
        if summary.records_invalid:
            status += f" ({summary.records_invalid} invalid records set aside)"
        print(f"📊 Run Summary: {emoji} {status}")
        print(f"{'=' * 70}\n")

        print(f"Pages fetched:            {summary.pages_fetched}")
        print(f"Campaigns processed:      {summary.records_processed}")
        print(f"  No action:              {summary.no_action}")
        print(f"  Excluded (no impr.):    {summary.records_excluded}")
        print(f"  Invalid:                {summary.records_invalid}")
        print(f"\nActions:                  {summary.actions_total}")
        print(f"  ✅ Applied:              {summary.applied} "
              f"({summary.paused} paused, {summary.bid_adjusted} bids lowered)")
        print(f"  ❌ Failed:               {summary.failed}")
        print(f"  ⏭️  Skipped:              {summary.skipped} {data['skipped_by_reason'] or ''}")
        print(f"\n💰 Spend paused:          ${data['spend_paused']}")
        print(f"⏱️  Elapsed:               {summary.elapsed_seconds:.1f}s")

        if summary.fetch_error:
            print(f"\n🚨 Fetch error: {summary.fetch_error}")

        if summary.errors:
            print("\nErrors:")
            for campaign_id, detail in summary.errors[:10]:
                print(f"  - {campaign_id}: {detail}")

        print(f"\n{'=' * 70}\n")


def exit_code(summary: RunSummary) -> int:
    """Process exit code: 0 for completed or budget-truncated runs, 1 for failures."""
    return 1 if summary.stopped_for_failure else 0


def main() -> int:
    """
    Main entry point for running the Campaign Optimizer.

    Usage:
        python -m campaign_optimizer.orchestrator
    """
    try:
        config = OptimizerConfig.from_env()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        return 2

    orchestrator = OptimizerOrchestrator(
        config=config,
        audit_log_file=os.getenv("OPTIMIZER_AUDIT_LOG", "audit_log.jsonl"),
        results_dir=os.getenv("OPTIMIZER_RESULTS_DIR", "results"),
    )
    summary = orchestrator.run()
    return exit_code(summary)


if __name__ == "__main__":
    sys.exit(main())
