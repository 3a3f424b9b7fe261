"""
Quick example demonstrating the Campaign Optimizer.

Run this to see the optimizer in action with mock data.
"""

from campaign_optimizer.config import OptimizerConfig
from campaign_optimizer.models.actions import ActionOutcome
from campaign_optimizer.models.platform import Platform
from campaign_optimizer.orchestrator import OptimizerOrchestrator


def main():
    print("\n" + "=" * 70)
    print(" CAMPAIGN OPTIMIZER - DEMO")
    print("=" * 70 + "\n")

    config = OptimizerConfig(
        platform=Platform.GOOGLE,
        page_size=10,
        batch_size=5,
        cooldown_seconds=0.2,
    )

    # Mock APIs, no Slack
    orchestrator = OptimizerOrchestrator(
        config=config,
        slack_webhook=None,
        audit_log_file="demo_audit.jsonl",
        results_dir="demo_results",
    )

    summary = orchestrator.run(run_name="demo")

    print("\n" + "=" * 70)
    print(" ACTIONS")
    print("=" * 70 + "\n")

    for result in summary.results:
        marker = {
            ActionOutcome.APPLIED: "[OK]",
            ActionOutcome.FAILED: "[FAIL]",
            ActionOutcome.SKIPPED: "[SKIP]",
        }[result.outcome]
        print(f"{marker:<7} {result.campaign_id:<14} {result.action.value}")

    print("\n" + "=" * 70)
    print(" END OF DEMO")
    print("=" * 70 + "\n")

    print("✅ Check 'demo_audit.jsonl' for full audit trail")


if __name__ == "__main__":
    main()
