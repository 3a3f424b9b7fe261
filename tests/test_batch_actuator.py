"""
Unit tests for BatchActuator.

Tests batching, cooldowns, budget checks, failure isolation, dry runs
and the per-run action cap.
"""

import pytest
from decimal import Decimal

from campaign_optimizer.agents.batch_actuator import BatchActuator
from campaign_optimizer.agents.budget_guard import BudgetGuard
from campaign_optimizer.api.mock_platform_api import MockPlatformAPI
from campaign_optimizer.models.actions import ActionOutcome, Classification, SkipReason
from campaign_optimizer.utils.audit_logger import AuditLogger


def pauses(n):
    """Helper to create n pause classifications for campaigns c00..c(n-1)."""
    return [Classification.pause(f"c{i:02d}", reason="No conversions") for i in range(n)]


@pytest.fixture
def api(make_campaign):
    """Mock platform with 30 campaigns, each bidding $2.00."""
    return MockPlatformAPI(campaigns=[
        make_campaign(f"c{i:02d}", cost=500, conversions=0, bid=2.0) for i in range(30)
    ])


@pytest.fixture
def guard(clock):
    return BudgetGuard(ceiling_seconds=600, clock=clock)


class TestBatching:
    """Test batch order and cooldown."""

    def test_applies_in_order(self, api, guard, clock):
        entries = pauses(25)
        actuator = BatchActuator(api, batch_size=10, cooldown_seconds=1.0, sleep=clock.sleep)

        results = actuator.run(entries, guard)

        assert [r.campaign_id for r in results] == [e.campaign_id for e in entries]
        assert all(r.outcome == ActionOutcome.APPLIED for r in results)
        assert [m["campaign_id"] for m in api.mutation_log] == [e.campaign_id for e in entries]
        assert api.get_campaign_status("c00") == "PAUSED"

    def test_cooldown_between_batches_only(self, api, guard):
        """Test that 25 entries in batches of 10 wait twice, never before the first batch."""
        sleeps = []
        actuator = BatchActuator(api, batch_size=10, cooldown_seconds=1.5, sleep=sleeps.append)

        actuator.run(pauses(25), guard)

        assert sleeps == [1.5, 1.5]

    def test_zero_cooldown_never_sleeps(self, api, guard):
        sleeps = []
        BatchActuator(api, batch_size=1, cooldown_seconds=0, sleep=sleeps.append).run(pauses(3), guard)
        assert sleeps == []

    def test_reduce_bid(self, api, guard):
        entry = Classification.reduce_bid("c03", Decimal("0.20"), reason="High CPA")
        results = BatchActuator(api, cooldown_seconds=0).run([entry], guard)

        assert results[0].outcome == ActionOutcome.APPLIED
        assert api.get_campaign_bid_micros("c03") == 1_600_000

    def test_rejects_no_action_entries(self, api, guard):
        with pytest.raises(ValueError):
            BatchActuator(api).run([Classification.no_action("c00")], guard)

    @pytest.mark.parametrize("kwargs", [
        {"batch_size": 0},
        {"cooldown_seconds": -1},
        {"max_actions": -1},
    ])
    def test_invalid_settings(self, api, kwargs):
        with pytest.raises(ValueError):
            BatchActuator(api, **kwargs)


class TestBudget:
    """Test budget checks between batches."""

    def test_skips_remaining_batches_once_expired(self, api, clock):
        """Test that the guard is re-checked after each cooldown."""
        guard = BudgetGuard(ceiling_seconds=1.5, clock=clock)
        actuator = BatchActuator(api, batch_size=2, cooldown_seconds=1.0, sleep=clock.sleep)

        results = actuator.run(pauses(5), guard)

        assert [r.outcome for r in results] == [ActionOutcome.APPLIED] * 4 + [ActionOutcome.SKIPPED]
        assert results[4].skip_reason == SkipReason.BUDGET_EXCEEDED
        assert len(api.mutation_log) == 4

    def test_no_cooldown_past_the_ceiling(self, api, clock):
        """Test that a cooldown longer than the remaining budget is never started."""
        sleeps = []

        def sleep(seconds):
            sleeps.append(seconds)
            clock.advance(seconds)

        guard = BudgetGuard(ceiling_seconds=250, host_limit_seconds=300, clock=clock)
        actuator = BatchActuator(api, batch_size=1, cooldown_seconds=100, sleep=sleep)

        results = actuator.run(pauses(4), guard)

        assert sleeps == [100, 100]
        assert [r.outcome for r in results] == [ActionOutcome.APPLIED] * 3 + [ActionOutcome.SKIPPED]
        assert results[3].skip_reason == SkipReason.BUDGET_EXCEEDED
        assert guard.elapsed() == 200
        assert guard.elapsed() < guard.budget.host_limit_seconds

    def test_expired_before_first_batch(self, api, clock):
        guard = BudgetGuard(ceiling_seconds=1, clock=clock)
        clock.advance(5)

        results = BatchActuator(api).run(pauses(3), guard)

        assert all(r.skip_reason == SkipReason.BUDGET_EXCEEDED for r in results)
        assert api.mutation_log == []


class TestFailureIsolation:
    """Test that one failing mutation never stops the rest."""

    def test_exception_and_rejection_become_failures(self, make_campaign, guard):
        api = MockPlatformAPI(
            campaigns=[make_campaign(f"c{i:02d}", cost=500, conversions=0) for i in range(4)],
            failing_campaigns=["c01"],
            rejecting_campaigns=["c02"],
        )

        results = BatchActuator(api, batch_size=2, cooldown_seconds=0).run(pauses(4), guard)

        assert [r.outcome for r in results] == [
            ActionOutcome.APPLIED,
            ActionOutcome.FAILED,
            ActionOutcome.FAILED,
            ActionOutcome.APPLIED,
        ]
        assert results[1].error_detail.startswith("ActuationError:")
        assert results[2].error_detail == "Platform rejected pause for c02"
        assert api.get_campaign_status("c03") == "PAUSED"

    def test_unknown_campaign_fails(self, api, guard):
        results = BatchActuator(api).run([Classification.pause("ghost", reason="x")], guard)
        assert results[0].outcome == ActionOutcome.FAILED


class TestDryRunAndLimits:
    """Test dry-run mode and the action cap."""

    def test_dry_run_touches_nothing(self, api, guard):
        results = BatchActuator(api, dry_run=True).run(pauses(5), guard)

        assert all(r.skip_reason == SkipReason.DRY_RUN for r in results)
        assert api.mutation_log == []
        assert api.get_campaign_status("c00") == "ENABLED"

    def test_max_actions(self, api, guard):
        results = BatchActuator(api, cooldown_seconds=0, max_actions=2).run(pauses(5), guard)

        assert [r.outcome for r in results[:2]] == [ActionOutcome.APPLIED] * 2
        assert all(r.skip_reason == SkipReason.ACTION_LIMIT for r in results[2:])
        assert len(api.mutation_log) == 2

    def test_max_actions_zero(self, api, guard):
        results = BatchActuator(api, max_actions=0).run(pauses(3), guard)
        assert all(r.skip_reason == SkipReason.ACTION_LIMIT for r in results)

    def test_every_outcome_is_audited(self, api, guard, tmp_path):
        logger = AuditLogger(log_file="audit.jsonl", log_dir=str(tmp_path))
        BatchActuator(api, cooldown_seconds=0, max_actions=3, audit_logger=logger).run(pauses(5), guard)

        stats = logger.get_summary_stats()
        assert stats["actions_by_outcome"] == {"applied": 3, "skipped": 2}
