"""
Batched application of pause and bid mutations.

Each entry moves from pending to exactly one terminal outcome:
applied, failed (the platform said no or raised), or skipped (never
attempted because of the budget, dry-run mode or the per-run cap).
"""

import time
from typing import Callable, Iterator, List, Optional, Sequence

from campaign_optimizer.agents.budget_guard import BudgetGuard
from campaign_optimizer.models.actions import (
    ActionResult,
    ActionType,
    Classification,
    SkipReason,
)
from campaign_optimizer.utils.audit_logger import AuditLogger


def _chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


class BatchActuator:
    """
    Apply actionable classifications to the platform in fixed-size batches.

    Responsibilities:
    - Keep classification order across and within batches
    - Isolate per-item failures so one bad mutation never stops the run
    - Wait out a cooldown between batches to respect platform rate limits
    - Re-check the budget before every batch and skip what is left once expired,
      or once the remaining time no longer covers the cooldown
    """

    DEFAULT_BATCH_SIZE = 10
    DEFAULT_COOLDOWN_SECONDS = 1.0

    def __init__(
        self,
        platform_api,
        batch_size: int = DEFAULT_BATCH_SIZE,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        dry_run: bool = False,
        max_actions: Optional[int] = None,
        audit_logger: Optional[AuditLogger] = None
    ):
        """
        Initialize actuator.

        Args:
            platform_api: Client with pause_campaign and reduce_campaign_bid
            batch_size: Entries per batch
            cooldown_seconds: Pause between consecutive batches
            sleep: Callable used for the cooldown
            dry_run: Record every entry as skipped without calling the platform
            max_actions: Maximum mutations attempted per run (None for unlimited)
            audit_logger: Optional AuditLogger for per-action events
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must not be negative, got {cooldown_seconds}")
        if max_actions is not None and max_actions < 0:
            raise ValueError(f"max_actions must not be negative, got {max_actions}")

        self.platform_api = platform_api
        self.batch_size = batch_size
        self.cooldown_seconds = cooldown_seconds
        self.dry_run = dry_run
        self.max_actions = max_actions
        self.audit_logger = audit_logger
        self._sleep = sleep

    def run(self, entries: Sequence[Classification], guard: BudgetGuard) -> List[ActionResult]:
        """
        Actuate all entries.

        Args:
            entries: Actionable classifications in classification order
            guard: Budget guard of the current run

        Returns:
            One ActionResult per entry, in entry order

        Raises:
            ValueError: If an entry is a no-action classification
        """
        for entry in entries:
            if not entry.requires_action:
                raise ValueError(f"{entry.campaign_id} has nothing to actuate")

        if self.dry_run:
            return [self._record(ActionResult.skipped(e, SkipReason.DRY_RUN)) for e in entries]

        limit = len(entries) if self.max_actions is None else min(self.max_actions, len(entries))
        to_apply = entries[:limit]
        over_limit = entries[limit:]

        results: List[ActionResult] = []
        for index, batch in enumerate(_chunked(to_apply, self.batch_size)):
            # Never start a cooldown the budget cannot absorb
            out_of_time = guard.expired()
            if not out_of_time and index > 0 and self.cooldown_seconds:
                if guard.remaining() <= self.cooldown_seconds:
                    out_of_time = True
                else:
                    self._sleep(self.cooldown_seconds)
                    out_of_time = guard.expired()

            if out_of_time:
                pending = to_apply[len(results):]
                results.extend(
                    self._record(ActionResult.skipped(e, SkipReason.BUDGET_EXCEEDED))
                    for e in pending
                )
                break

            results.extend(self.apply_batch(batch))

        results.extend(
            self._record(ActionResult.skipped(e, SkipReason.ACTION_LIMIT))
            for e in over_limit
        )
        return results

    def apply_batch(self, batch: Sequence[Classification]) -> List[ActionResult]:
        """Apply every entry of a batch, never letting one failure stop the rest."""
        return [self._record(self.apply_one(entry)) for entry in batch]

    def apply_one(self, entry: Classification) -> ActionResult:
        """
        Apply a single mutation.

        Returns:
            APPLIED on success, FAILED with detail on a False return or exception
        """
        try:
            if entry.action == ActionType.PAUSE:
                success = self.platform_api.pause_campaign(entry.campaign_id)
            elif entry.action == ActionType.REDUCE_BID:
                success = self.platform_api.reduce_campaign_bid(entry.campaign_id, entry.bid_fraction)
            else:
                raise ValueError(f"Unsupported action {entry.action.value}")
        except Exception as e:
            return ActionResult.failed(entry, f"{type(e).__name__}: {e}")

        if not success:
            return ActionResult.failed(
                entry, f"Platform rejected {entry.action.value} for {entry.campaign_id}"
            )
        return ActionResult.applied(entry)

    def _record(self, result: ActionResult) -> ActionResult:
        if self.audit_logger:
            self.audit_logger.log_action(result)
        return result
