"""
Run accounting.

Folds classifications and action results into a RunSummary, enforcing
that every actionable classification ends up with exactly one result.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from campaign_optimizer.errors import AccountingError
from campaign_optimizer.models.actions import (
    ActionOutcome,
    ActionResult,
    ActionType,
    Classification,
    RunSummary,
    SkipReason,
    StopReason,
)


class RunAccountant:
    """Pure producer of RunSummary objects; holds no state between runs."""

    def reconcile(
        self,
        entries: Sequence[Classification],
        results: Sequence[ActionResult],
        skip_reason: SkipReason = SkipReason.RUN_ABORTED
    ) -> List[ActionResult]:
        """
        Pair results with entries.

        Args:
            entries: Actionable classifications in order
            results: Results produced so far (any subset of entries)
            skip_reason: Reason recorded for entries that never got a result

        Returns:
            Exactly one result per entry, in entry order

        Raises:
            AccountingError: On duplicate results, results for unknown
                campaigns, or results whose action does not match
        """
        by_id: Dict[str, ActionResult] = {}
        for result in results:
            if result.campaign_id in by_id:
                raise AccountingError(f"Duplicate result for {result.campaign_id}")
            by_id[result.campaign_id] = result

        reconciled = []
        seen = set()
        for entry in entries:
            if entry.campaign_id in seen:
                raise AccountingError(f"Campaign {entry.campaign_id} classified twice")
            seen.add(entry.campaign_id)

            result = by_id.pop(entry.campaign_id, None)
            if result is None:
                result = ActionResult.skipped(entry, skip_reason)
            elif result.action != entry.action:
                raise AccountingError(
                    f"Result for {entry.campaign_id} is {result.action.value}, "
                    f"expected {entry.action.value}"
                )
            reconciled.append(result)

        if by_id:
            raise AccountingError(
                f"Results without a classification: {', '.join(sorted(by_id))}"
            )
        return reconciled

    def summarize(
        self,
        entries: Sequence[Classification],
        results: Sequence[ActionResult],
        stop_reason: StopReason,
        elapsed_seconds: float,
        records_processed: int = 0,
        records_excluded: int = 0,
        no_action: int = 0,
        pages_fetched: int = 0,
        input_errors: Sequence[Tuple[str, str]] = (),
        fetch_error: Optional[str] = None
    ) -> RunSummary:
        """
        Build the final RunSummary.

        Entries left without a result are skipped for the budget when the
        run stopped on it, and recorded as aborted otherwise.
        """
        skip_reason = (
            SkipReason.BUDGET_EXCEEDED
            if stop_reason == StopReason.BUDGET_EXCEEDED
            else SkipReason.RUN_ABORTED
        )
        reconciled = self.reconcile(entries, results, skip_reason)

        summary = RunSummary(
            stop_reason=stop_reason,
            elapsed_seconds=elapsed_seconds,
            records_processed=records_processed,
            records_excluded=records_excluded,
            records_invalid=len(input_errors),
            pages_fetched=pages_fetched,
            no_action=no_action,
            fetch_error=fetch_error,
            errors=list(input_errors),
            results=reconciled,
        )

        spend_by_id = {e.campaign_id: e.spend for e in entries}
        spend_paused = Decimal("0")

        for result in reconciled:
            if result.outcome == ActionOutcome.APPLIED:
                summary.applied += 1
                if result.action == ActionType.PAUSE:
                    summary.paused += 1
                    spend_paused += spend_by_id[result.campaign_id]
                else:
                    summary.bid_adjusted += 1
            elif result.outcome == ActionOutcome.FAILED:
                summary.failed += 1
                summary.errors.append((result.campaign_id, result.error_detail))
            else:
                summary.skipped += 1
                key = result.skip_reason.value
                summary.skipped_by_reason[key] = summary.skipped_by_reason.get(key, 0) + 1

        summary.spend_paused = spend_paused

        if summary.applied + summary.failed + summary.skipped != len(entries):
            raise AccountingError("Outcome counts do not add up to the actionable classifications")

        return summary
