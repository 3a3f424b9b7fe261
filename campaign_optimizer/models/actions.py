"""
Classification, action result and run summary models.

- ActionType is the closed set of decisions a campaign can receive
- Classification binds one decision to one campaign
- ActionResult records what happened when the decision was carried out
- RunSummary is the final report handed to notifiers
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ActionType(Enum):
    """Decision assigned to a campaign."""
    NO_ACTION = "no_action"
    PAUSE = "pause"
    REDUCE_BID = "reduce_bid"


class ActionOutcome(Enum):
    """Terminal state of an action."""
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"


class SkipReason(Enum):
    """Why an action was never attempted."""
    BUDGET_EXCEEDED = "budget_exceeded"
    DRY_RUN = "dry_run"
    ACTION_LIMIT = "action_limit"
    RUN_ABORTED = "run_aborted"


class StopReason(Enum):
    """How a run ended."""
    COMPLETED = "completed"
    BUDGET_EXCEEDED = "budget_exceeded"
    FETCH_FAILED = "fetch_failed"
    INVALID_INPUT = "invalid_input"


@dataclass(frozen=True)
class Classification:
    """
    The single decision reached for one campaign.

    Use the no_action / pause / reduce_bid factories; the constructor
    rejects combinations that do not belong to the action type.
    """
    campaign_id: str
    campaign_name: str
    action: ActionType
    reason: str = ""
    bid_fraction: Optional[Decimal] = None
    spend: Decimal = Decimal("0")

    def __post_init__(self):
        if self.action == ActionType.REDUCE_BID:
            if self.bid_fraction is None or not (0 < self.bid_fraction < 1):
                raise ValueError(
                    f"Bid reduction for {self.campaign_id} needs a fraction in (0, 1), "
                    f"got {self.bid_fraction}"
                )
        elif self.bid_fraction is not None:
            raise ValueError(f"{self.action.value} does not take a bid fraction")

        if self.action == ActionType.PAUSE and not self.reason:
            raise ValueError(f"Pause of {self.campaign_id} needs a reason")

    @classmethod
    def no_action(cls, campaign_id: str, campaign_name: str = "", spend: Decimal = Decimal("0")):
        return cls(campaign_id, campaign_name or campaign_id, ActionType.NO_ACTION, spend=spend)

    @classmethod
    def pause(cls, campaign_id: str, reason: str, campaign_name: str = "", spend: Decimal = Decimal("0")):
        return cls(campaign_id, campaign_name or campaign_id, ActionType.PAUSE, reason=reason, spend=spend)

    @classmethod
    def reduce_bid(
        cls,
        campaign_id: str,
        fraction: Decimal,
        reason: str = "",
        campaign_name: str = "",
        spend: Decimal = Decimal("0")
    ):
        return cls(
            campaign_id,
            campaign_name or campaign_id,
            ActionType.REDUCE_BID,
            reason=reason,
            bid_fraction=fraction,
            spend=spend,
        )

    @property
    def requires_action(self) -> bool:
        return self.action != ActionType.NO_ACTION

    def to_dict(self) -> Dict:
        return {
            "campaign_id": self.campaign_id,
            "campaign_name": self.campaign_name,
            "action": self.action.value,
            "reason": self.reason,
            "bid_fraction": str(self.bid_fraction) if self.bid_fraction is not None else None,
            "spend": str(self.spend),
        }


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one actionable classification."""
    campaign_id: str
    action: ActionType
    outcome: ActionOutcome
    error_detail: Optional[str] = None
    skip_reason: Optional[SkipReason] = None

    def __post_init__(self):
        if self.outcome == ActionOutcome.SKIPPED and self.skip_reason is None:
            raise ValueError("Skipped results need a skip reason")
        if self.outcome != ActionOutcome.SKIPPED and self.skip_reason is not None:
            raise ValueError("Only skipped results carry a skip reason")
        if self.outcome == ActionOutcome.FAILED and not self.error_detail:
            raise ValueError("Failed results need an error detail")

    @classmethod
    def applied(cls, entry: Classification) -> "ActionResult":
        return cls(entry.campaign_id, entry.action, ActionOutcome.APPLIED)

    @classmethod
    def failed(cls, entry: Classification, detail: str) -> "ActionResult":
        return cls(entry.campaign_id, entry.action, ActionOutcome.FAILED, error_detail=detail)

    @classmethod
    def skipped(cls, entry: Classification, reason: SkipReason) -> "ActionResult":
        return cls(entry.campaign_id, entry.action, ActionOutcome.SKIPPED, skip_reason=reason)

    def to_dict(self) -> Dict:
        return {
            "campaign_id": self.campaign_id,
            "action": self.action.value,
            "outcome": self.outcome.value,
            "error_detail": self.error_detail,
            "skip_reason": self.skip_reason.value if self.skip_reason else None,
        }


def _display_amount(amount: Decimal) -> str:
    """Round a money total to cents for display only."""
    return str(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass
class RunSummary:
    """
    Final accounting of an optimizer run.

    Every actionable classification is represented exactly once in
    `results`, so applied + failed + skipped always equals actions_total.
    """
    stop_reason: StopReason
    elapsed_seconds: float
    records_processed: int = 0
    records_excluded: int = 0
    records_invalid: int = 0
    pages_fetched: int = 0
    no_action: int = 0
    paused: int = 0
    bid_adjusted: int = 0
    applied: int = 0
    failed: int = 0
    skipped: int = 0
    skipped_by_reason: Dict[str, int] = field(default_factory=dict)
    spend_paused: Decimal = Decimal("0")
    fetch_error: Optional[str] = None
    errors: List[Tuple[str, str]] = field(default_factory=list)
    results: List[ActionResult] = field(default_factory=list)

    @property
    def actions_total(self) -> int:
        """Number of actionable (non no-action) classifications."""
        return len(self.results)

    @property
    def is_complete(self) -> bool:
        return self.stop_reason == StopReason.COMPLETED

    @property
    def stopped_for_budget(self) -> bool:
        return self.stop_reason == StopReason.BUDGET_EXCEEDED

    @property
    def stopped_for_failure(self) -> bool:
        return self.stop_reason in (StopReason.FETCH_FAILED, StopReason.INVALID_INPUT)

    def to_dict(self) -> Dict:
        """Serialize for notifiers, audit logs and results history."""
        return {
            "stop_reason": self.stop_reason.value,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "records_processed": self.records_processed,
            "records_excluded": self.records_excluded,
            "records_invalid": self.records_invalid,
            "pages_fetched": self.pages_fetched,
            "no_action": self.no_action,
            "paused": self.paused,
            "bid_adjusted": self.bid_adjusted,
            "applied": self.applied,
            "failed": self.failed,
            "skipped": self.skipped,
            "skipped_by_reason": dict(self.skipped_by_reason),
            "actions_total": self.actions_total,
            "spend_paused": _display_amount(self.spend_paused),
            "fetch_error": self.fetch_error,
            "errors": [
                {"campaign_id": campaign_id, "detail": detail}
                for campaign_id, detail in self.errors
            ],
        }

    def __str__(self) -> str:
        return (
            f"RunSummary(stop={self.stop_reason.value}, "
            f"processed={self.records_processed}, "
            f"applied={self.applied}, failed={self.failed}, "
            f"skipped={self.skipped}, elapsed={self.elapsed_seconds:.1f}s)"
        )
