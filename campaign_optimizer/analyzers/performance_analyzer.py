"""
Campaign performance classifier.

This module implements the threshold policy that decides, for every
normalized campaign record, whether to pause it, lower its bid, or leave
it alone.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Union

from campaign_optimizer.errors import ClassificationInputError
from campaign_optimizer.models.actions import ActionType, Classification
from campaign_optimizer.models.metrics import NormalizedRecord


@dataclass(frozen=True)
class Thresholds:
    """Performance thresholds, all money values in currency units."""
    min_spend_threshold: Decimal = Decimal("100")
    high_cpa_threshold: Decimal = Decimal("50")
    bid_reduction_fraction: Decimal = Decimal("0.20")

    def __post_init__(self):
        for name in ("min_spend_threshold", "high_cpa_threshold", "bid_reduction_fraction"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                value = Decimal(str(value))
                object.__setattr__(self, name, value)
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")

        if not (0 < self.bid_reduction_fraction < 1):
            raise ValueError(
                f"bid_reduction_fraction must be between 0 and 1, got {self.bid_reduction_fraction}"
            )

    def to_dict(self) -> Dict[str, str]:
        return {
            "min_spend_threshold": str(self.min_spend_threshold),
            "high_cpa_threshold": str(self.high_cpa_threshold),
            "bid_reduction_fraction": str(self.bid_reduction_fraction),
        }


class PerformanceAnalyzer:
    """
    Core classification logic for campaign performance.

    Assigns each record exactly one action:
    - Pause: spend above the minimum with zero conversions
    - Reduce bid: converting, but cost per conversion above the CPA ceiling
    - No action: everything else

    Comparisons are strict, so a campaign sitting exactly on a threshold
    is left alone.
    """

    def __init__(self, thresholds: Optional[Thresholds] = None):
        """
        Initialize analyzer with configurable thresholds.

        Args:
            thresholds: Performance thresholds (defaults if omitted)
        """
        self.thresholds = thresholds or Thresholds()

    @staticmethod
    def has_performance_signal(record: NormalizedRecord) -> bool:
        """
        Check whether a record can be judged at all.

        A campaign with no impressions has not entered an auction, so its
        zero conversions say nothing about its performance.
        """
        impressions = record.get("impressions")
        return impressions is not None and impressions > 0

    @staticmethod
    def _require(record: NormalizedRecord, name: str) -> Decimal:
        value = record.get(name)
        if value is None:
            raise ClassificationInputError(
                f"Missing metric '{name}'", campaign_id=record.campaign_id
            )
        if value < 0:
            raise ClassificationInputError(
                f"Metric '{name}' is negative ({value})", campaign_id=record.campaign_id
            )
        return value

    def cost_per_conversion(self, record: NormalizedRecord) -> Optional[Decimal]:
        """
        Cost per conversion as reported, or derived from spend and conversions.

        Returns:
            Decimal CPA, or None when the campaign has no conversions
        """
        conversions = self._require(record, "conversions")
        if conversions == 0:
            return None

        if record.get("cost_per_conversion") is not None:
            return self._require(record, "cost_per_conversion")
        return self._require(record, "cost") / conversions

    def classify(self, record: NormalizedRecord) -> Classification:
        """
        Classify a single campaign record.

        Args:
            record: Normalized campaign metrics

        Returns:
            Classification (no action, pause or reduce bid)

        Raises:
            ClassificationInputError: If cost or conversions are missing, or any
                metric used (including a reported CPA) is negative
        """
        spend = self._require(record, "cost")
        conversions = self._require(record, "conversions")
        t = self.thresholds

        if spend > t.min_spend_threshold and conversions == 0:
            return Classification.pause(
                record.campaign_id,
                reason=(
                    f"Spent ${spend:,.2f} with zero conversions "
                    f"(threshold ${t.min_spend_threshold:,.2f})"
                ),
                campaign_name=record.campaign_name,
                spend=spend,
            )

        cpa = self.cost_per_conversion(record)
        if cpa is not None and cpa > t.high_cpa_threshold:
            return Classification.reduce_bid(
                record.campaign_id,
                fraction=t.bid_reduction_fraction,
                reason=(
                    f"Cost per conversion ${cpa:,.2f} above "
                    f"${t.high_cpa_threshold:,.2f}"
                ),
                campaign_name=record.campaign_name,
                spend=spend,
            )

        return Classification.no_action(
            record.campaign_id, campaign_name=record.campaign_name, spend=spend
        )

    def generate_recommendation(self, classification: Classification) -> str:
        """
        Generate human-readable recommendation for a classification.

        Returns:
            One-line recommendation string
        """
        name = classification.campaign_name

        if classification.action == ActionType.PAUSE:
            return f"Pause '{name}': {classification.reason}."

        if classification.action == ActionType.REDUCE_BID:
            pct = classification.bid_fraction * 100
            return f"Lower bid on '{name}' by {pct:.0f}%: {classification.reason}."

        return f"'{name}' is within thresholds. No action required."

    def to_dict(self) -> Dict[str, str]:
        """Export analyzer configuration."""
        return self.thresholds.to_dict()


def classify(
    record: NormalizedRecord,
    thresholds: Union[Thresholds, None] = None
) -> Classification:
    """Classify a record against thresholds without keeping an analyzer around."""
    return PerformanceAnalyzer(thresholds).classify(record)
