"""Data models for metric records, classifications and run summaries."""

from campaign_optimizer.models.platform import Platform
from campaign_optimizer.models.money import Micros, to_decimal, MICROS_PER_UNIT
from campaign_optimizer.models.metrics import (
    MetricRecord,
    NormalizedRecord,
    MetricSchema,
)
from campaign_optimizer.models.actions import (
    ActionType,
    ActionOutcome,
    SkipReason,
    StopReason,
    Classification,
    ActionResult,
    RunSummary,
)

__all__ = [
    "Platform",
    "Micros",
    "to_decimal",
    "MICROS_PER_UNIT",
    "MetricRecord",
    "NormalizedRecord",
    "MetricSchema",
    "ActionType",
    "ActionOutcome",
    "SkipReason",
    "StopReason",
    "Classification",
    "ActionResult",
    "RunSummary",
]
