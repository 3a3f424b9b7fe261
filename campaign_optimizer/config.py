"""
Optimizer configuration.

Defaults live on the dataclass; OptimizerConfig.from_env() overrides them
from OPTIMIZER_* environment variables.
"""

import os
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Tuple

from campaign_optimizer.analyzers.performance_analyzer import Thresholds
from campaign_optimizer.models.metrics import MetricSchema
from campaign_optimizer.models.platform import Platform

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _parse_decimal(name: str, raw: str) -> Decimal:
    try:
        return Decimal(raw.strip())
    except InvalidOperation as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _parse_number(name: str, raw: str, kind):
    try:
        return kind(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be {kind.__name__}, got {raw!r}") from e


@dataclass
class OptimizerConfig:
    """All tunables of an optimizer run."""
    platform: Platform = Platform.GOOGLE

    # Classification thresholds (currency units)
    min_spend_threshold: Decimal = Decimal("100")
    high_cpa_threshold: Decimal = Decimal("50")
    bid_reduction_fraction: Decimal = Decimal("0.20")

    # Report query
    page_size: int = 500
    lookback_days: int = 30
    entity_statuses: Tuple[str, ...] = ("ENABLED",)
    conversions_in_micros: bool = False

    # Actuation
    batch_size: int = 10
    cooldown_seconds: float = 1.0
    dry_run: bool = False
    max_actions: Optional[int] = None

    # Execution budget (Google Ads scripts are killed after 30 minutes)
    host_limit_seconds: float = 1800.0
    safety_margin: float = 0.1

    halt_on_invalid_record: bool = False

    ENV_PREFIX = "OPTIMIZER_"

    # field name -> environment variable suffix
    ENV_FIELDS = {
        "platform": "PLATFORM",
        "min_spend_threshold": "MIN_SPEND",
        "high_cpa_threshold": "HIGH_CPA",
        "bid_reduction_fraction": "BID_REDUCTION",
        "page_size": "PAGE_SIZE",
        "lookback_days": "LOOKBACK_DAYS",
        "entity_statuses": "STATUSES",
        "conversions_in_micros": "CONVERSIONS_IN_MICROS",
        "batch_size": "BATCH_SIZE",
        "cooldown_seconds": "COOLDOWN_SECONDS",
        "dry_run": "DRY_RUN",
        "max_actions": "MAX_ACTIONS",
        "host_limit_seconds": "HOST_LIMIT_SECONDS",
        "safety_margin": "SAFETY_MARGIN",
        "halt_on_invalid_record": "HALT_ON_INVALID",
    }

    def __post_init__(self):
        self.validate()

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "OptimizerConfig":
        """
        Load configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Raises:
            ValueError: If a variable cannot be parsed or the result is invalid
        """
        environ = os.environ if environ is None else environ
        overrides = {}

        for name, suffix in cls.ENV_FIELDS.items():
            env_name = cls.ENV_PREFIX + suffix
            raw = environ.get(env_name)
            if raw is None:
                continue

            if name == "platform":
                try:
                    overrides[name] = Platform(raw.strip().lower())
                except ValueError as e:
                    raise ValueError(f"{env_name} must be one of "
                                     f"{[p.value for p in Platform]}, got {raw!r}") from e
            elif name in ("min_spend_threshold", "high_cpa_threshold", "bid_reduction_fraction"):
                overrides[name] = _parse_decimal(env_name, raw)
            elif name in ("page_size", "lookback_days", "batch_size"):
                overrides[name] = _parse_number(env_name, raw, int)
            elif name == "max_actions":
                overrides[name] = _parse_number(env_name, raw, int) if raw.strip() else None
            elif name in ("cooldown_seconds", "host_limit_seconds", "safety_margin"):
                overrides[name] = _parse_number(env_name, raw, float)
            elif name == "entity_statuses":
                overrides[name] = tuple(s.strip().upper() for s in raw.split(",") if s.strip())
            else:
                overrides[name] = _parse_bool(env_name, raw)

        return cls(**overrides)

    def validate(self):
        """
        Check value ranges.

        Raises:
            ValueError: On the first invalid setting
        """
        for name in ("page_size", "lookback_days", "batch_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must not be negative, got {self.cooldown_seconds}")
        if self.max_actions is not None and self.max_actions < 0:
            raise ValueError(f"max_actions must not be negative, got {self.max_actions}")
        if self.host_limit_seconds <= 0:
            raise ValueError(f"host_limit_seconds must be positive, got {self.host_limit_seconds}")
        if not (0 < self.safety_margin < 1):
            raise ValueError(f"safety_margin must be between 0 and 1, got {self.safety_margin}")
        reserve = self.host_limit_seconds - self.ceiling_seconds
        if self.cooldown_seconds >= reserve:
            raise ValueError(
                f"cooldown_seconds ({self.cooldown_seconds}s) must be shorter than the "
                f"{reserve:.1f}s held back from the host limit"
            )
        if not self.entity_statuses:
            raise ValueError("entity_statuses must name at least one status")
        # Raises on bad thresholds
        self.thresholds()

    @property
    def ceiling_seconds(self) -> float:
        return self.host_limit_seconds * (1 - self.safety_margin)

    def thresholds(self) -> Thresholds:
        return Thresholds(
            min_spend_threshold=self.min_spend_threshold,
            high_cpa_threshold=self.high_cpa_threshold,
            bid_reduction_fraction=self.bid_reduction_fraction,
        )

    def schema(self) -> MetricSchema:
        return MetricSchema(conversions_in_micros=self.conversions_in_micros)

    def to_dict(self) -> Dict:
        """Export configuration with JSON-friendly values."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, Platform):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            data[f.name] = value
        return data
