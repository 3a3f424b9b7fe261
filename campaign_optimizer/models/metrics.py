"""
Metric records as fetched from the reporting source and after normalization.

- MetricRecord holds raw report values, money still in micros
- NormalizedRecord holds Decimal values only, ready for classification
- MetricSchema says which report fields are micros and performs the
  one-time conversion between the two
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from campaign_optimizer.errors import ClassificationInputError
from campaign_optimizer.models.money import Micros, to_decimal

Number = Union[int, float]


@dataclass(frozen=True)
class MetricRecord:
    """
    One campaign row of a report page.

    `micros` carries fixed-point money fields keyed by their normalized
    name; `metrics` carries plain counts and ratios.
    """
    campaign_id: str
    campaign_name: str
    micros: Mapping[str, Micros] = field(default_factory=dict)
    metrics: Mapping[str, Number] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "micros", MappingProxyType(dict(self.micros)))
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))


@dataclass(frozen=True)
class NormalizedRecord:
    """Campaign metrics in decimal units. Never contains Micros."""
    campaign_id: str
    campaign_name: str
    metrics: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self):
        for name, value in self.metrics.items():
            if isinstance(value, Micros):
                raise TypeError(
                    f"Metric '{name}' of {self.campaign_id} is still in micros"
                )
            if not isinstance(value, Decimal):
                raise TypeError(
                    f"Metric '{name}' of {self.campaign_id} must be Decimal, "
                    f"got {type(value).__name__}"
                )
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    def get(self, name: str) -> Optional[Decimal]:
        return self.metrics.get(name)

    @property
    def spend(self) -> Decimal:
        return self.metrics["cost"]

    @property
    def conversions(self) -> Decimal:
        return self.metrics["conversions"]

    @property
    def impressions(self) -> Decimal:
        return self.metrics["impressions"]


class MetricSchema:
    """
    Field layout of the report rows.

    Google Ads style reports are not uniform about naming: `cost_micros`
    carries its unit in the name while `cost_per_conversion` is micros
    without saying so, and `conversions` is a plain (possibly fractional)
    count. The micro-ness of every field is therefore declared here rather
    than guessed from its name.
    """

    DEFAULT_MICRO_FIELDS = {
        "cost_micros": "cost",
        "cost_per_conversion": "cost_per_conversion",
    }
    DEFAULT_REQUIRED_FIELDS = ("cost", "conversions", "impressions")

    def __init__(
        self,
        micro_fields: Optional[Dict[str, str]] = None,
        conversions_in_micros: bool = False,
        required_fields: Tuple[str, ...] = DEFAULT_REQUIRED_FIELDS
    ):
        """
        Args:
            micro_fields: Raw field name -> normalized name for micro fields
            conversions_in_micros: Treat `conversions` as a micro field
            required_fields: Normalized metrics every record must carry
        """
        self.micro_fields = dict(
            self.DEFAULT_MICRO_FIELDS if micro_fields is None else micro_fields
        )
        if conversions_in_micros:
            self.micro_fields["conversions"] = "conversions"
        self.conversions_in_micros = conversions_in_micros
        self.required_fields = tuple(required_fields)

    def build_record(self, row: Dict) -> MetricRecord:
        """
        Split a raw report row into micro and plain metrics.

        Args:
            row: {"campaign_id", "campaign_name", "metrics": {field: value}}

        Returns:
            MetricRecord

        Raises:
            ClassificationInputError: If the row has no id or a micro field
                is not an integer
        """
        if not isinstance(row, dict):
            raise ClassificationInputError(f"Report row is not a mapping: {row!r}")
        campaign_id = row.get("campaign_id")
        if campaign_id in (None, ""):
            raise ClassificationInputError("Report row has no campaign_id")
        campaign_id = str(campaign_id)

        micros = {}
        metrics = {}
        for name, value in (row.get("metrics") or {}).items():
            if name in self.micro_fields:
                if value is None:
                    continue
                try:
                    micros[self.micro_fields[name]] = Micros(value)
                except (TypeError, OverflowError) as e:
                    raise ClassificationInputError(
                        f"Field '{name}' is not a valid micro value: {e}",
                        campaign_id=campaign_id
                    ) from e
            else:
                metrics[name] = value

        return MetricRecord(
            campaign_id=campaign_id,
            campaign_name=str(row.get("campaign_name") or campaign_id),
            micros=micros,
            metrics=metrics,
        )

    def normalize(self, record: MetricRecord) -> NormalizedRecord:
        """
        Convert a MetricRecord to decimal units.

        Raises:
            ClassificationInputError: If a required metric is missing or a
                plain metric is not numeric
        """
        values = {name: to_decimal(raw) for name, raw in record.micros.items()}

        for name, raw in record.metrics.items():
            if raw is None:
                continue
            values[name] = self._plain_decimal(record.campaign_id, name, raw)

        missing = [name for name in self.required_fields if name not in values]
        if missing:
            raise ClassificationInputError(
                f"Missing metric(s): {', '.join(missing)}",
                campaign_id=record.campaign_id
            )

        return NormalizedRecord(
            campaign_id=record.campaign_id,
            campaign_name=record.campaign_name,
            metrics=values,
        )

    @staticmethod
    def _plain_decimal(campaign_id: str, name: str, raw) -> Decimal:
        if isinstance(raw, bool):
            raise ClassificationInputError(
                f"Metric '{name}' is a boolean", campaign_id=campaign_id
            )
        try:
            # str() keeps float ratios at their printed precision
            value = Decimal(str(raw)) if isinstance(raw, float) else Decimal(raw)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise ClassificationInputError(
                f"Metric '{name}' is not numeric: {raw!r}", campaign_id=campaign_id
            ) from e
        if not value.is_finite():
            raise ClassificationInputError(
                f"Metric '{name}' is not finite: {raw!r}", campaign_id=campaign_id
            )
        return value

    def to_dict(self) -> Dict:
        """Export schema configuration."""
        return {
            "micro_fields": dict(self.micro_fields),
            "conversions_in_micros": self.conversions_in_micros,
            "required_fields": list(self.required_fields),
        }
