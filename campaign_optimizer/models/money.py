"""
Micro-unit money conversion.

Advertising platforms report currency as integers scaled by one million
("micros"). Micros keeps those raw values in their own type so they can
never be compared against decimal thresholds by accident; to_decimal is
the single place where the scale is removed.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

MICROS_PER_UNIT = 1_000_000

# Platforms transmit micros as signed 64-bit integers
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def _check_raw(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(
            f"Micro values must be integers, got {type(value).__name__}: {value!r}"
        )
    if value < INT64_MIN or value > INT64_MAX:
        raise OverflowError(f"Micro value {value} does not fit in a signed 64-bit integer")
    return value


@dataclass(frozen=True)
class Micros:
    """Raw fixed-point amount: the true value multiplied by 1,000,000."""
    value: int

    def __post_init__(self):
        _check_raw(self.value)

    def to_decimal(self) -> Decimal:
        """Convert to decimal currency units."""
        return to_decimal(self)

    @classmethod
    def from_decimal(cls, amount: Union[Decimal, int, str]) -> "Micros":
        """
        Build a Micros value from a decimal amount.

        Raises:
            ValueError: If the amount has more precision than one micro
        """
        scaled = Decimal(amount).scaleb(6)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{amount} cannot be represented exactly in micros")
        return cls(int(scaled))

    def __str__(self) -> str:
        return f"{self.value} micros"


def to_decimal(raw: Union[Micros, int]) -> Decimal:
    """
    Convert a raw micro-unit value to decimal currency.

    The result is exact: to_decimal(m) * 1_000_000 == m for every int64 m.

    Args:
        raw: Micros instance or plain integer micro value

    Returns:
        Decimal amount in currency units

    Raises:
        TypeError: If raw is not an integer
        OverflowError: If raw does not fit in a signed 64-bit integer
    """
    value = raw.value if isinstance(raw, Micros) else _check_raw(raw)
    return Decimal(value).scaleb(-6)
