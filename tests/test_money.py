"""
Unit tests for micro-unit conversion.
"""

import pytest
from decimal import Decimal

from campaign_optimizer.models.money import Micros, to_decimal, INT64_MAX, INT64_MIN


class TestToDecimal:
    """Test to_decimal conversion."""

    def test_whole_amount(self):
        assert to_decimal(1_500_000_000) == Decimal("1500")

    def test_fractional_amount(self):
        assert to_decimal(1_234_567) == Decimal("1.234567")

    def test_negative_amount(self):
        assert to_decimal(-250_000) == Decimal("-0.25")

    def test_accepts_micros_wrapper(self):
        assert to_decimal(Micros(42)) == Decimal("0.000042")

    @pytest.mark.parametrize("raw", [0, 1, 999_999, 10 ** 12 + 7, INT64_MAX, INT64_MIN])
    def test_round_trip_is_exact(self, raw):
        """Converting back never loses a micro, even at the int64 limits."""
        assert to_decimal(raw) * 1_000_000 == raw

    def test_sums_do_not_accumulate_error(self):
        """100,000 tenth-of-a-cent amounts add up to exactly $100."""
        total = sum((to_decimal(1_000) for _ in range(100_000)), Decimal("0"))
        assert total == Decimal("100")

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            to_decimal(1.5)

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            to_decimal(True)

    def test_overflow(self):
        with pytest.raises(OverflowError):
            to_decimal(INT64_MAX + 1)


class TestMicros:
    """Test the Micros wrapper type."""

    def test_is_not_a_decimal(self):
        assert not isinstance(Micros(1), Decimal)

    def test_to_decimal(self):
        assert Micros(2_500_000).to_decimal() == Decimal("2.5")

    def test_from_decimal(self):
        assert Micros.from_decimal(Decimal("12.34")) == Micros(12_340_000)

    def test_from_decimal_rejects_sub_micro_precision(self):
        with pytest.raises(ValueError, match="exactly"):
            Micros.from_decimal("0.0000001")

    def test_rejects_non_integer(self):
        with pytest.raises(TypeError):
            Micros("100")

    def test_is_immutable(self):
        m = Micros(5)
        with pytest.raises(Exception):
            m.value = 6
