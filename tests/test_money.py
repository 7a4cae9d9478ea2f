"""Tests for money helpers."""

from decimal import Decimal

import pytest

from pos_client.money import format_money, percent_of, round_money, to_decimal


class TestToDecimal:
    """Tests for to_decimal."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10.50", Decimal("10.50")),
            (3, Decimal(3)),
            (0.1, Decimal("0.1")),
            (Decimal("8.5"), Decimal("8.5")),
        ],
    )
    def test_accepts_numbers(self, value, expected: Decimal) -> None:
        """Numbers and numeric strings convert exactly."""
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", ["abc", None, True, "NaN", "Infinity", float("inf")])
    def test_rejects_non_numbers(self, value) -> None:
        """Anything that is not a finite number is rejected."""
        with pytest.raises(ValueError):
            to_decimal(value)


class TestRounding:
    """Tests for cent rounding."""

    @pytest.mark.parametrize(
        "amount,expected",
        [("1.005", "1.01"), ("1.004", "1.00"), ("2.5", "2.50"), ("-1.005", "-1.01")],
    )
    def test_round_half_up(self, amount: str, expected: str) -> None:
        """Halves round away from zero."""
        assert round_money(Decimal(amount)) == Decimal(expected)

    def test_percent_of(self) -> None:
        """Percentages are rounded to cents."""
        assert percent_of(Decimal("27.00"), Decimal("18")) == Decimal("4.86")
        assert percent_of(Decimal("9.99"), Decimal("8.5")) == Decimal("0.85")


class TestFormatMoney:
    """Tests for format_money."""

    def test_plain(self) -> None:
        assert format_money(Decimal("1234.5")) == "1,234.50"

    def test_with_currency(self) -> None:
        assert format_money(Decimal("31.86"), "UGX") == "UGX 31.86"
