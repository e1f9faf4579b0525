"""
Unit tests for the money helpers and raw input parsing.
"""
import pytest
from decimal import Decimal
from ledger_service.utils.money import (
    EmptyInput,
    InvalidInput,
    NegativeSignInput,
    ValueInput,
    format_money,
    money_map,
    parse_numeric_input,
    round_decimal,
    to_money,
)


@pytest.mark.unit
class TestRoundDecimal:
    """Test the round_decimal utility function."""

    def test_round_to_cents(self):
        assert round_decimal(Decimal("43.333333")) == Decimal("43.33")
        assert round_decimal(Decimal("43.336666")) == Decimal("43.34")

    def test_half_rounds_away_from_zero(self):
        assert round_decimal(Decimal("100.005")) == Decimal("100.01")
        assert round_decimal(Decimal("-2.505")) == Decimal("-2.51")

    def test_custom_precision(self):
        precision = Decimal("0.1")
        assert round_decimal(Decimal("43.34"), precision) == Decimal("43.3")
        assert round_decimal(Decimal("43.36"), precision) == Decimal("43.4")


@pytest.mark.unit
class TestToMoney:
    """Test conversion of numbers to cent amounts."""

    def test_float_keeps_its_decimal_text(self):
        assert to_money(0.1) == Decimal("0.10")
        assert to_money(0.1) + to_money(0.2) == Decimal("0.30")

    def test_int_and_string(self):
        assert to_money(5) == Decimal("5.00")
        assert to_money(" -12.345 ") == Decimal("-12.35")

    def test_rejects_non_numbers(self):
        for value in ("abc", None, True, float("nan"), [1]):
            with pytest.raises(ValueError):
                to_money(value)

    def test_money_map_returns_new_dict(self):
        balances = {"A": 1.5}
        result = money_map(balances)
        assert result == {"A": Decimal("1.50")}
        assert balances == {"A": 1.5}


@pytest.mark.unit
class TestParseNumericInput:
    """Test classification of raw balance fields."""

    def test_placeholders(self):
        assert parse_numeric_input("") == EmptyInput()
        assert parse_numeric_input("  ") == EmptyInput()
        assert parse_numeric_input("-") == NegativeSignInput()

    def test_values(self):
        assert parse_numeric_input("12.345") == ValueInput(Decimal("12.35"))
        assert parse_numeric_input(-3) == ValueInput(Decimal("-3.00"))

    def test_invalid(self):
        assert isinstance(parse_numeric_input("abc"), InvalidInput)
        assert isinstance(parse_numeric_input(None), InvalidInput)

    def test_everything_has_an_amount(self):
        for raw in ("", "-", "abc", None):
            assert parse_numeric_input(raw).amount == Decimal("0")
        assert parse_numeric_input("7").amount == Decimal("7")


@pytest.mark.unit
def test_format_money():
    assert format_money(Decimal("-12.5")) == "-$12.50"
    assert format_money(Decimal("3")) == "$3.00"
    assert format_money(Decimal("3"), show_sign=True) == "+$3.00"
    assert format_money(Decimal("0"), show_sign=True) == "$0.00"
