"""
Money Module

All monetary arithmetic in the service goes through this module. Amounts are
``Decimal`` values quantized to cents, so rounding happens in one place
instead of after every call site.

It also owns the parsing of raw balance text coming from clients. A balance
field being typed can legitimately be empty ("") or a lone minus sign ("-");
those are modelled as explicit input kinds rather than magic strings.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Union

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
TOLERANCE = Decimal('0.01')


def round_decimal(value: Decimal, precision: Decimal = CENT) -> Decimal:
    """
    Round a Decimal value to the specified precision.

    Args:
        value: The Decimal value to round
        precision: The precision to round to (default: 0.01 for cents)

    Returns:
        Rounded Decimal value (half-up, away from zero)

    Example:
        >>> round_decimal(Decimal("43.335"))
        Decimal('43.34')
    """
    return value.quantize(precision, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """
    Convert a number-like value to a cent-quantized Decimal.

    Floats are converted through ``str`` so 0.1 stays 0.1. Raises
    ``ValueError`` for values that are not numbers; use ``parse_numeric_input``
    for raw client text that may be incomplete.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a monetary amount: {value!r}")
    else:
        raise ValueError(f"Not a monetary amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Not a finite monetary amount: {value!r}")
    return round_decimal(amount)


def money_map(balances: Mapping[str, Any]) -> Dict[str, Decimal]:
    """Return a new dict with every balance converted by ``to_money``."""
    return {player_id: to_money(amount) for player_id, amount in balances.items()}


@dataclass(frozen=True)
class EmptyInput:
    """Field left blank."""

    @property
    def amount(self) -> Decimal:
        return ZERO


@dataclass(frozen=True)
class NegativeSignInput:
    """Field holding only "-" while a negative amount is being typed."""

    @property
    def amount(self) -> Decimal:
        return ZERO


@dataclass(frozen=True)
class ValueInput:
    value: Decimal

    @property
    def amount(self) -> Decimal:
        return self.value


@dataclass(frozen=True)
class InvalidInput:
    """Anything that is not a number. Counts as zero but is reported."""

    raw: Any

    @property
    def amount(self) -> Decimal:
        return ZERO


NumericInput = Union[EmptyInput, NegativeSignInput, ValueInput, InvalidInput]


def parse_numeric_input(raw: Any) -> NumericInput:
    """
    Classify a raw balance field.

    Example:
        >>> parse_numeric_input("-")
        NegativeSignInput()
        >>> parse_numeric_input("12.345")
        ValueInput(value=Decimal('12.35'))
        >>> parse_numeric_input("abc")
        InvalidInput(raw='abc')
    """
    if raw is None:
        return InvalidInput(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if text == "":
            return EmptyInput()
        if text == "-":
            return NegativeSignInput()
    try:
        return ValueInput(to_money(raw))
    except ValueError:
        return InvalidInput(raw)


def format_money(value: Decimal, show_sign: bool = False) -> str:
    """
    Format an amount for messages.

    Example:
        >>> format_money(Decimal("-12.5"))
        '-$12.50'
        >>> format_money(Decimal("3"), show_sign=True)
        '+$3.00'
    """
    amount = round_decimal(value)
    if amount < 0:
        sign = "-"
    elif amount > 0 and show_sign:
        sign = "+"
    else:
        sign = ""
    return f"{sign}${abs(amount):.2f}"
