"""
Balance Validator Module

Checks whether a balance map is ready for settlement:
1. The balances sum to zero (within tolerance)
2. At least two players have a non-zero balance

Input values may be raw client text. Blank ("") and lone "-" fields are
treated as zero for the sum and reported as pending; values that are not
numbers are also treated as zero but reported as unparsable, so a message
never confuses them with an explicit 0. Validation never raises.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Mapping

from ledger_service.utils.money import (
    EmptyInput,
    InvalidInput,
    NegativeSignInput,
    TOLERANCE,
    ZERO,
    format_money,
    parse_numeric_input,
    round_decimal,
)

logger = logging.getLogger(__name__)

MIN_ACTIVE_PLAYERS = 2


@dataclass
class BalanceValidation:
    is_valid: bool
    reason: str
    sum: Decimal
    pending: List[str] = field(default_factory=list)
    unparsable: List[str] = field(default_factory=list)


def _treated_as_zero_note(pending: List[str], unparsable: List[str]) -> str:
    notes = []
    if unparsable:
        notes.append(f"unparsable input treated as 0 for: {', '.join(unparsable)}")
    if pending:
        notes.append(f"incomplete input treated as 0 for: {', '.join(pending)}")
    if not notes:
        return ""
    return f" ({'; '.join(notes)})"


def validate_balances(
    balances: Mapping[str, Any],
    tolerance: Decimal = TOLERANCE,
    min_active_players: int = MIN_ACTIVE_PLAYERS,
) -> BalanceValidation:
    """
    Validate a balance map for settlement.

    Args:
        balances: player_id -> balance (Decimal, number or raw text)
        tolerance: Maximum allowed deviation of the sum from zero
        min_active_players: Players needed with |balance| > tolerance

    Returns:
        BalanceValidation with is_valid, reason ("" when valid), the rounded
        sum and the players whose input was pending or unparsable

    Example:
        >>> validate_balances({"A": "-50", "B": "49"}).reason
        'Balances must sum to zero (current sum: -$1.00)'
    """
    total = ZERO
    active = 0
    pending: List[str] = []
    unparsable: List[str] = []

    for player_id, raw in balances.items():
        parsed = parse_numeric_input(raw)
        if isinstance(parsed, (EmptyInput, NegativeSignInput)):
            pending.append(player_id)
        elif isinstance(parsed, InvalidInput):
            unparsable.append(player_id)
        amount = parsed.amount
        total += amount
        if abs(amount) > tolerance:
            active += 1

    total = round_decimal(total)
    note = _treated_as_zero_note(pending, unparsable)

    if abs(total) > tolerance:
        reason = f"Balances must sum to zero (current sum: {format_money(total)}){note}"
        logger.debug(f"Balance validation failed: {reason}")
        return BalanceValidation(False, reason, total, pending, unparsable)

    if active < min_active_players:
        reason = f"At least {min_active_players} players must have non-zero balances{note}"
        logger.debug(f"Balance validation failed: {reason}")
        return BalanceValidation(False, reason, total, pending, unparsable)

    return BalanceValidation(True, "", total, pending, unparsable)


def verify_balances(balances: Mapping[str, Any], tolerance: Decimal = TOLERANCE) -> bool:
    """Zero-sum check only; unparsable values count as zero."""
    total = sum((parse_numeric_input(raw).amount for raw in balances.values()), ZERO)
    return abs(round_decimal(total)) <= tolerance
