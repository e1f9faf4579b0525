"""
Auto-Balancer Module

When entered balances do not add up to zero (a miscounted chip stack, a
forgotten buy-in), the residual is spread evenly over every player with a
non-zero balance so the map can still be settled.

This is a fairness heuristic, not an exact correction. Each player moves by
the same amount, so relative ranking is preserved only approximately: a
player close to zero can cross to the other side. Players at zero are left
untouched.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Mapping

from ledger_service.utils.money import TOLERANCE, ZERO, money_map, round_decimal

logger = logging.getLogger(__name__)


def auto_balance(balances: Mapping[str, Decimal], tolerance: Decimal = TOLERANCE) -> Dict[str, Decimal]:
    """
    Return a zero-sum copy of ``balances``.

    correction = sum / number of non-zero players, and every non-zero balance
    becomes round2(balance - correction). Cents lost to rounding go to the
    last adjusted player so the result sums to exactly zero.

    Already balanced input (|sum| <= tolerance) is returned unchanged, which
    makes the function idempotent.

    Example:
        >>> auto_balance({"A": Decimal("-10"), "B": Decimal("5")})
        {'A': Decimal('-7.50'), 'B': Decimal('7.50')}
    """
    result = money_map(balances)
    total = round_decimal(sum(result.values(), ZERO))

    if abs(total) <= tolerance:
        return result

    adjusted: List[str] = [player_id for player_id, amount in result.items() if amount != 0]
    if not adjusted:
        return result

    correction = total / len(adjusted)
    for player_id in adjusted:
        result[player_id] = round_decimal(result[player_id] - correction)

    remainder = round_decimal(sum(result.values(), ZERO))
    if remainder != 0:
        last = adjusted[-1]
        result[last] = round_decimal(result[last] - remainder)

    logger.info(
        f"Auto-balanced {len(adjusted)} players: sum was {total}, "
        f"correction {round_decimal(correction)} per player"
    )
    return result
