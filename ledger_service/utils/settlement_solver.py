"""
Settlement Solver Module

Converts zero-sum player balances into a short list of payments.

The algorithm works by:
1. Dropping players whose balance is already settled (|balance| <= 0.01)
2. Splitting the rest into debtors (negative, most negative first) and
   creditors (positive, largest first); ties keep the input order
3. Repeatedly matching the head debtor with the head creditor and paying the
   smaller of the two amounts
4. Removing whichever side (or both) reaches zero

Every step closes at least one player, so n active players need at most
n - 1 payments. The result is reasonably small but not guaranteed minimal;
finding the true minimum number of payments is NP-hard in general.

Time Complexity: O(n log n) for sorting + O(n) for matching = O(n log n)
Space Complexity: O(n)

Example Usage:
    from ledger_service.utils.settlement_solver import settle

    result = settle({"A": Decimal("-30"), "B": Decimal("10"), "C": Decimal("20")})
    # result.settlements ==
    # [{"payer": "A", "payee": "C", "amount": Decimal("20.00")},
    #  {"payer": "A", "payee": "B", "amount": Decimal("10.00")}]
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from ledger_service.utils.money import TOLERANCE, ZERO, money_map, round_decimal

logger = logging.getLogger(__name__)

UNBALANCED = "unbalanced"


@dataclass
class SettlementResult:
    ok: bool
    settlements: List[Dict] = field(default_factory=list)
    reason: str = ""
    residual: Decimal = ZERO


def _partition(balances: Dict[str, Decimal], tolerance: Decimal) -> Tuple[List[list], List[list]]:
    active = [[player_id, amount] for player_id, amount in balances.items() if abs(amount) > tolerance]
    # sorted() is stable, so equal amounts keep map order in both lists
    debtors = sorted((p for p in active if p[1] < 0), key=lambda p: p[1])
    creditors = sorted((p for p in active if p[1] > 0), key=lambda p: p[1], reverse=True)
    return debtors, creditors


def _run(
    balances: Mapping[str, Decimal],
    tolerance: Decimal,
    trace: Optional[List[str]] = None,
) -> List[Dict]:
    working = money_map(balances)

    total = round_decimal(sum(working.values(), ZERO))
    if abs(total) > tolerance:
        logger.warning(
            f"Settling unbalanced input (sum={total}); "
            f"a residual of {total} will remain unsettled"
        )
        if trace is not None:
            trace.append(f"! Balances do not sum to zero (sum={total}); residual will remain")

    debtors, creditors = _partition(working, tolerance)
    if trace is not None:
        trace.append(f"Debtors (to pay): {[(p, str(a)) for p, a in debtors]}")
        trace.append(f"Creditors (to receive): {[(p, str(a)) for p, a in creditors]}")

    max_iterations = len(debtors) + len(creditors)
    settlements: List[Dict] = []
    iterations = 0

    while debtors and creditors:
        iterations += 1
        if iterations > max_iterations:
            raise RuntimeError(
                f"Settlement loop exceeded max_iterations ({max_iterations}). "
                f"This may indicate malformed input or rounding issues."
            )

        debtor = debtors[0]
        creditor = creditors[0]
        amount = round_decimal(min(-debtor[1], creditor[1]))

        if amount > 0:
            settlements.append({"payer": debtor[0], "payee": creditor[0], "amount": amount})
            if trace is not None:
                trace.append(f"Step {iterations}: {debtor[0]} pays {creditor[0]} ${amount}")

        debtor[1] = round_decimal(debtor[1] + amount)
        creditor[1] = round_decimal(creditor[1] - amount)

        if abs(debtor[1]) <= tolerance:
            debtors.pop(0)
        if abs(creditor[1]) <= tolerance:
            creditors.pop(0)

    return settlements


def solve_settlement(balances: Mapping[str, Decimal], tolerance: Decimal = TOLERANCE) -> List[Dict]:
    """
    Compute payments that settle ``balances``.

    Args:
        balances: player_id -> net balance (positive = is owed money)
        tolerance: Balances within this distance of zero count as settled

    Returns:
        Payments in generation order:
        [{"payer": str, "payee": str, "amount": Decimal}, ...]

    The input is not validated beyond a warning: on non-zero-sum input part
    of a balance stays unsettled. Use ``settle`` to get that reported.

    Raises:
        RuntimeError: If the matching loop runs away (should not happen)
    """
    settlements = _run(balances, tolerance)
    logger.debug(f"Computed {len(settlements)} settlements for {len(balances)} players")
    return settlements


def settle(balances: Mapping[str, Decimal], tolerance: Decimal = TOLERANCE) -> SettlementResult:
    """
    Settle ``balances`` after checking that they sum to zero.

    Returns:
        SettlementResult(ok=True, settlements=[...]) on success, or
        SettlementResult(ok=False, reason="unbalanced", residual=sum) without
        settlements, so the caller can auto-balance or ask for corrections.
    """
    working = money_map(balances)
    total = round_decimal(sum(working.values(), ZERO))
    if abs(total) > tolerance:
        logger.warning(f"Refusing to settle unbalanced balances: residual={total}")
        return SettlementResult(ok=False, reason=UNBALANCED, residual=total)

    settlements = _run(working, tolerance)
    logger.info(
        f"Settled {len(working)} players with {len(settlements)} payments "
        f"totalling {total_settlement_amount(settlements)}"
    )
    return SettlementResult(ok=True, settlements=settlements, residual=total)


def solve_settlement_detailed(
    balances: Mapping[str, Decimal],
    tolerance: Decimal = TOLERANCE,
) -> Tuple[List[Dict], List[str]]:
    """
    Same as ``solve_settlement`` but also returns a readable trace of every
    matching step. Useful for showing players how the payments were derived.
    """
    logs = ["=" * 60, "Settlement - Detailed Workflow", "=" * 60]
    logs.append(f"Initial balances: {({p: str(a) for p, a in balances.items()})}")

    settlements = _run(balances, tolerance, trace=logs)

    logs.append("-" * 60)
    logs.append(f"Total settlements: {len(settlements)}")
    logs.append(f"Total amount moved: ${total_settlement_amount(settlements)}")
    logs.append("=" * 60)
    return settlements, logs


def total_settlement_amount(settlements: List[Dict]) -> Decimal:
    """Total money moved by a list of settlements."""
    return round_decimal(sum((s["amount"] for s in settlements), ZERO))
