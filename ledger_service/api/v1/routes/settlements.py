from fastapi import APIRouter
from typing import Any, Dict
from decimal import Decimal
from ledger_service.core.config import get_settings
from ledger_service.schemas.settlement_schema import (
    BalanceMap, BalanceValidationOut, AutoBalanceOut, SettlementResultOut
)
from ledger_service.utils.auto_balancer import auto_balance
from ledger_service.utils.balance_validator import validate_balances
from ledger_service.utils.money import ZERO, parse_numeric_input, round_decimal
from ledger_service.utils.settlement_solver import settle, total_settlement_amount

router = APIRouter(prefix="/settlements", tags=["settlements"])


def _amounts(balances: Dict[str, Any]) -> Dict[str, Decimal]:
    """Resolve raw client values; anything that is not a number counts as zero"""
    return {player_id: parse_numeric_input(raw).amount for player_id, raw in balances.items()}


@router.post("/validate", response_model=BalanceValidationOut)
def validate_balance_map(payload: BalanceMap):
    """Check that balances sum to zero and enough players are involved"""
    settings = get_settings()
    result = validate_balances(payload.balances, settings.balance_tolerance, settings.min_active_players)
    return BalanceValidationOut(
        is_valid=result.is_valid,
        reason=result.reason,
        sum=result.sum,
        pending=result.pending,
        unparsable=result.unparsable
    )


@router.post("/auto-balance", response_model=AutoBalanceOut)
def auto_balance_map(payload: BalanceMap):
    """Spread a non-zero sum evenly over the players with a balance"""
    balances = auto_balance(_amounts(payload.balances), get_settings().balance_tolerance)
    return AutoBalanceOut(balances=balances, sum=round_decimal(sum(balances.values(), ZERO)))


@router.post("/solve", response_model=SettlementResultOut)
def solve_balance_map(payload: BalanceMap):
    """Compute the payments that settle a zero-sum balance map"""
    result = settle(_amounts(payload.balances), get_settings().balance_tolerance)
    return SettlementResultOut(
        ok=result.ok,
        reason=result.reason,
        residual=result.residual,
        settlements=result.settlements,
        total_amount=total_settlement_amount(result.settlements)
    )
