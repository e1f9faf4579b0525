from pydantic import BaseModel, Field
from typing import Any, Dict, List
from decimal import Decimal


class SettlementInstruction(BaseModel):
    payer: str
    payee: str
    amount: Decimal = Field(..., gt=0)


class BalanceMap(BaseModel):
    # Raw values are accepted; "" / "-" / non-numbers count as zero
    balances: Dict[str, Any]


class BalanceValidationOut(BaseModel):
    is_valid: bool
    reason: str
    sum: Decimal
    pending: List[str] = []
    unparsable: List[str] = []


class AutoBalanceOut(BaseModel):
    balances: Dict[str, Decimal]
    sum: Decimal


class SettlementResultOut(BaseModel):
    ok: bool
    reason: str = ""
    residual: Decimal
    settlements: List[SettlementInstruction] = []
    total_amount: Decimal
