from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from ledger_service.utils.ledger_reducer import TransactionType


class TransactionBase(BaseModel):
    type: TransactionType
    player_id: str
    # Signed only for adjustments, which set the balance directly
    amount: Decimal
    game_ref: Optional[str] = None
    note: Optional[str] = None


class TransactionCreate(TransactionBase):

    @model_validator(mode="after")
    def check_amount_sign(self):
        if self.amount < 0 and self.type != TransactionType.adjustment:
            raise ValueError(f"{self.type.value} amount must be non-negative")
        return self


class TransactionUpdate(BaseModel):
    amount: Decimal


class TransactionOut(TransactionBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    timestamp: datetime
