from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from ledger_service.models.game_sessions import SessionStatus
from ledger_service.schemas.settlement_schema import SettlementInstruction


class SessionCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    player_ids: List[str] = []


class SessionComplete(BaseModel):
    # None falls back to the auto_balance_on_complete setting
    auto_balance: Optional[bool] = None


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    status: SessionStatus
    balances: Dict[str, Decimal]
    settlements: Optional[List[SettlementInstruction]] = None
    started_at: datetime
    completed_at: Optional[datetime] = None


class SessionBalancesOut(BaseModel):
    session_id: str
    balances: Dict[str, Decimal]
    sum: Decimal
    winners: int
    losers: int
    biggest_winner: Optional[str] = None
    biggest_loser: Optional[str] = None
