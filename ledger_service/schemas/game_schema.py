from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from ledger_service.schemas.settlement_schema import SettlementInstruction


class GameCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    buy_in: Decimal = Field(Decimal("0"), ge=0)


class GameUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    buy_in: Optional[Decimal] = Field(None, ge=0)


class GamePlayerAdd(BaseModel):
    player_id: str
    # Falls back to the game's default buy-in
    initial_buy_in: Optional[Decimal] = Field(None, ge=0)


class GamePlayerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    player_id: str
    initial_buy_in: Decimal
    joined_at: datetime


class GameOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    name: str
    buy_in: Decimal
    started_at: datetime
    ended_at: Optional[datetime] = None
    balances: Optional[Dict[str, Decimal]] = None
    settlements: Optional[List[SettlementInstruction]] = None


class GameBalancesOut(BaseModel):
    game_id: str
    balances: Dict[str, Decimal]
    sum: Decimal
