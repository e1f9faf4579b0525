from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class PlayerBase(BaseModel):
    name: str


class PlayerCreate(PlayerBase):
    pass


class PlayerUpdate(BaseModel):
    name: Optional[str] = None


class PlayerOut(PlayerBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime


class PlayerStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_sessions: int
    win_count: int
    loss_count: int
    win_rate: Decimal
    biggest_win: Decimal
    biggest_loss: Decimal
    total_winnings: Decimal
    net_winnings: Decimal
    avg_winnings: Decimal
    last_session_balance: Optional[Decimal] = None
    last_session_date: Optional[datetime] = None
