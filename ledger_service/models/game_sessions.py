import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, DECIMAL, Enum, ForeignKey, Integer, JSON, Text, UniqueConstraint
from ledger_service.db.database import Base
from ledger_service.utils.ledger_reducer import TransactionType


class SessionStatus(str, enum.Enum):
    active = "active"
    completed = "completed"


class GameSession(Base):
    __tablename__ = "game_sessions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    name = Column(String(100), nullable=True)
    status = Column(Enum(SessionStatus), nullable=False, default=SessionStatus.active, index=True)
    # player_id -> amount as string; live while active, frozen snapshot once completed
    balances = Column(JSON, nullable=False, default=dict)
    # [{"payer", "payee", "amount"}], set only on completion
    settlements = Column(JSON, nullable=True)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    session_id = Column(String, ForeignKey("game_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # insertion order within the session
    type = Column(Enum(TransactionType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    player_id = Column(String, nullable=False, index=True)  # Reference to players
    amount = Column(DECIMAL(10, 2), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    game_ref = Column(String, ForeignKey("games.id", ondelete="SET NULL"), nullable=True, index=True)
    note = Column(Text, nullable=True)


class Game(Base):
    __tablename__ = "games"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    session_id = Column(String, ForeignKey("game_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    buy_in = Column(DECIMAL(10, 2), nullable=False, default=0)  # default buy-in for joining players
    started_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    # Snapshot written when the game is settled
    balances = Column(JSON, nullable=True)
    settlements = Column(JSON, nullable=True)


class GamePlayer(Base):
    __tablename__ = "game_players"
    __table_args__ = (UniqueConstraint("game_id", "player_id", name="uq_game_player"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    game_id = Column(String, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(String, nullable=False, index=True)  # Reference to players
    initial_buy_in = Column(DECIMAL(10, 2), nullable=False, default=0)
    joined_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
