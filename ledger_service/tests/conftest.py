"""
Pytest configuration and fixtures for ledger_service tests.
"""
import os

# Keep the module-level engine off the filesystem; tests use their own engine
os.environ.setdefault("LEDGER_DATABASE_URL", "sqlite://")

import pytest
from decimal import Decimal
from typing import Dict, List
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_service.db.database import Base, get_db
from ledger_service.models.players import Player
from ledger_service.models.game_sessions import GameSession, LedgerTransaction


@pytest.fixture
def sample_balances():
    """Balances after a four-player session."""
    return {
        "A": Decimal("66.67"),
        "B": Decimal("-10.00"),
        "C": Decimal("-43.33"),
        "D": Decimal("-13.34")
    }


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    """HTTP client bound to the test database."""
    from fastapi.testclient import TestClient
    from ledger_service.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def players(db_session):
    """Three registered players, keyed by name."""
    created = {}
    for name in ("Alice", "Bob", "Carol"):
        player = Player(name=name)
        db_session.add(player)
        db_session.commit()
        db_session.refresh(player)
        created[name] = player
    return created


def verify_settlements_settle_debts(balances: Dict[str, Decimal], settlements: List[Dict]) -> None:
    """
    Helper to verify settlements settle all debts.

    A payer's balance rises by what they pay and a payee's falls by what they
    receive; every final balance must be zero within tolerance.
    """
    final = {player_id: Decimal(str(amount)) for player_id, amount in balances.items()}

    for settlement in settlements:
        final[settlement["payer"]] += settlement["amount"]
        final[settlement["payee"]] -= settlement["amount"]

    for player_id, amount in final.items():
        assert abs(amount) <= Decimal("0.01"), \
            f"Player {player_id} not settled: initial={balances[player_id]}, final={amount}"
