"""
Integration tests for games within a session.
"""
import pytest
from decimal import Decimal
from fastapi import HTTPException
from ledger_service.models.game_sessions import Game, GamePlayer
from ledger_service.schemas.game_schema import GameCreate, GameUpdate, GamePlayerAdd
from ledger_service.schemas.ledger_schema import TransactionCreate
from ledger_service.schemas.session_schema import SessionCreate
from ledger_service.services.game_service import (
    start_game, update_game, end_game, add_player_to_game, get_game_players, get_game_transactions,
    get_game_balances, get_session_games, preview_game_settlement, settle_game
)
from ledger_service.services.session_service import start_session, delete_session
from ledger_service.services.transaction_service import record_transaction, load_balances
from ledger_service.tests.conftest import verify_settlements_settle_debts


def record(db, session, player, tx_type, amount, game=None):
    return record_transaction(db, session.id, TransactionCreate(
        type=tx_type,
        player_id=player.id,
        amount=Decimal(str(amount)),
        game_ref=game.id if game else None
    ))


@pytest.fixture
def session(db_session, players):
    return start_session(db_session, SessionCreate(
        name="Saturday",
        player_ids=[players["Alice"].id, players["Bob"].id]
    ))


@pytest.fixture
def game(db_session, session):
    return start_game(db_session, session.id, GameCreate(name="Hold'em", buy_in=Decimal("20")))


@pytest.mark.integration
class TestGameLifecycle:

    def test_default_names_are_numbered(self, db_session, session):
        first = start_game(db_session, session.id, GameCreate())
        second = start_game(db_session, session.id, GameCreate(name="  "))
        assert [first.name, second.name] == ["Game 1", "Game 2"]
        assert [g.id for g in get_session_games(db_session, session.id)] == [first.id, second.id]

    def test_update_details(self, db_session, session, game):
        updated = update_game(db_session, session.id, game.id, GameUpdate(name="Omaha", buy_in=Decimal("50")))
        assert updated.name == "Omaha"
        assert updated.buy_in == Decimal("50.00")

    def test_ended_game_refuses_transactions(self, db_session, session, game, players):
        end_game(db_session, session.id, game.id)
        assert game.ended_at is not None

        with pytest.raises(HTTPException) as exc:
            record(db_session, session, players["Alice"], "buy-in", 10, game)
        assert exc.value.status_code == 400

        with pytest.raises(HTTPException) as exc:
            end_game(db_session, session.id, game.id)
        assert exc.value.status_code == 400

    def test_unknown_game(self, db_session, session, players):
        with pytest.raises(HTTPException) as exc:
            record_transaction(db_session, session.id, TransactionCreate(
                type="buy-in", player_id=players["Alice"].id, amount=Decimal("10"), game_ref="missing"
            ))
        assert exc.value.status_code == 404

    def test_delete_session_removes_games(self, db_session, session, game, players):
        record(db_session, session, players["Alice"], "buy-in", 20, game)
        delete_session(db_session, session.id)
        assert db_session.query(Game).count() == 0
        assert db_session.query(GamePlayer).count() == 0


@pytest.mark.integration
class TestGamePlayers:

    def test_added_once_with_default_buy_in(self, db_session, session, game, players):
        carol = players["Carol"]
        first = add_player_to_game(db_session, session.id, game.id, GamePlayerAdd(player_id=carol.id))
        again = add_player_to_game(db_session, session.id, game.id, GamePlayerAdd(player_id=carol.id))

        assert first.id == again.id
        assert first.initial_buy_in == Decimal("20.00")
        assert len(get_game_players(db_session, game.id)) == 1
        # Joining a game puts the player on the session balance sheet
        assert load_balances(session)[carol.id] == Decimal("0")

    def test_transaction_joins_player(self, db_session, session, game, players):
        alice, bob = players["Alice"], players["Bob"]
        record(db_session, session, alice, "buy-in", 50, game)
        record(db_session, session, bob, "cash-out", 5, game)

        joined = {p.player_id: p.initial_buy_in for p in get_game_players(db_session, game.id)}
        assert joined == {alice.id: Decimal("50.00"), bob.id: Decimal("20.00")}

    def test_unknown_player(self, db_session, session, game):
        with pytest.raises(HTTPException) as exc:
            add_player_to_game(db_session, session.id, game.id, GamePlayerAdd(player_id="nobody"))
        assert exc.value.status_code == 404


@pytest.mark.integration
class TestGameSettlement:

    def play(self, db_session, session, game, players):
        alice, bob = players["Alice"], players["Bob"]
        record(db_session, session, alice, "buy-in", 30)
        record(db_session, session, alice, "buy-in", 50, game)
        record(db_session, session, bob, "buy-in", 50, game)
        record(db_session, session, alice, "cash-out", 100, game)

    def test_balances_only_count_game_transactions(self, db_session, session, game, players):
        self.play(db_session, session, game, players)
        alice, bob = players["Alice"], players["Bob"]

        assert len(get_game_transactions(db_session, game.id)) == 3
        assert get_game_balances(db_session, game) == {alice.id: Decimal("50.00"), bob.id: Decimal("-50.00")}
        assert load_balances(session)[alice.id] == Decimal("20.00")

    def test_settle_stores_snapshot(self, db_session, session, game, players):
        self.play(db_session, session, game, players)
        alice, bob = players["Alice"], players["Bob"]

        preview = preview_game_settlement(db_session, session.id, game.id)
        assert game.settlements is None

        result = settle_game(db_session, session.id, game.id)
        assert result.ok
        assert result.settlements == preview.settlements == [
            {"payer": bob.id, "payee": alice.id, "amount": Decimal("50.00")}
        ]
        verify_settlements_settle_debts(get_game_balances(db_session, game), result.settlements)

        assert game.balances == {alice.id: "50.00", bob.id: "-50.00"}
        assert game.settlements == [{"payer": bob.id, "payee": alice.id, "amount": "50.00"}]

    def test_unbalanced_game_rejected(self, db_session, session, game, players):
        record(db_session, session, players["Alice"], "buy-in", 20, game)

        with pytest.raises(HTTPException) as exc:
            settle_game(db_session, session.id, game.id)
        assert exc.value.status_code == 400
        assert "unbalanced" in exc.value.detail
        assert game.settlements is None
