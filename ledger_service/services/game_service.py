"""
Games played within a session.

A game groups part of the session's transaction log (transactions whose
``game_ref`` points at it). Its balances are replayed from that part of the
log on demand, and settling a game stores a snapshot of its balances and
payments on the game row. The session-wide balances are unaffected.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy.orm import Session
from fastapi import HTTPException
from typing import Dict, List, Optional
from ledger_service.core.config import get_settings
from ledger_service.models.game_sessions import Game, GamePlayer, LedgerTransaction
from ledger_service.schemas.game_schema import GameCreate, GameUpdate, GamePlayerAdd
from ledger_service.services.transaction_service import dump_balances, get_active_session, load_balances
from ledger_service.utils.ledger_reducer import rebuild_balances
from ledger_service.utils.money import to_money
from ledger_service.utils.settlement_solver import SettlementResult, settle

logger = logging.getLogger(__name__)


def get_game(db: Session, session_id: str, game_id: str) -> Optional[Game]:
    """Get a game of a session by ID"""
    return db.query(Game).filter(Game.session_id == session_id, Game.id == game_id).first()


def get_session_games(db: Session, session_id: str) -> List[Game]:
    """Get the games of a session in the order they were started"""
    return db.query(Game).filter(Game.session_id == session_id).order_by(Game.started_at).all()


def get_game_players(db: Session, game_id: str) -> List[GamePlayer]:
    """Get the players who joined a game"""
    return db.query(GamePlayer).filter(GamePlayer.game_id == game_id).order_by(GamePlayer.joined_at).all()


def get_game_transactions(db: Session, game_id: str) -> List[LedgerTransaction]:
    """Get the part of the session log recorded for a game, in recording order"""
    return db.query(LedgerTransaction)\
        .filter(LedgerTransaction.game_ref == game_id)\
        .order_by(LedgerTransaction.position)\
        .all()


def _open_game(db: Session, session_id: str, game_id: str) -> Game:
    get_active_session(db, session_id)
    game = get_game(db, session_id, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    if game.ended_at is not None:
        raise HTTPException(status_code=400, detail="Game has ended")
    return game


def start_game(db: Session, session_id: str, game_data: GameCreate) -> Game:
    """Start a game in an active session"""
    get_active_session(db, session_id)
    name = game_data.name.strip() if game_data.name and game_data.name.strip() else None
    if name is None:
        name = f"Game {len(get_session_games(db, session_id)) + 1}"

    game = Game(session_id=session_id, name=name, buy_in=to_money(game_data.buy_in))
    db.add(game)
    db.commit()
    db.refresh(game)
    logger.info(f"Started game {game.id} ({game.name}) in session {session_id}")
    return game


def update_game(db: Session, session_id: str, game_id: str, game_data: GameUpdate) -> Game:
    """Rename a game or change its default buy-in"""
    get_active_session(db, session_id)
    game = get_game(db, session_id, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")

    if game_data.name is not None:
        game.name = game_data.name.strip() or game.name
    if game_data.buy_in is not None:
        game.buy_in = to_money(game_data.buy_in)

    db.commit()
    db.refresh(game)
    return game


def end_game(db: Session, session_id: str, game_id: str) -> Game:
    """Mark a game as finished; no more transactions can be recorded for it"""
    game = _open_game(db, session_id, game_id)
    game.ended_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(game)
    logger.info(f"Ended game {game_id} in session {session_id}")
    return game


def join_game(db: Session, session, game: Game, player_id: str, initial_buy_in: Optional[Decimal] = None) -> GamePlayer:
    """
    Add a player to a game unless they already joined. The caller commits.

    The player is also put on the session balance sheet at zero if they
    are not on it yet.
    """
    existing = db.query(GamePlayer).filter(
        GamePlayer.game_id == game.id,
        GamePlayer.player_id == player_id
    ).first()
    if existing:
        return existing

    buy_in = game.buy_in if initial_buy_in is None else initial_buy_in
    game_player = GamePlayer(game_id=game.id, player_id=player_id, initial_buy_in=to_money(buy_in))
    db.add(game_player)

    balances = load_balances(session)
    if player_id not in balances:
        balances[player_id] = to_money(0)
        session.balances = dump_balances(balances)
    return game_player


def add_player_to_game(db: Session, session_id: str, game_id: str, player_data: GamePlayerAdd) -> GamePlayer:
    """Add a registered player to a running game"""
    from ledger_service.services.player_service import get_player

    game = _open_game(db, session_id, game_id)
    if not get_player(db, player_data.player_id):
        raise HTTPException(status_code=404, detail="Player not found")

    session = get_active_session(db, session_id)
    game_player = join_game(db, session, game, player_data.player_id, player_data.initial_buy_in)
    db.commit()
    db.refresh(game_player)
    return game_player


def get_game_balances(db: Session, game: Game) -> Dict[str, Decimal]:
    """Replay the game's transactions; players who joined start at zero"""
    players = [game_player.player_id for game_player in get_game_players(db, game.id)]
    return rebuild_balances(get_game_transactions(db, game.id), players=players)


def preview_game_settlement(db: Session, session_id: str, game_id: str) -> SettlementResult:
    """Settlement of the game's current balances, without storing it"""
    game = get_game(db, session_id, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")

    return settle(get_game_balances(db, game), get_settings().balance_tolerance)


def settle_game(db: Session, session_id: str, game_id: str) -> SettlementResult:
    """
    Settle a game and store its balances and payments on the game.

    Settling again later replaces the snapshot, since the game's part of the
    log can still change while the session is active.
    """
    get_active_session(db, session_id)
    game = get_game(db, session_id, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")

    balances = get_game_balances(db, game)
    result = settle(balances, get_settings().balance_tolerance)
    if not result.ok:
        raise HTTPException(
            status_code=400,
            detail=f"Game balances are {result.reason} (residual {result.residual})"
        )

    game.balances = dump_balances(balances)
    game.settlements = [
        {"payer": s["payer"], "payee": s["payee"], "amount": str(s["amount"])}
        for s in result.settlements
    ]
    db.commit()
    db.refresh(game)
    logger.info(f"Settled game {game_id} with {len(result.settlements)} settlements")
    return result
