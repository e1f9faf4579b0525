from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from ledger_service.db.database import get_db
from ledger_service.services.game_service import (
    start_game, get_game, get_session_games, update_game, end_game, add_player_to_game,
    get_game_players, get_game_transactions, get_game_balances, preview_game_settlement, settle_game
)
from ledger_service.services.session_service import get_session
from ledger_service.schemas.game_schema import (
    GameCreate, GameUpdate, GameOut, GamePlayerAdd, GamePlayerOut, GameBalancesOut
)
from ledger_service.schemas.ledger_schema import TransactionOut
from ledger_service.schemas.settlement_schema import SettlementResultOut
from ledger_service.utils.money import ZERO, round_decimal
from ledger_service.utils.settlement_solver import total_settlement_amount

router = APIRouter(prefix="/sessions/{session_id}/games", tags=["games"])


def _get_game_or_404(db: Session, session_id: str, game_id: str):
    game = get_game(db, session_id, game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return game


def _result_out(result) -> SettlementResultOut:
    return SettlementResultOut(
        ok=result.ok,
        reason=result.reason,
        residual=result.residual,
        settlements=result.settlements,
        total_amount=total_settlement_amount(result.settlements)
    )


@router.post("", response_model=GameOut, status_code=201)
def start_new_game(session_id: str, game_data: GameCreate, db: Session = Depends(get_db)):
    """Start a game in the session"""
    return start_game(db, session_id, game_data)


@router.get("", response_model=List[GameOut])
def get_games_list(session_id: str, db: Session = Depends(get_db)):
    """Get the games of a session"""
    if not get_session(db, session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return get_session_games(db, session_id)


@router.get("/{game_id}", response_model=GameOut)
def get_game_details(session_id: str, game_id: str, db: Session = Depends(get_db)):
    """Get a game"""
    return _get_game_or_404(db, session_id, game_id)


@router.patch("/{game_id}", response_model=GameOut)
def update_game_details(session_id: str, game_id: str, game_data: GameUpdate, db: Session = Depends(get_db)):
    """Rename a game or change its default buy-in"""
    return update_game(db, session_id, game_id, game_data)


@router.post("/{game_id}/end", response_model=GameOut)
def end_existing_game(session_id: str, game_id: str, db: Session = Depends(get_db)):
    """End a game"""
    return end_game(db, session_id, game_id)


@router.post("/{game_id}/players", response_model=GamePlayerOut, status_code=201)
def add_game_player(session_id: str, game_id: str, player_data: GamePlayerAdd, db: Session = Depends(get_db)):
    """Add a player to a game"""
    return add_player_to_game(db, session_id, game_id, player_data)


@router.get("/{game_id}/players", response_model=List[GamePlayerOut])
def get_game_players_list(session_id: str, game_id: str, db: Session = Depends(get_db)):
    """Get the players of a game"""
    game = _get_game_or_404(db, session_id, game_id)
    return get_game_players(db, game.id)


@router.get("/{game_id}/transactions", response_model=List[TransactionOut])
def get_game_transactions_list(session_id: str, game_id: str, db: Session = Depends(get_db)):
    """Get the transactions recorded for a game"""
    game = _get_game_or_404(db, session_id, game_id)
    return get_game_transactions(db, game.id)


@router.get("/{game_id}/balances", response_model=GameBalancesOut)
def get_game_balances_view(session_id: str, game_id: str, db: Session = Depends(get_db)):
    """Get the balances of a game"""
    game = _get_game_or_404(db, session_id, game_id)
    balances = get_game_balances(db, game)
    return GameBalancesOut(game_id=game.id, balances=balances, sum=round_decimal(sum(balances.values(), ZERO)))


@router.get("/{game_id}/settlement", response_model=SettlementResultOut)
def get_game_settlement_preview(session_id: str, game_id: str, db: Session = Depends(get_db)):
    """Get the settlement for the current game balances"""
    return _result_out(preview_game_settlement(db, session_id, game_id))


@router.post("/{game_id}/settle", response_model=SettlementResultOut)
def settle_existing_game(session_id: str, game_id: str, db: Session = Depends(get_db)):
    """Settle a game and store the result on it"""
    return _result_out(settle_game(db, session_id, game_id))
