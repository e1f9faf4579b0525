import logging
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from fastapi import HTTPException
from typing import List, Optional
from ledger_service.core.config import get_settings
from ledger_service.models.game_sessions import Game, GamePlayer, GameSession, LedgerTransaction, SessionStatus
from ledger_service.schemas.session_schema import SessionCreate
from ledger_service.services.transaction_service import dump_balances, load_balances
from ledger_service.utils.auto_balancer import auto_balance
from ledger_service.utils.balance_validator import validate_balances
from ledger_service.utils.money import to_money
from ledger_service.utils.settlement_solver import SettlementResult, settle

logger = logging.getLogger(__name__)


def start_session(db: Session, session_data: SessionCreate) -> GameSession:
    """Start a new session; listed players begin at a zero balance"""
    from ledger_service.services.player_service import get_player

    for player_id in session_data.player_ids:
        if not get_player(db, player_id):
            raise HTTPException(status_code=404, detail=f"Player {player_id} not found")

    session = GameSession(
        name=session_data.name,
        status=SessionStatus.active,
        balances={player_id: "0.00" for player_id in session_data.player_ids}
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"Started session {session.id} with {len(session_data.player_ids)} players")
    return session


def get_session(db: Session, session_id: str) -> Optional[GameSession]:
    """Get a session by ID"""
    return db.query(GameSession).filter(GameSession.id == session_id).first()


def get_sessions(db: Session, status: Optional[SessionStatus] = None) -> List[GameSession]:
    """Get sessions, newest first, optionally filtered by status"""
    query = db.query(GameSession)
    if status is not None:
        query = query.filter(GameSession.status == status)
    return query.order_by(GameSession.started_at.desc()).all()


def get_completed_sessions(db: Session) -> List[GameSession]:
    """Get the session history"""
    return get_sessions(db, SessionStatus.completed)


def preview_settlement(db: Session, session_id: str) -> SettlementResult:
    """Settlement for the current balances of a session, without freezing it"""
    session = get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    if session.status == SessionStatus.completed:
        settlements = [{**s, "amount": to_money(s["amount"])} for s in session.settlements or []]
        return SettlementResult(ok=True, settlements=settlements)

    return settle(load_balances(session), get_settings().balance_tolerance)


def complete_session(db: Session, session_id: str, use_auto_balance: Optional[bool] = None) -> GameSession:
    """
    Validate the live balances, settle them and freeze the session.

    Unbalanced sessions are rejected unless auto-balancing is requested
    (or enabled by default in settings), in which case the residual is
    spread over the non-zero players before settling.
    """
    from ledger_service.services.transaction_service import get_active_session

    settings = get_settings()
    tolerance = settings.balance_tolerance
    session = get_active_session(db, session_id)
    balances = load_balances(session)

    if use_auto_balance is None:
        use_auto_balance = settings.auto_balance_on_complete

    validation = validate_balances(balances, tolerance, settings.min_active_players)
    if not validation.is_valid and use_auto_balance and abs(validation.sum) > tolerance:
        logger.info(f"Auto-balancing session {session_id}: residual {validation.sum}")
        balances = auto_balance(balances, tolerance)
        validation = validate_balances(balances, tolerance, settings.min_active_players)

    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=validation.reason)

    result = settle(balances, tolerance)
    if not result.ok:
        raise HTTPException(status_code=400, detail=f"Balances are {result.reason} (residual {result.residual})")

    session.balances = dump_balances(balances)
    session.settlements = [
        {"payer": s["payer"], "payee": s["payee"], "amount": str(s["amount"])}
        for s in result.settlements
    ]
    session.status = SessionStatus.completed
    session.completed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(session)
    logger.info(f"Completed session {session_id} with {len(result.settlements)} settlements")
    return session


def delete_session(db: Session, session_id: str):
    """Delete a session together with its transaction log and games"""
    session = get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    game_ids = [game.id for game in db.query(Game).filter(Game.session_id == session_id).all()]
    db.query(LedgerTransaction).filter(LedgerTransaction.session_id == session_id).delete()
    if game_ids:
        db.query(GamePlayer).filter(GamePlayer.game_id.in_(game_ids)).delete(synchronize_session=False)
        db.query(Game).filter(Game.session_id == session_id).delete()
    db.delete(session)
    db.commit()
    logger.info(f"Deleted session {session_id}")
