from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from ledger_service.db.database import get_db
from ledger_service.models.game_sessions import SessionStatus
from ledger_service.services.session_service import (
    start_session, get_session, get_sessions, delete_session, complete_session, preview_settlement
)
from ledger_service.services.transaction_service import (
    record_transaction, get_session_transactions, update_transaction_amount, delete_transaction,
    get_active_session, rebuild_session_balances, load_balances
)
from ledger_service.schemas.session_schema import SessionCreate, SessionComplete, SessionOut, SessionBalancesOut
from ledger_service.schemas.ledger_schema import TransactionCreate, TransactionUpdate, TransactionOut
from ledger_service.schemas.settlement_schema import SettlementResultOut
from ledger_service.utils.analytics import get_balance_stats
from ledger_service.utils.money import ZERO, round_decimal
from ledger_service.utils.settlement_solver import total_settlement_amount

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _balances_out(session) -> SessionBalancesOut:
    balances = load_balances(session)
    stats = get_balance_stats(balances)
    return SessionBalancesOut(
        session_id=session.id,
        balances=balances,
        sum=round_decimal(sum(balances.values(), ZERO)),
        winners=stats.winners,
        losers=stats.losers,
        biggest_winner=stats.biggest_winner,
        biggest_loser=stats.biggest_loser
    )


@router.post("", response_model=SessionOut, status_code=201)
def start_new_session(session_data: SessionCreate, db: Session = Depends(get_db)):
    """Start a session"""
    return start_session(db, session_data)


@router.get("", response_model=List[SessionOut])
def get_sessions_list(status: Optional[SessionStatus] = None, db: Session = Depends(get_db)):
    """Get sessions, optionally only active or completed ones"""
    return get_sessions(db, status)


@router.get("/{session_id}", response_model=SessionOut)
def get_session_details(session_id: str, db: Session = Depends(get_db)):
    """Get a session with its balances and, once completed, its settlements"""
    session = get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.delete("/{session_id}")
def delete_existing_session(session_id: str, db: Session = Depends(get_db)):
    """Delete a session and its transactions"""
    delete_session(db, session_id)
    return {"message": "Session deleted successfully"}


@router.get("/{session_id}/balances", response_model=SessionBalancesOut)
def get_session_balances(session_id: str, db: Session = Depends(get_db)):
    """Get the current balances of a session"""
    session = get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return _balances_out(session)


@router.post("/{session_id}/rebuild", response_model=SessionBalancesOut)
def rebuild_balances_from_log(session_id: str, db: Session = Depends(get_db)):
    """Recompute the live balances from the transaction log"""
    session = get_active_session(db, session_id)
    rebuild_session_balances(db, session)
    db.commit()
    db.refresh(session)
    return _balances_out(session)


@router.post("/{session_id}/transactions", response_model=TransactionOut, status_code=201)
def record_new_transaction(session_id: str, transaction_data: TransactionCreate, db: Session = Depends(get_db)):
    """Record a buy-in, cash-out or adjustment"""
    return record_transaction(db, session_id, transaction_data)


@router.get("/{session_id}/transactions", response_model=List[TransactionOut])
def get_transactions_list(session_id: str, db: Session = Depends(get_db)):
    """Get the transaction log of a session"""
    if not get_session(db, session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return get_session_transactions(db, session_id)


@router.patch("/{session_id}/transactions/{transaction_id}", response_model=TransactionOut)
def update_existing_transaction(
    session_id: str,
    transaction_id: str,
    update_data: TransactionUpdate,
    db: Session = Depends(get_db)
):
    """Change a transaction amount"""
    return update_transaction_amount(db, session_id, transaction_id, update_data.amount)


@router.delete("/{session_id}/transactions/{transaction_id}")
def delete_existing_transaction(session_id: str, transaction_id: str, db: Session = Depends(get_db)):
    """Delete a transaction"""
    delete_transaction(db, session_id, transaction_id)
    return {"message": "Transaction deleted successfully"}


@router.get("/{session_id}/settlement", response_model=SettlementResultOut)
def get_settlement_preview(session_id: str, db: Session = Depends(get_db)):
    """Get the settlement for the current balances"""
    result = preview_settlement(db, session_id)
    return SettlementResultOut(
        ok=result.ok,
        reason=result.reason,
        residual=result.residual,
        settlements=result.settlements,
        total_amount=total_settlement_amount(result.settlements)
    )


@router.post("/{session_id}/complete", response_model=SessionOut)
def complete_existing_session(
    session_id: str,
    options: Optional[SessionComplete] = None,
    db: Session = Depends(get_db)
):
    """Settle the session and freeze it into history"""
    use_auto_balance = options.auto_balance if options else None
    return complete_session(db, session_id, use_auto_balance)
