"""
Ledger transactions of an active session.

The session row owns the live balance map. Buy-ins and cash-outs update it
incrementally through the ledger reducer. An adjustment is an absolute set,
so editing or deleting one, or anything recorded before a later adjustment
of the same player, rebuilds the map from the log instead.
"""
import logging
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy import func
from fastapi import HTTPException
from typing import Dict, List, Optional
from ledger_service.models.game_sessions import GameSession, LedgerTransaction, SessionStatus
from ledger_service.schemas.ledger_schema import TransactionCreate
from ledger_service.utils.ledger_reducer import (
    TransactionType, apply_amount_edit, rebuild_balances, reduce_ledger, revert_entry
)
from ledger_service.utils.money import to_money

logger = logging.getLogger(__name__)


def load_balances(session: GameSession) -> Dict[str, Decimal]:
    """Read the JSON balance column as Decimals"""
    return {player_id: to_money(amount) for player_id, amount in (session.balances or {}).items()}


def dump_balances(balances: Dict[str, Decimal]) -> Dict[str, str]:
    """Prepare a balance map for the JSON column"""
    return {player_id: str(to_money(amount)) for player_id, amount in balances.items()}


def get_active_session(db: Session, session_id: str) -> GameSession:
    """Get a session that can still be modified, or raise"""
    from ledger_service.services.session_service import get_session

    session = get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if session.status != SessionStatus.active:
        raise HTTPException(status_code=400, detail="Session is completed and can no longer be modified")
    return session


def get_transaction(db: Session, session_id: str, transaction_id: str) -> Optional[LedgerTransaction]:
    """Get a transaction of a session by ID"""
    return db.query(LedgerTransaction).filter(
        LedgerTransaction.session_id == session_id,
        LedgerTransaction.id == transaction_id
    ).first()


def get_session_transactions(db: Session, session_id: str) -> List[LedgerTransaction]:
    """Get the transaction log of a session in recording order"""
    return db.query(LedgerTransaction)\
        .filter(LedgerTransaction.session_id == session_id)\
        .order_by(LedgerTransaction.position)\
        .all()


def needs_rebuild(db: Session, transaction: LedgerTransaction) -> bool:
    """
    True when changing ``transaction`` cannot be applied as a difference:
    it is an adjustment, or a later adjustment overwrote the same balance.
    """
    if transaction.type == TransactionType.adjustment:
        return True
    return db.query(LedgerTransaction).filter(
        LedgerTransaction.session_id == transaction.session_id,
        LedgerTransaction.player_id == transaction.player_id,
        LedgerTransaction.type == TransactionType.adjustment,
        LedgerTransaction.position > transaction.position
    ).first() is not None


def record_transaction(db: Session, session_id: str, transaction_data: TransactionCreate) -> LedgerTransaction:
    """
    Record a buy-in, cash-out or manual adjustment and update the live balances.

    A transaction recorded for a game also adds the player to that game, with
    a buy-in amount as their initial buy-in.
    """
    from ledger_service.services.player_service import get_player
    from ledger_service.services.game_service import get_game, join_game

    session = get_active_session(db, session_id)
    if not get_player(db, transaction_data.player_id):
        raise HTTPException(status_code=404, detail="Player not found")

    game = None
    if transaction_data.game_ref:
        game = get_game(db, session_id, transaction_data.game_ref)
        if not game:
            raise HTTPException(status_code=404, detail="Game not found")
        if game.ended_at is not None:
            raise HTTPException(status_code=400, detail="Game has ended")

    last_position = db.query(func.max(LedgerTransaction.position))\
        .filter(LedgerTransaction.session_id == session_id).scalar() or 0

    transaction = LedgerTransaction(
        session_id=session_id,
        position=last_position + 1,
        type=transaction_data.type,
        player_id=transaction_data.player_id,
        amount=to_money(transaction_data.amount),
        game_ref=transaction_data.game_ref,
        note=transaction_data.note
    )

    try:
        session.balances = dump_balances(reduce_ledger(load_balances(session), transaction))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if game is not None:
        initial_buy_in = transaction.amount if transaction.type == TransactionType.buy_in else None
        join_game(db, session, game, transaction.player_id, initial_buy_in)

    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    logger.info(
        f"Recorded {transaction.type.value} of {transaction.amount} for player "
        f"{transaction.player_id} in session {session_id}"
    )
    return transaction


def update_transaction_amount(db: Session, session_id: str, transaction_id: str, new_amount: Decimal) -> LedgerTransaction:
    """Change the amount of a recorded transaction and re-derive the balance"""
    session = get_active_session(db, session_id)
    transaction = get_transaction(db, session_id, transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")

    new_amount = to_money(new_amount)
    if new_amount < 0 and transaction.type != TransactionType.adjustment:
        raise HTTPException(status_code=400, detail=f"{transaction.type.value} amount must be non-negative")

    if needs_rebuild(db, transaction):
        transaction.amount = new_amount
        db.flush()
        rebuild_session_balances(db, session)
    else:
        session.balances = dump_balances(apply_amount_edit(load_balances(session), transaction, new_amount))
        transaction.amount = new_amount

    db.commit()
    db.refresh(transaction)
    return transaction


def delete_transaction(db: Session, session_id: str, transaction_id: str):
    """Delete a transaction and undo its effect on the balance"""
    session = get_active_session(db, session_id)
    transaction = get_transaction(db, session_id, transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")

    if needs_rebuild(db, transaction):
        db.delete(transaction)
        db.flush()
        rebuild_session_balances(db, session)
    else:
        session.balances = dump_balances(revert_entry(load_balances(session), transaction))
        db.delete(transaction)

    db.commit()


def rebuild_session_balances(db: Session, session: GameSession) -> Dict[str, Decimal]:
    """
    Replay the whole transaction log of a session.

    Players already on the balance sheet stay on it at zero even if all
    their transactions were removed. The caller commits.
    """
    transactions = get_session_transactions(db, session.id)
    balances = rebuild_balances(transactions, players=load_balances(session).keys())
    session.balances = dump_balances(balances)
    logger.info(f"Rebuilt balances of session {session.id} from {len(transactions)} transactions")
    return balances
