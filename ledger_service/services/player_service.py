from sqlalchemy.orm import Session
from sqlalchemy import func
from fastapi import HTTPException
from typing import List, Optional
from ledger_service.models.players import Player
from ledger_service.schemas.player_schema import PlayerCreate, PlayerUpdate
from ledger_service.utils.analytics import PlayerStats, calculate_player_stats

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 30


def validate_player_name(db: Session, name: Optional[str], current_player_id: Optional[str] = None) -> str:
    """Return the trimmed name or raise 400/409 with a readable message"""
    trimmed = name.strip() if name else ""

    if not trimmed:
        raise HTTPException(status_code=400, detail="Player name cannot be empty")
    if len(trimmed) < MIN_NAME_LENGTH:
        raise HTTPException(status_code=400, detail=f"Player name must be at least {MIN_NAME_LENGTH} characters")
    if len(trimmed) > MAX_NAME_LENGTH:
        raise HTTPException(status_code=400, detail=f"Player name cannot exceed {MAX_NAME_LENGTH} characters")

    query = db.query(Player).filter(func.lower(Player.name) == trimmed.lower())
    if current_player_id:
        query = query.filter(Player.id != current_player_id)
    if query.first():
        raise HTTPException(status_code=409, detail="A player with this name already exists")

    return trimmed


def create_player(db: Session, player_data: PlayerCreate) -> Player:
    """Register a new player"""
    player = Player(name=validate_player_name(db, player_data.name))
    db.add(player)
    db.commit()
    db.refresh(player)
    return player


def get_player(db: Session, player_id: str) -> Optional[Player]:
    """Get a player by ID"""
    return db.query(Player).filter(Player.id == player_id).first()


def get_players(db: Session) -> List[Player]:
    """Get all players ordered by name"""
    return db.query(Player).order_by(Player.name).all()


def update_player(db: Session, player_id: str, update_data: PlayerUpdate) -> Player:
    """Rename a player"""
    player = get_player(db, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    if update_data.name is not None:
        player.name = validate_player_name(db, update_data.name, player_id)

    db.commit()
    db.refresh(player)
    return player


def delete_player(db: Session, player_id: str):
    """Remove a player from the registry. Session history keeps the ID."""
    player = get_player(db, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    db.delete(player)
    db.commit()


def get_player_stats(db: Session, player_id: str) -> PlayerStats:
    """Calculate a player's results across completed sessions"""
    from ledger_service.services.session_service import get_completed_sessions

    if not get_player(db, player_id):
        raise HTTPException(status_code=404, detail="Player not found")

    history = [
        {"date": session.completed_at, "balances": session.balances}
        for session in get_completed_sessions(db)
    ]
    return calculate_player_stats(player_id, history)
