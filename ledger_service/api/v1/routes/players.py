from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from ledger_service.db.database import get_db
from ledger_service.services.player_service import (
    create_player, get_player, get_players, update_player, delete_player, get_player_stats
)
from ledger_service.schemas.player_schema import PlayerCreate, PlayerUpdate, PlayerOut, PlayerStatsOut

router = APIRouter(prefix="/players", tags=["players"])


@router.post("", response_model=PlayerOut, status_code=201)
def create_new_player(player_data: PlayerCreate, db: Session = Depends(get_db)):
    """Register a player"""
    return create_player(db, player_data)


@router.get("", response_model=List[PlayerOut])
def get_players_list(db: Session = Depends(get_db)):
    """Get all players"""
    return get_players(db)


@router.get("/{player_id}", response_model=PlayerOut)
def get_player_details(player_id: str, db: Session = Depends(get_db)):
    """Get a player"""
    player = get_player(db, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


@router.patch("/{player_id}", response_model=PlayerOut)
def update_existing_player(player_id: str, update_data: PlayerUpdate, db: Session = Depends(get_db)):
    """Rename a player"""
    return update_player(db, player_id, update_data)


@router.delete("/{player_id}")
def delete_existing_player(player_id: str, db: Session = Depends(get_db)):
    """Delete a player"""
    delete_player(db, player_id)
    return {"message": "Player deleted successfully"}


@router.get("/{player_id}/stats", response_model=PlayerStatsOut)
def get_player_statistics(player_id: str, db: Session = Depends(get_db)):
    """Get a player's results across completed sessions"""
    return get_player_stats(db, player_id)
