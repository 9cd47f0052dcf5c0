from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from backend.app.core.database import get_db
from backend.app.services.tournament_service import tournament_service
from backend.app.schemas.tournament_schema import (
    PlayerCreate,
    PlayerResponse,
    SeedUpdate,
    TournamentCreate,
    TournamentDetail,
    TournamentResponse,
    TournamentStatusUpdate,
)

router = APIRouter()

async def _detail(db: AsyncSession, tournament_id: int) -> TournamentDetail:
    t = await tournament_service.get_tournament(db, tournament_id)
    players = await tournament_service.list_players(db, tournament_id)
    progress = await tournament_service.match_progress(db, tournament_id)
    return TournamentDetail(
        **TournamentResponse.model_validate(t).model_dump(),
        players=[PlayerResponse.model_validate(p) for p in players],
        matches_total=progress["total"],
        matches_completed=progress["completed"],
    )

@router.post("/create", response_model=TournamentResponse)
async def create_tournament(payload: TournamentCreate, db: AsyncSession = Depends(get_db)):
    return await tournament_service.create_tournament(
        db,
        name=payload.name,
        max_players=payload.max_players,
        description=payload.description,
        prize_pool=payload.prize_pool,
    )

# --- Before /{id} so "current" is not parsed as an id ---
@router.get("/current", response_model=Optional[TournamentDetail])
async def get_current_tournament(db: AsyncSession = Depends(get_db)):
    """The tournament currently taking entries or being played, if any."""
    t = await tournament_service.get_current(db)
    if not t:
        return None
    return await _detail(db, t.id)

@router.get("/{id}", response_model=TournamentDetail)
async def get_tournament(id: int, db: AsyncSession = Depends(get_db)):
    return await _detail(db, id)

@router.post("/{id}/status", response_model=TournamentResponse)
async def update_status(id: int, payload: TournamentStatusUpdate, db: AsyncSession = Depends(get_db)):
    """Open or close registration, or cancel the tournament."""
    return await tournament_service.set_status(db, id, payload.status)

@router.get("/{id}/players", response_model=List[PlayerResponse])
async def list_players(id: int, db: AsyncSession = Depends(get_db)):
    await tournament_service.get_tournament(db, id)
    return await tournament_service.list_players(db, id)

@router.post("/{id}/players", response_model=PlayerResponse)
async def add_player(id: int, payload: PlayerCreate, db: AsyncSession = Depends(get_db)):
    return await tournament_service.add_player(db, id, payload.username, payload.display_name)

@router.delete("/players/{player_id}")
async def remove_player(player_id: int, db: AsyncSession = Depends(get_db)):
    await tournament_service.remove_player(db, player_id)
    return {"message": "Player removed"}

@router.patch("/players/{player_id}/seed", response_model=PlayerResponse)
async def set_seed(player_id: int, payload: SeedUpdate, db: AsyncSession = Depends(get_db)):
    return await tournament_service.set_seed(db, player_id, payload.seed)
