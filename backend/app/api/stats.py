from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import desc, func
from typing import List, Optional
from pydantic import BaseModel

from backend.app.core.database import get_db
from backend.app.core.errors import NotFoundError
from backend.app.models.enums import MatchStatus, PlayerStatus
from backend.app.models.match_model import Match
from backend.app.models.player_model import Player
from backend.app.models.tournament_model import Tournament
from backend.app.models.winner_model import WinnerLedger
from backend.app.schemas.tournament_schema import WinnerEntry

router = APIRouter()

# --- Schemas ---
class TournamentStats(BaseModel):
    tournament_id: int
    status: str
    players_total: int
    players_remaining: int
    matches_total: int
    matches_completed: int
    current_round: Optional[int] = None
    total_rounds: Optional[int] = None
    champion: Optional[str] = None
    top_multiplier: Optional[float] = None

# --- Endpoints ---
@router.get("/winners", response_model=List[WinnerEntry])
async def get_winners(limit: int = 20, db: AsyncSession = Depends(get_db)):
    """Cross-tournament winners, most championships first."""
    query = (
        select(WinnerLedger)
        .order_by(desc(WinnerLedger.win_count), desc(WinnerLedger.last_won_at))
        .limit(limit)
    )
    result = await db.execute(query)
    return result.scalars().all()

@router.get("/tournament/{tournament_id}", response_model=TournamentStats)
async def get_tournament_stats(tournament_id: int, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Tournament).where(Tournament.id == tournament_id))
    t = result.scalar_one_or_none()
    if not t:
        raise NotFoundError(f"Tournament {tournament_id} not found")

    players_total = await db.execute(
        select(func.count(Player.id)).where(Player.tournament_id == tournament_id)
    )
    players_remaining = await db.execute(
        select(func.count(Player.id)).where(
            Player.tournament_id == tournament_id,
            Player.status != PlayerStatus.ELIMINATED,
        )
    )
    top_multiplier = await db.execute(
        select(func.max(Player.best_multiplier)).where(Player.tournament_id == tournament_id)
    )
    matches_total = await db.execute(
        select(func.count(Match.id)).where(Match.tournament_id == tournament_id)
    )
    matches_completed = await db.execute(
        select(func.count(Match.id)).where(
            Match.tournament_id == tournament_id,
            Match.status == MatchStatus.COMPLETED,
        )
    )

    champion = None
    if t.champion_id:
        champ_result = await db.execute(select(Player.display_name).where(Player.id == t.champion_id))
        champion = champ_result.scalar_one_or_none()

    return TournamentStats(
        tournament_id=t.id,
        status=t.status,
        players_total=players_total.scalar() or 0,
        players_remaining=players_remaining.scalar() or 0,
        matches_total=matches_total.scalar() or 0,
        matches_completed=matches_completed.scalar() or 0,
        current_round=t.current_round,
        total_rounds=t.total_rounds,
        champion=champion,
        top_multiplier=top_multiplier.scalar(),
    )
