from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.database import get_db
from backend.app.services.bracket_service import bracket_service
from backend.app.schemas.tournament_schema import (
    BracketResponse,
    MatchResponse,
    MatchResultResponse,
    RoundResponse,
    ScoreSubmit,
)

router = APIRouter()

@router.post("/{tournament_id}/generate")
async def generate_bracket(tournament_id: int, db: AsyncSession = Depends(get_db)):
    t = await bracket_service.generate_bracket(db, tournament_id)
    return {
        "id": t.id,
        "status": t.status,
        "total_rounds": t.total_rounds,
        "current_round": t.current_round,
    }

@router.get("/{tournament_id}", response_model=BracketResponse)
async def get_bracket(tournament_id: int, db: AsyncSession = Depends(get_db)):
    view = await bracket_service.get_bracket(db, tournament_id)

    def name_of(player_id):
        player = view.players.get(player_id)
        return player.display_name if player else None

    rounds = []
    for bracket_round in view.rounds:
        matches = []
        for m in bracket_round.matches:
            item = MatchResponse.model_validate(m)
            item.player1_name = name_of(m.player1_id)
            item.player2_name = name_of(m.player2_id)
            matches.append(item)
        rounds.append(RoundResponse(round=bracket_round.round, name=bracket_round.name, matches=matches))

    return BracketResponse(
        tournament_id=view.tournament.id,
        status=view.tournament.status,
        total_rounds=view.tournament.total_rounds,
        current_round=view.tournament.current_round,
        rounds=rounds,
    )

@router.post("/{tournament_id}/byes")
async def resolve_byes(tournament_id: int, db: AsyncSession = Depends(get_db)):
    """Advance every bye that is ready to be resolved."""
    resolved = await bracket_service.resolve_ready_byes(db, tournament_id)
    return {"resolved": resolved}

@router.post("/matches/{match_id}/start", response_model=MatchResponse)
async def start_match(match_id: int, db: AsyncSession = Depends(get_db)):
    return await bracket_service.start_match(db, match_id)

@router.post("/matches/{match_id}/score", response_model=MatchResultResponse)
async def submit_score(match_id: int, payload: ScoreSubmit, db: AsyncSession = Depends(get_db)):
    result = await bracket_service.submit_match_score(
        db, match_id, payload.player1_score, payload.player2_score
    )
    return MatchResultResponse(**vars(result))

@router.post("/matches/{match_id}/bye", response_model=MatchResultResponse)
async def resolve_bye(match_id: int, db: AsyncSession = Depends(get_db)):
    result = await bracket_service.resolve_bye(db, match_id)
    return MatchResultResponse(**vars(result))
