from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, func
from sqlalchemy.future import select
from backend.app.core.database import get_db, transaction
from backend.app.models.match_model import Match
from backend.app.models.player_model import Player
from backend.app.models.tournament_model import Tournament
from backend.app.models.winner_model import WinnerLedger

router = APIRouter()

RESET_CONFIRMATION = "I-UNDERSTAND-THIS-DELETES-EVERYTHING"

@router.delete("/reset", status_code=status.HTTP_200_OK)
async def reset_database(confirmation: str, db: AsyncSession = Depends(get_db)):
    """
    Resets the database.
    Query Param 'confirmation' must equal 'I-UNDERSTAND-THIS-DELETES-EVERYTHING'.
    """
    if confirmation != RESET_CONFIRMATION:
        raise HTTPException(
            status_code=400,
            detail="Invalid confirmation string. Operation aborted."
        )

    # Children before parents so foreign keys never dangle
    async with transaction(db, "reset database"):
        await db.execute(delete(Match))
        await db.execute(delete(Player))
        await db.execute(delete(Tournament))
        await db.execute(delete(WinnerLedger))

    return {"message": "Database successfully wiped."}

@router.get("/status")
async def get_admin_status(db: AsyncSession = Depends(get_db)):
    """
    Get database statistics for admin dashboard.
    """
    counts = {}
    for label, column in (
        ("tournaments", Tournament.id),
        ("players", Player.id),
        ("matches", Match.id),
        ("winners", WinnerLedger.username),
    ):
        result = await db.execute(select(func.count(column)))
        counts[label] = result.scalar() or 0
    return counts
