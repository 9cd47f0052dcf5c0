import asyncio
import os
import sys

# Add project root to path so we can import from backend.app
sys.path.append(os.path.join(os.path.dirname(__file__), '../../'))

from backend.app.core import database
# IMPORT ALL MODELS
from backend.app.models.tournament_model import Tournament
from backend.app.models.player_model import Player
from backend.app.models.match_model import Match
from backend.app.models.winner_model import WinnerLedger

async def init_models():
    engine = database.init_engine()
    async with engine.begin() as conn:
        # Safe create (only creates if missing)
        await conn.run_sync(database.Base.metadata.create_all)
        print("Database tables updated.")
    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(init_models())
