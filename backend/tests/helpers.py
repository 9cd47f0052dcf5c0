import unittest
from typing import List, Tuple

from backend.app.core.database import Base, create_engine_for, get_session_maker
from backend.app.models.enums import TournamentStatus
from backend.app.models.match_model import Match
from backend.app.models.player_model import Player
from backend.app.models.tournament_model import Tournament
from backend.app.services.bracket_service import bracket_service
from backend.app.services.tournament_service import tournament_service
from sqlalchemy.future import select

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class DatabaseTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh in-memory database per test."""

    async def asyncSetUp(self):
        self.engine = create_engine_for(TEST_DATABASE_URL)
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.SessionLocal = get_session_maker(self.engine)
        self.db = self.SessionLocal()

    async def asyncTearDown(self):
        await self.db.close()
        await self.engine.dispose()

    async def open_tournament(self, names: List[str], max_players: int = 16) -> Tuple[Tournament, List[Player]]:
        t = await tournament_service.create_tournament(self.db, "Friday Slot Battle", max_players=max_players)
        await tournament_service.set_status(self.db, t.id, TournamentStatus.REGISTRATION)
        players = [await tournament_service.add_player(self.db, t.id, name) for name in names]
        return t, players

    async def live_tournament(self, names: List[str]) -> Tuple[Tournament, List[Player]]:
        t, players = await self.open_tournament(names)
        await bracket_service.generate_bracket(self.db, t.id)
        return t, players

    async def matches(self, tournament_id: int) -> List[Match]:
        result = await self.db.execute(
            select(Match)
            .where(Match.tournament_id == tournament_id)
            .order_by(Match.round.asc(), Match.match_number.asc())
        )
        return list(result.scalars().all())

    async def match_at(self, tournament_id: int, round_number: int, position: int) -> Match:
        """Match by 1-based position within a round."""
        in_round = [m for m in await self.matches(tournament_id) if m.round == round_number]
        return in_round[position - 1]

    async def player(self, player_id: int) -> Player:
        result = await self.db.execute(select(Player).where(Player.id == player_id))
        return result.scalar_one()

    async def tournament(self, tournament_id: int) -> Tournament:
        result = await self.db.execute(select(Tournament).where(Tournament.id == tournament_id))
        return result.scalar_one()
