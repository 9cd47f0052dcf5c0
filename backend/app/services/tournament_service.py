import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from backend.app.core.config import settings
from backend.app.core.database import transaction
from backend.app.core.errors import (
    DuplicatePlayerError,
    NotFoundError,
    RegistrationClosedError,
    TournamentError,
    TournamentFullError,
)
from backend.app.engine.bracket import MIN_PLAYERS
from backend.app.engine.lifecycle import check_transition
from backend.app.models.enums import MatchStatus, TournamentStatus
from backend.app.models.match_model import Match
from backend.app.models.player_model import Player
from backend.app.models.tournament_model import Tournament

logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


class TournamentService:
    async def create_tournament(
        self,
        db: AsyncSession,
        name: str,
        max_players: Optional[int] = None,
        description: Optional[str] = None,
        prize_pool: float = 0.0,
    ) -> Tournament:
        """Creates the Tournament record in 'pending'. Registration is opened separately."""
        max_players = max_players or settings.default_max_players
        if max_players < MIN_PLAYERS:
            raise TournamentError(f"max_players must be at least {MIN_PLAYERS}")

        async with transaction(db, "create tournament"):
            tournament = Tournament(
                name=name,
                description=description,
                max_players=max_players,
                prize_pool=prize_pool or 0.0,
                status=TournamentStatus.PENDING,
            )
            db.add(tournament)

        await db.refresh(tournament)
        logger.info("Tournament %s created: %s (max %d players)", tournament.id, name, max_players)
        return tournament

    async def get_tournament(self, db: AsyncSession, tournament_id: int) -> Tournament:
        result = await db.execute(select(Tournament).where(Tournament.id == tournament_id))
        t = result.scalar_one_or_none()
        if not t:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return t

    async def get_current(self, db: AsyncSession) -> Optional[Tournament]:
        """Most recent tournament that is taking entries or being played."""
        result = await db.execute(
            select(Tournament)
            .where(Tournament.status.in_([TournamentStatus.REGISTRATION, TournamentStatus.LIVE]))
            .order_by(Tournament.created_at.desc(), Tournament.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def set_status(self, db: AsyncSession, tournament_id: int, status: str) -> Tournament:
        """Admin-driven transitions: open/close registration, cancel."""
        async with transaction(db, f"update status of tournament {tournament_id}"):
            result = await db.execute(
                select(Tournament).where(Tournament.id == tournament_id).with_for_update()
            )
            t = result.scalar_one_or_none()
            if not t:
                raise NotFoundError(f"Tournament {tournament_id} not found")

            check_transition(t.status, status, admin=True)
            previous = t.status
            t.status = TournamentStatus(status)

        logger.info("Tournament %s: %s -> %s", tournament_id, previous, status)
        return t

    # --- Roster ---

    async def list_players(self, db: AsyncSession, tournament_id: int) -> List[Player]:
        result = await db.execute(
            select(Player)
            .where(Player.tournament_id == tournament_id)
            .order_by(Player.seed.asc(), Player.id.asc())
        )
        return list(result.scalars().all())

    async def add_player(
        self,
        db: AsyncSession,
        tournament_id: int,
        username: str,
        display_name: Optional[str] = None,
    ) -> Player:
        """
        Registers a player. Usernames are unique per tournament regardless of
        case; the seed defaults to registration order.
        """
        username_key = normalize_username(username)
        if not username_key:
            raise TournamentError("Username is required")

        async with transaction(db, f"add player to tournament {tournament_id}"):
            result = await db.execute(
                select(Tournament).where(Tournament.id == tournament_id).with_for_update()
            )
            t = result.scalar_one_or_none()
            if not t:
                raise NotFoundError(f"Tournament {tournament_id} not found")

            if t.status != TournamentStatus.REGISTRATION:
                raise RegistrationClosedError("Tournament is not accepting registrations")

            count_result = await db.execute(
                select(func.count(Player.id)).where(Player.tournament_id == tournament_id)
            )
            if count_result.scalar_one() >= t.max_players:
                raise TournamentFullError("Tournament is full")

            existing = await db.execute(
                select(Player.id).where(
                    Player.tournament_id == tournament_id,
                    Player.affiliate_username == username_key,
                )
            )
            if existing.first():
                raise DuplicatePlayerError(f"Player '{username_key}' is already registered")

            seed_result = await db.execute(
                select(func.max(Player.seed)).where(Player.tournament_id == tournament_id)
            )
            next_seed = (seed_result.scalar() or 0) + 1

            player = Player(
                tournament_id=tournament_id,
                affiliate_username=username_key,
                display_name=(display_name or username).strip(),
                seed=next_seed,
            )
            db.add(player)
            try:
                await db.flush()
            except IntegrityError:
                # Lost a race with a concurrent registration of the same name
                raise DuplicatePlayerError(f"Player '{username_key}' is already registered")

        await db.refresh(player)
        logger.info("Player %s registered for tournament %s (seed %d)", username_key, tournament_id, next_seed)
        return player

    async def _get_player_in_registration(self, db: AsyncSession, player_id: int, action: str) -> Player:
        result = await db.execute(select(Player).where(Player.id == player_id))
        player = result.scalar_one_or_none()
        if not player:
            raise NotFoundError(f"Player {player_id} not found")

        t_result = await db.execute(select(Tournament.status).where(Tournament.id == player.tournament_id))
        if t_result.scalar_one() != TournamentStatus.REGISTRATION:
            raise RegistrationClosedError(f"Cannot {action} after registration has closed")
        return player

    async def remove_player(self, db: AsyncSession, player_id: int):
        async with transaction(db, f"remove player {player_id}"):
            player = await self._get_player_in_registration(db, player_id, "remove player")
            await db.delete(player)
        logger.info("Player %s removed", player_id)

    async def set_seed(self, db: AsyncSession, player_id: int, seed: int) -> Player:
        if seed < 1:
            raise TournamentError("Seed must be a positive integer")

        async with transaction(db, f"set seed of player {player_id}"):
            player = await self._get_player_in_registration(db, player_id, "change seed")
            player.seed = seed
        return player

    # --- Progress ---

    async def match_progress(self, db: AsyncSession, tournament_id: int) -> dict:
        total = await db.execute(
            select(func.count(Match.id)).where(Match.tournament_id == tournament_id)
        )
        completed = await db.execute(
            select(func.count(Match.id)).where(
                Match.tournament_id == tournament_id,
                Match.status == MatchStatus.COMPLETED,
            )
        )
        return {"total": total.scalar() or 0, "completed": completed.scalar() or 0}


tournament_service = TournamentService()
