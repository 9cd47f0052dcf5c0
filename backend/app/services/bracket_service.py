"""
Bracket Service - Generation, Resolution and Completion

This service runs the bracket engine against the database:
- One-shot bracket generation from the registered roster
- Score submission (winner/loser, standings, advancement)
- Bye resolution, including empty byes that propagate downstream
- Tournament completion and the winners ledger

Every public operation is a single transaction. A failure part way through
rolls back the whole operation so the stored bracket stays consistent.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from backend.app.core.database import transaction
from backend.app.core.errors import (
    BracketAlreadyExistsError,
    BracketIntegrityError,
    InsufficientPlayersError,
    InvalidTransitionError,
    MatchAlreadyCompletedError,
    MatchNotReadyError,
    NotFoundError,
)
from backend.app.engine.bracket import (
    MIN_PLAYERS,
    advancement_slot,
    build_bracket,
    feeder_positions,
    round_name,
    total_rounds_for,
)
from backend.app.engine.lifecycle import check_transition
from backend.app.engine.scoring import best_multiplier, decide_winner, validate_score
from backend.app.models.enums import MatchStatus, PlayerStatus, TournamentStatus
from backend.app.models.match_model import Match
from backend.app.models.player_model import Player
from backend.app.models.tournament_model import Tournament
from backend.app.models.winner_model import WinnerLedger

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    match_id: int
    winner_id: Optional[int]
    loser_id: Optional[int]
    tournament_completed: bool = False


@dataclass
class BracketRound:
    round: int
    name: str
    matches: List[Match]


@dataclass
class BracketView:
    tournament: Tournament
    rounds: List[BracketRound]
    players: Dict[int, Player]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BracketService:
    """Single-elimination bracket operations"""

    # --- Loading ---

    async def _get_tournament(self, db: AsyncSession, tournament_id: int, for_update: bool = False) -> Tournament:
        query = select(Tournament).where(Tournament.id == tournament_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        tournament = result.scalar_one_or_none()
        if not tournament:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    async def _get_match_for_update(self, db: AsyncSession, match_id: int) -> Match:
        """
        Load match with row locking (FOR UPDATE) so concurrent resolutions
        of the same match serialize on the row.
        """
        result = await db.execute(select(Match).where(Match.id == match_id).with_for_update())
        match = result.scalar_one_or_none()
        if not match:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    async def _get_player(self, db: AsyncSession, player_id: int) -> Player:
        result = await db.execute(select(Player).where(Player.id == player_id))
        player = result.scalar_one_or_none()
        if not player:
            raise NotFoundError(f"Player {player_id} not found")
        return player

    async def _round_matches(self, db: AsyncSession, tournament_id: int, round_number: int) -> List[Match]:
        result = await db.execute(
            select(Match)
            .where(Match.tournament_id == tournament_id, Match.round == round_number)
            .order_by(Match.match_number.asc())
        )
        return list(result.scalars().all())

    async def _position_in_round(self, db: AsyncSession, match: Match) -> int:
        """1-based position of the match within its round, left to right."""
        result = await db.execute(
            select(func.count(Match.id)).where(
                Match.tournament_id == match.tournament_id,
                Match.round == match.round,
                Match.match_number <= match.match_number,
            )
        )
        return result.scalar_one()

    async def _feeder_matches(self, db: AsyncSession, match: Match) -> List[Match]:
        if match.round == 1:
            return []
        position = await self._position_in_round(db, match)
        previous = await self._round_matches(db, match.tournament_id, match.round - 1)
        feeders = [previous[p - 1] for p in feeder_positions(position) if p <= len(previous)]
        if len(feeders) != 2:
            raise BracketIntegrityError(f"Match {match.id} is missing its feeder matches")
        return feeders

    def _require_live(self, tournament: Tournament):
        if tournament.status != TournamentStatus.LIVE:
            raise InvalidTransitionError(
                f"Tournament {tournament.id} is '{tournament.status}', matches can only be played while live"
            )

    # --- Generation ---

    async def generate_bracket(self, db: AsyncSession, tournament_id: int) -> Tournament:
        """
        Seeds the registered roster into a full bracket and moves the
        tournament to live. Can only ever succeed once per tournament.
        """
        async with transaction(db, f"generate bracket for tournament {tournament_id}"):
            tournament = await self._get_tournament(db, tournament_id, for_update=True)

            existing = await db.execute(
                select(Match.id).where(Match.tournament_id == tournament_id).limit(1)
            )
            if existing.first():
                raise BracketAlreadyExistsError(f"Bracket already generated for tournament {tournament_id}")

            check_transition(tournament.status, TournamentStatus.LIVE)

            result = await db.execute(
                select(Player)
                .where(
                    Player.tournament_id == tournament_id,
                    Player.status == PlayerStatus.REGISTERED,
                )
                .order_by(Player.seed.asc(), Player.id.asc())
            )
            players = result.scalars().all()

            if len(players) < MIN_PLAYERS:
                raise InsufficientPlayersError(
                    f"Need at least {MIN_PLAYERS} registered players, got {len(players)}"
                )

            skeletons = build_bracket([p.id for p in players])

            # Bulk insert
            db.add_all([
                Match(
                    tournament_id=tournament_id,
                    round=s.round,
                    match_number=s.match_number,
                    player1_id=s.player1_id,
                    player2_id=s.player2_id,
                    is_bye=s.is_bye,
                    status=MatchStatus.PENDING,
                )
                for s in skeletons
            ])

            tournament.total_rounds = total_rounds_for(len(players))
            tournament.current_round = 1
            tournament.status = TournamentStatus.LIVE
            tournament.started_at = _now()

        logger.info(
            "Tournament %s bracket generated: %d players, %d rounds, %d matches",
            tournament_id, len(players), tournament.total_rounds, len(skeletons),
        )
        return tournament

    # --- Resolution ---

    async def submit_match_score(
        self,
        db: AsyncSession,
        match_id: int,
        player1_score: float,
        player2_score: float,
    ) -> MatchResult:
        """
        Records the final scores, eliminates the loser and moves the winner
        into the next round (or completes the tournament after the final).
        A bye with a single occupant is resolved as a bye; scores are ignored.
        """
        async with transaction(db, f"submit score for match {match_id}"):
            match = await self._get_match_for_update(db, match_id)
            if match.status == MatchStatus.COMPLETED:
                raise MatchAlreadyCompletedError(f"Match {match_id} is already completed")

            tournament = await self._get_tournament(db, match.tournament_id)
            self._require_live(tournament)

            lone_occupant = (match.player1_id is None) != (match.player2_id is None)
            if match.is_bye and lone_occupant:
                result = await self._resolve_bye(db, tournament, match)
            else:
                result = await self._resolve_scored(db, tournament, match, player1_score, player2_score)

            await self._update_current_round(db, tournament)

        logger.info("Match %s resolved: winner %s", match_id, result.winner_id)
        return result

    async def _resolve_scored(
        self,
        db: AsyncSession,
        tournament: Tournament,
        match: Match,
        player1_score: float,
        player2_score: float,
    ) -> MatchResult:
        if match.player1_id is None or match.player2_id is None:
            raise MatchNotReadyError(f"Match {match.id} does not have both players yet")

        score1 = validate_score(player1_score)
        score2 = validate_score(player2_score)

        winner_id, loser_id = decide_winner(match.player1_id, match.player2_id, score1, score2)
        winning_score, losing_score = (score1, score2) if winner_id == match.player1_id else (score2, score1)

        await self._mark_completed(db, match, winner_id, score1, score2)

        winner = await self._get_player(db, winner_id)
        loser = await self._get_player(db, loser_id)

        winner.best_multiplier = best_multiplier(winner.best_multiplier, winning_score)
        loser.best_multiplier = best_multiplier(loser.best_multiplier, losing_score)
        winner.status = PlayerStatus.CHECKED_IN
        loser.status = PlayerStatus.ELIMINATED

        completed = await self._advance(db, tournament, match, winner_id)
        return MatchResult(match.id, winner_id, loser_id, tournament_completed=completed)

    async def _mark_completed(
        self,
        db: AsyncSession,
        match: Match,
        winner_id: Optional[int],
        player1_score: Optional[float],
        player2_score: Optional[float],
    ):
        # Conditional update: only one resolution of a match can ever apply
        result = await db.execute(
            update(Match)
            .where(Match.id == match.id, Match.status != MatchStatus.COMPLETED)
            .values(
                player1_score=player1_score,
                player2_score=player2_score,
                winner_id=winner_id,
                status=MatchStatus.COMPLETED,
                completed_at=_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise MatchAlreadyCompletedError(f"Match {match.id} is already completed")
        await db.refresh(match)

    async def _advance(self, db: AsyncSession, tournament: Tournament, match: Match, winner_id: Optional[int]) -> bool:
        """
        Writes the winner into the next round. An empty winner (a bye with
        nobody in it) turns the downstream match into a bye instead.
        Returns True if this was the final and the tournament is now complete.
        """
        next_matches = await self._round_matches(db, match.tournament_id, match.round + 1)

        if not next_matches:
            if winner_id is None:
                raise MatchNotReadyError(f"Final match {match.id} has no player to crown")
            await self.complete_tournament(db, tournament.id, winner_id)
            return True

        position = await self._position_in_round(db, match)
        index, slot = advancement_slot(position)
        if index >= len(next_matches):
            raise BracketIntegrityError(
                f"No round {match.round + 1} match at index {index} for match {match.id}"
            )
        target = next_matches[index]

        if winner_id is None:
            target.is_bye = True
            return False

        if getattr(target, slot) is not None:
            raise BracketIntegrityError(f"Slot {slot} of match {target.id} is already filled")
        setattr(target, slot, winner_id)
        return False

    async def _update_current_round(self, db: AsyncSession, tournament: Tournament):
        await db.flush()
        result = await db.execute(
            select(func.min(Match.round)).where(
                Match.tournament_id == tournament.id,
                Match.status != MatchStatus.COMPLETED,
            )
        )
        lowest_open = result.scalar()
        tournament.current_round = lowest_open if lowest_open is not None else tournament.total_rounds

    # --- Byes ---

    async def _bye_ready(self, db: AsyncSession, match: Match) -> bool:
        if not match.is_bye or match.status == MatchStatus.COMPLETED:
            return False
        if match.player1_id is not None and match.player2_id is not None:
            return False
        feeders = await self._feeder_matches(db, match)
        return all(f.status == MatchStatus.COMPLETED for f in feeders)

    async def _resolve_bye(self, db: AsyncSession, tournament: Tournament, match: Match) -> MatchResult:
        if not match.is_bye:
            raise MatchNotReadyError(f"Match {match.id} is not a bye")
        if not await self._bye_ready(db, match):
            raise MatchNotReadyError(f"Bye match {match.id} is still waiting on earlier matches")

        winner_id = match.player1_id if match.player1_id is not None else match.player2_id

        await self._mark_completed(db, match, winner_id, None, None)
        if winner_id is not None:
            player = await self._get_player(db, winner_id)
            player.status = PlayerStatus.CHECKED_IN

        completed = await self._advance(db, tournament, match, winner_id)
        return MatchResult(match.id, winner_id, None, tournament_completed=completed)

    async def resolve_bye(self, db: AsyncSession, match_id: int) -> MatchResult:
        """Advance the lone occupant of a bye (or propagate an empty bye)."""
        async with transaction(db, f"resolve bye {match_id}"):
            match = await self._get_match_for_update(db, match_id)
            if match.status == MatchStatus.COMPLETED:
                raise MatchAlreadyCompletedError(f"Match {match_id} is already completed")

            tournament = await self._get_tournament(db, match.tournament_id)
            self._require_live(tournament)

            result = await self._resolve_bye(db, tournament, match)
            await self._update_current_round(db, tournament)

        logger.info("Bye %s resolved: %s advances", match_id, result.winner_id)
        return result

    async def resolve_ready_byes(self, db: AsyncSession, tournament_id: int) -> List[int]:
        """
        Resolves every bye that can be resolved, round by round, until none
        are left. Returns the ids of the resolved matches in order.
        """
        resolved: List[int] = []
        while True:
            result = await db.execute(
                select(Match)
                .where(
                    Match.tournament_id == tournament_id,
                    Match.is_bye.is_(True),
                    Match.status != MatchStatus.COMPLETED,
                )
                .order_by(Match.round.asc(), Match.match_number.asc())
            )
            candidates = result.scalars().all()

            ready_id = None
            for match in candidates:
                if await self._bye_ready(db, match):
                    ready_id = match.id
                    break

            if ready_id is None:
                return resolved

            await self.resolve_bye(db, ready_id)
            resolved.append(ready_id)

    # --- Completion ---

    async def complete_tournament(self, db: AsyncSession, tournament_id: int, champion_id: int):
        """
        Crowns the champion, closes the tournament and credits the winners
        ledger. Runs inside the caller's transaction: caller must commit.
        """
        tournament = await self._get_tournament(db, tournament_id)
        check_transition(tournament.status, TournamentStatus.COMPLETED)

        champion = await self._get_player(db, champion_id)
        if champion.tournament_id != tournament.id:
            raise NotFoundError(f"Player {champion_id} is not in tournament {tournament_id}")

        champion.status = PlayerStatus.WINNER
        tournament.status = TournamentStatus.COMPLETED
        tournament.completed_at = _now()
        tournament.champion_id = champion.id

        ledger = await self._get_or_create_ledger(db, champion.affiliate_username)
        ledger.win_count = (ledger.win_count or 0) + 1
        ledger.last_tournament_id = tournament.id
        ledger.last_won_at = tournament.completed_at

        logger.info(
            "Tournament %s completed: champion %s (%d total wins)",
            tournament.id, champion.affiliate_username, ledger.win_count,
        )

    async def _get_or_create_ledger(self, db: AsyncSession, username: str) -> WinnerLedger:
        result = await db.execute(select(WinnerLedger).where(WinnerLedger.username == username))
        ledger = result.scalar_one_or_none()
        if not ledger:
            ledger = WinnerLedger(username=username, win_count=0)
            db.add(ledger)
            # We don't commit here, we let the caller commit transactionally
        return ledger

    # --- Match control ---

    async def start_match(self, db: AsyncSession, match_id: int) -> Match:
        """Marks a ready match as in progress and both players as playing."""
        async with transaction(db, f"start match {match_id}"):
            match = await self._get_match_for_update(db, match_id)
            if match.status == MatchStatus.COMPLETED:
                raise MatchAlreadyCompletedError(f"Match {match_id} is already completed")
            if match.status == MatchStatus.IN_PROGRESS:
                raise InvalidTransitionError(f"Match {match_id} is already in progress")

            tournament = await self._get_tournament(db, match.tournament_id)
            self._require_live(tournament)

            if match.player1_id is None or match.player2_id is None:
                raise MatchNotReadyError(f"Match {match_id} does not have both players yet")

            match.status = MatchStatus.IN_PROGRESS
            for player_id in (match.player1_id, match.player2_id):
                player = await self._get_player(db, player_id)
                player.status = PlayerStatus.PLAYING

        return match

    # --- Reading ---

    async def get_bracket(self, db: AsyncSession, tournament_id: int) -> BracketView:
        tournament = await self._get_tournament(db, tournament_id)

        result = await db.execute(
            select(Match)
            .where(Match.tournament_id == tournament_id)
            .order_by(Match.round.asc(), Match.match_number.asc())
        )
        matches = result.scalars().all()

        players_result = await db.execute(select(Player).where(Player.tournament_id == tournament_id))
        players = {p.id: p for p in players_result.scalars().all()}

        total_rounds = tournament.total_rounds or 0
        grouped: Dict[int, List[Match]] = {}
        for match in matches:
            grouped.setdefault(match.round, []).append(match)

        rounds = [
            BracketRound(round=r, name=round_name(r, total_rounds), matches=grouped[r])
            for r in sorted(grouped)
        ]
        return BracketView(tournament=tournament, rounds=rounds, players=players)


# Singleton instance
bracket_service = BracketService()
