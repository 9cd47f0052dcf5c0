import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from backend.app.core.errors import InsufficientPlayersError

# Logger setup
logger = logging.getLogger(__name__)

MIN_PLAYERS = 2


@dataclass(frozen=True)
class MatchSkeleton:
    """One bracket slot as produced by the builder, before persistence."""
    round: int
    match_number: int
    player1_id: Optional[Any] = None
    player2_id: Optional[Any] = None
    is_bye: bool = False


def total_rounds_for(num_players: int) -> int:
    """ceil(log2(n)) without floating point."""
    if num_players < MIN_PLAYERS:
        raise InsufficientPlayersError(
            f"Need at least {MIN_PLAYERS} players, got {num_players}"
        )
    return (num_players - 1).bit_length()


def bracket_size_for(num_players: int) -> int:
    """Smallest power of two that fits every player."""
    return 2 ** total_rounds_for(num_players)


def round_name(round_number: int, total_rounds: int) -> str:
    rounds_from_end = total_rounds - round_number
    if rounds_from_end == 0:
        return "Finals"
    elif rounds_from_end == 1:
        return "Semi-Finals"
    elif rounds_from_end == 2:
        return "Quarter-Finals"
    else:
        return f"Round {round_number}"


def matches_in_round(round_number: int, total_rounds: int) -> int:
    return 2 ** (total_rounds - round_number)


def advancement_slot(position: int) -> Tuple[int, str]:
    """
    Where the winner of the match at `position` (1-based, within its round) goes.
    Returns the 0-based index into the next round and the slot to fill.
    """
    index = (position - 1) // 2
    slot = "player1_id" if (position - 1) % 2 == 0 else "player2_id"
    return index, slot


def feeder_positions(position: int) -> Tuple[int, int]:
    """Positions in the previous round whose winners meet at `position`."""
    return 2 * position - 1, 2 * position


def build_bracket(player_ids: Sequence[Any]) -> List[MatchSkeleton]:
    """
    Lay out a full single-elimination bracket.

    Players fill the seed slots in the order given (positional seeding, no
    top-seed separation). Trailing slots are byes. Round 1 pairs adjacent
    slots; every later round is an empty placeholder filled as winners
    advance. Match numbers run left to right, round by round, across the
    whole bracket, so the result holds bracket_size - 1 matches.
    """
    num_players = len(player_ids)
    total_rounds = total_rounds_for(num_players)
    bracket_size = 2 ** total_rounds

    slots: List[Optional[Any]] = list(player_ids) + [None] * (bracket_size - num_players)

    matches: List[MatchSkeleton] = []
    match_number = 1

    for i in range(bracket_size // 2):
        player1 = slots[2 * i]
        player2 = slots[2 * i + 1]
        matches.append(MatchSkeleton(
            round=1,
            match_number=match_number,
            player1_id=player1,
            player2_id=player2,
            is_bye=player1 is None or player2 is None,
        ))
        match_number += 1

    for round_number in range(2, total_rounds + 1):
        for _ in range(matches_in_round(round_number, total_rounds)):
            matches.append(MatchSkeleton(round=round_number, match_number=match_number))
            match_number += 1

    logger.debug(
        "Built bracket: %d players, %d rounds, %d matches",
        num_players, total_rounds, len(matches),
    )
    return matches
