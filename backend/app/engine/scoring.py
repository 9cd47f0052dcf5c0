import math
from typing import Any, Optional, Tuple

from backend.app.core.errors import InvalidScoreError


def validate_score(score: Any) -> float:
    try:
        value = float(score)
    except (TypeError, ValueError):
        raise InvalidScoreError(f"Score must be a number, got {score!r}")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidScoreError(f"Score must be a non-negative finite number, got {score!r}")
    return value


def decide_winner(player1_id: Any, player2_id: Any, player1_score: float, player2_score: float) -> Tuple[Any, Any]:
    """
    Returns (winner_id, loser_id).
    Strict comparison: on a tie player 2 wins.
    """
    if player1_score > player2_score:
        return player1_id, player2_id
    return player2_id, player1_id


def best_multiplier(current: Optional[float], score: float) -> float:
    if current is None:
        return score
    return max(current, score)
