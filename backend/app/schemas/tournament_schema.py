from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import datetime

# --- Requests ---

class TournamentCreate(BaseModel):
    name: str = Field(min_length=1)
    max_players: Optional[int] = Field(default=None, ge=2)
    description: Optional[str] = None
    prize_pool: float = Field(default=0.0, ge=0)

class TournamentStatusUpdate(BaseModel):
    # Only admin-reachable states; live/completed are driven by the bracket
    status: Literal["pending", "registration", "cancelled"]

class PlayerCreate(BaseModel):
    username: str = Field(min_length=1)
    display_name: Optional[str] = None

class SeedUpdate(BaseModel):
    seed: int = Field(ge=1)

class ScoreSubmit(BaseModel):
    player1_score: float = Field(ge=0)
    player2_score: float = Field(ge=0)

# --- Responses ---

class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    status: str
    max_players: int
    prize_pool: float = 0.0
    total_rounds: Optional[int] = None
    current_round: Optional[int] = None
    champion_id: Optional[int] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    affiliate_username: str
    display_name: str
    seed: Optional[int] = None
    status: str
    best_multiplier: Optional[float] = None

class TournamentDetail(TournamentResponse):
    players: List[PlayerResponse]
    matches_total: int
    matches_completed: int

class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    round: int
    match_number: int
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None
    winner_id: Optional[int] = None
    player1_score: Optional[float] = None
    player2_score: Optional[float] = None
    status: str
    is_bye: bool

    # Filled from the roster, not stored on the match
    player1_name: Optional[str] = None
    player2_name: Optional[str] = None

class RoundResponse(BaseModel):
    round: int
    name: str
    matches: List[MatchResponse]

class BracketResponse(BaseModel):
    tournament_id: int
    status: str
    total_rounds: Optional[int] = None
    current_round: Optional[int] = None
    rounds: List[RoundResponse]

class MatchResultResponse(BaseModel):
    match_id: int
    winner_id: Optional[int] = None
    loser_id: Optional[int] = None
    tournament_completed: bool = False

class WinnerEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    win_count: int
    last_tournament_id: Optional[int] = None
    last_won_at: Optional[datetime] = None
