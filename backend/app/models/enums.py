from enum import StrEnum

class TournamentStatus(StrEnum):
    PENDING = "pending"
    REGISTRATION = "registration"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PlayerStatus(StrEnum):
    REGISTERED = "registered"
    CHECKED_IN = "checked_in"
    PLAYING = "playing"
    ELIMINATED = "eliminated"
    WINNER = "winner"

class MatchStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
