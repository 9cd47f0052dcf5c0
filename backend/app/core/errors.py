"""
Error taxonomy for the bracket engine and its services.

Every error carries the HTTP status the API layer should answer with.
None of these are retried automatically: a failed operation leaves the
previously persisted state as the source of truth.
"""


class TournamentError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TournamentError):
    status_code = 404


class InsufficientPlayersError(TournamentError):
    """Fewer than two registered players at bracket generation."""
    status_code = 400


class BracketAlreadyExistsError(TournamentError):
    """Bracket generation is a one-time operation per tournament."""
    status_code = 409


class MatchNotReadyError(TournamentError):
    """A player slot is still empty or an upstream match is unresolved."""
    status_code = 409


class MatchAlreadyCompletedError(TournamentError):
    status_code = 409


class InvalidTransitionError(TournamentError):
    status_code = 409


class InvalidScoreError(TournamentError):
    status_code = 422


class RegistrationClosedError(TournamentError):
    status_code = 400


class TournamentFullError(TournamentError):
    status_code = 400


class DuplicatePlayerError(TournamentError):
    status_code = 409


class BracketIntegrityError(TournamentError):
    """Stored matches disagree with the bracket layout."""
    status_code = 500


class PersistenceError(TournamentError):
    """A store write failed; the transaction was rolled back."""
    status_code = 500

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause
