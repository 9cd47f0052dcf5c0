"""
Tournament lifecycle.

    pending -> registration -> live -> completed
    cancelled from any non-terminal state

`live` is only entered by bracket generation and `completed` only by the
completion detector. Admins may open or close registration and cancel.
"""

from typing import Dict, Set

from backend.app.core.errors import InvalidTransitionError
from backend.app.models.enums import TournamentStatus

TERMINAL_STATES = {TournamentStatus.COMPLETED, TournamentStatus.CANCELLED}

TRANSITIONS: Dict[TournamentStatus, Set[TournamentStatus]] = {
    TournamentStatus.PENDING: {TournamentStatus.REGISTRATION, TournamentStatus.CANCELLED},
    TournamentStatus.REGISTRATION: {
        TournamentStatus.PENDING,
        TournamentStatus.LIVE,
        TournamentStatus.CANCELLED,
    },
    TournamentStatus.LIVE: {TournamentStatus.COMPLETED, TournamentStatus.CANCELLED},
    TournamentStatus.COMPLETED: set(),
    TournamentStatus.CANCELLED: set(),
}

ADMIN_TARGETS = {
    TournamentStatus.PENDING,
    TournamentStatus.REGISTRATION,
    TournamentStatus.CANCELLED,
}


def can_transition(current: str, target: str) -> bool:
    return TournamentStatus(target) in TRANSITIONS[TournamentStatus(current)]


def check_transition(current: str, target: str, admin: bool = False):
    if target not in TournamentStatus.__members__.values():
        raise InvalidTransitionError(f"Unknown status '{target}'")
    if admin and TournamentStatus(target) not in ADMIN_TARGETS:
        raise InvalidTransitionError(f"Status '{target}' cannot be set directly")
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Cannot move tournament from '{current}' to '{target}'")
