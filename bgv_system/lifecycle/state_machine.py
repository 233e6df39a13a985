"""Check status transitions.

    PENDING ──start──> IN_PROGRESS ──resolve──> COMPLETED ──review──> VERIFIED | REJECTED
       ^                   │  │                     │
       └──────wait─────────┘  └──fail──> FAILED     └──reassign──> NEEDS_REVIEW
                                          │
                    IN_PROGRESS <──retry──┘

Supervisor decisions and zone reassignments may revise each other, so the
reviewed statuses transition freely among themselves. Writing the same
status again is always allowed.
"""

from bgv_system.data_management.schemas import CheckStatus

_REVIEWED = {
    CheckStatus.COMPLETED,
    CheckStatus.VERIFIED,
    CheckStatus.REJECTED,
    CheckStatus.NEEDS_REVIEW,
}

TRANSITIONS: dict[CheckStatus, frozenset[CheckStatus]] = {
    CheckStatus.PENDING: frozenset({CheckStatus.IN_PROGRESS}),
    CheckStatus.IN_PROGRESS: frozenset(
        {CheckStatus.COMPLETED, CheckStatus.FAILED, CheckStatus.PENDING}
    ),
    CheckStatus.FAILED: frozenset({CheckStatus.IN_PROGRESS}),
    CheckStatus.COMPLETED: frozenset(_REVIEWED),
    CheckStatus.VERIFIED: frozenset(_REVIEWED),
    CheckStatus.REJECTED: frozenset(_REVIEWED),
    CheckStatus.NEEDS_REVIEW: frozenset(_REVIEWED),
}

TERMINAL_STATUSES = frozenset(
    {
        CheckStatus.COMPLETED,
        CheckStatus.FAILED,
        CheckStatus.VERIFIED,
        CheckStatus.REJECTED,
        CheckStatus.NEEDS_REVIEW,
    }
)


class InvalidTransitionError(ValueError):
    """Raised when a status change is not in the transition table."""

    def __init__(self, check_id: str, current: CheckStatus, target: CheckStatus, reason: str = "") -> None:
        message = f"Check {check_id}: cannot move {current.value} -> {target.value}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.check_id = check_id
        self.current = current
        self.target = target


def can_transition(current: CheckStatus, target: CheckStatus) -> bool:
    return current == target or target in TRANSITIONS.get(current, frozenset())


def ensure_transition(check_id: str, current: CheckStatus, target: CheckStatus) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    if not can_transition(current, target):
        raise InvalidTransitionError(check_id, current, target)


def is_terminal(status: CheckStatus) -> bool:
    return status in TERMINAL_STATUSES
