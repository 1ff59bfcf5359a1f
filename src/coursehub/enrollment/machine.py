"""Enrollment lifecycle: none -> active -> {dropped, completed}."""

from __future__ import annotations

from coursehub.store import EnrollmentStateError, EnrollmentStatus

# dropped and completed are terminal; re-enrolling creates a new record
TRANSITIONS: dict[EnrollmentStatus, frozenset[EnrollmentStatus]] = {
    EnrollmentStatus.ACTIVE: frozenset({EnrollmentStatus.DROPPED, EnrollmentStatus.COMPLETED}),
    EnrollmentStatus.DROPPED: frozenset(),
    EnrollmentStatus.COMPLETED: frozenset(),
}


def can_transition(current: EnrollmentStatus, target: EnrollmentStatus) -> bool:
    """Whether an enrollment in ``current`` may move to ``target``."""
    return target in TRANSITIONS[current]


def check_transition(current: EnrollmentStatus, target: EnrollmentStatus) -> None:
    """Raise EnrollmentStateError unless the transition is allowed."""
    if not can_transition(current, target):
        raise EnrollmentStateError(
            f"Cannot move an enrollment from {current.value} to {target.value}"
        )


def is_terminal(status: EnrollmentStatus) -> bool:
    return not TRANSITIONS[status]
