"""Data models for the Authorization Gate."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from coursehub.access.exceptions import ForbiddenError, NotAuthenticatedError
from coursehub.store import CourseNotFoundError, Role, UserNotFoundError


class Action(StrEnum):
    """Actions a principal can request."""

    LIST_COURSES = "listCourses"
    VIEW_COURSE = "viewCourse"
    CREATE_COURSE = "createCourse"
    UPDATE_COURSE = "updateCourse"
    DELETE_COURSE = "deleteCourse"
    VIEW_INSTRUCTOR_COURSES = "viewInstructorCourses"
    VIEW_INSTRUCTOR_ROSTER = "viewInstructorRoster"
    ENROLL = "enroll"
    DROP = "drop"
    VIEW_OWN_ENROLLMENTS = "viewOwnEnrollments"
    VIEW_ANALYTICS = "viewAnalytics"
    UPDATE_PROFILE = "updateProfile"
    VIEW_PROFILE = "viewProfile"


class DenialKind(StrEnum):
    """Why a request was denied."""

    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Principal:
    """An authenticated identity presented for an authorization decision.

    Attributes:
        user_id: The user's unique ID.
        role: The user's role, fixed at registration.
    """

    user_id: str
    role: Role

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT

    @property
    def is_instructor(self) -> bool:
        return self.role == Role.INSTRUCTOR


@dataclass(frozen=True)
class Target:
    """The resource an action applies to."""

    course_id: str | None = None
    user_id: str | None = None


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check.

    Attributes:
        allowed: Whether the action may proceed.
        kind: Category of the denial (None when allowed).
        reason: Human-readable explanation of the denial.
    """

    allowed: bool
    kind: DenialKind | None = None
    reason: str = ""

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, kind: DenialKind, reason: str) -> Decision:
        return cls(allowed=False, kind=kind, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed

    def raise_for_denial(self, target: Target | None = None) -> None:
        """Raise the exception matching a denial; do nothing when allowed.

        Raises:
            NotAuthenticatedError: No principal was presented.
            ForbiddenError: Role or ownership mismatch.
            CourseNotFoundError: The targeted course does not exist.
            UserNotFoundError: The targeted user does not exist.
        """
        if self.allowed:
            return
        if self.kind == DenialKind.UNAUTHENTICATED:
            raise NotAuthenticatedError(self.reason)
        if self.kind == DenialKind.NOT_FOUND:
            if target is not None and target.course_id is not None:
                raise CourseNotFoundError(self.reason)
            raise UserNotFoundError(self.reason)
        raise ForbiddenError(self.reason)
