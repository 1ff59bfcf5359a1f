"""AuthorizationGate - maps a principal and an action to allow or deny."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coursehub.access.models import Action, Decision, DenialKind, Principal, Target
from coursehub.store import CourseNotFoundError, Role, UserNotFoundError

if TYPE_CHECKING:
    from coursehub.store import EntityStore

logger = logging.getLogger(__name__)

PUBLIC_ACTIONS = frozenset({Action.LIST_COURSES, Action.VIEW_COURSE})

INSTRUCTOR_ACTIONS = frozenset(
    {
        Action.CREATE_COURSE,
        Action.UPDATE_COURSE,
        Action.DELETE_COURSE,
        Action.VIEW_ANALYTICS,
        Action.VIEW_INSTRUCTOR_COURSES,
        Action.VIEW_INSTRUCTOR_ROSTER,
    }
)

STUDENT_ACTIONS = frozenset({Action.ENROLL, Action.DROP, Action.VIEW_OWN_ENROLLMENTS})

COURSE_OWNER_ACTIONS = frozenset(
    {Action.UPDATE_COURSE, Action.DELETE_COURSE, Action.VIEW_INSTRUCTOR_ROSTER}
)


class AuthorizationGate:
    """Evaluates authorization rules in order; the first denial wins.

    1. Authentication, for every action but public course reads.
    2. Role.
    3. Ownership of the targeted course or user record.

    The gate reads the Entity Store for ownership lookups and never writes.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def authorize(
        self,
        principal: Principal | None,
        action: Action,
        target: Target | None = None,
    ) -> Decision:
        """Decide whether principal may perform action on target.

        Args:
            principal: The caller, or None for an anonymous request.
            action: The requested action.
            target: The course or user the action applies to.

        Returns:
            A Decision; denials are values, not exceptions.
        """
        target = target or Target()

        if action in PUBLIC_ACTIONS:
            return Decision.allow()

        if principal is None:
            return Decision.deny(DenialKind.UNAUTHENTICATED, "Authentication required")

        decision = self._check_role(principal, action)
        if decision.allowed:
            decision = self._check_ownership(principal, action, target)

        if not decision.allowed:
            logger.info(
                "Denied %s for user %s (%s): %s",
                action.value,
                principal.user_id,
                principal.role.value,
                decision.reason,
            )
        return decision

    def require(
        self,
        principal: Principal | None,
        action: Action,
        target: Target | None = None,
    ) -> Principal:
        """Authorize and raise on denial.

        Returns:
            The principal, now known to be authenticated.
        """
        decision = self.authorize(principal, action, target)
        decision.raise_for_denial(target)
        assert principal is not None
        return principal

    def _check_role(self, principal: Principal, action: Action) -> Decision:
        if action in INSTRUCTOR_ACTIONS and principal.role != Role.INSTRUCTOR:
            return Decision.deny(DenialKind.FORBIDDEN, "Access denied. Instructors only.")
        if action in STUDENT_ACTIONS and principal.role != Role.STUDENT:
            return Decision.deny(DenialKind.FORBIDDEN, "Access denied. Students only.")
        return Decision.allow()

    def _check_ownership(self, principal: Principal, action: Action, target: Target) -> Decision:
        if action in COURSE_OWNER_ACTIONS:
            return self._check_course_owner(principal, action, target)

        if action == Action.VIEW_INSTRUCTOR_COURSES:
            if target.user_id != principal.user_id:
                return Decision.deny(
                    DenialKind.FORBIDDEN, "Not authorized to view these courses"
                )
            return Decision.allow()

        if action == Action.UPDATE_PROFILE:
            if target.user_id != principal.user_id:
                return Decision.deny(
                    DenialKind.FORBIDDEN, "Not authorized to update this profile"
                )
            return Decision.allow()

        if action == Action.VIEW_PROFILE:
            return self._check_profile_read(principal, target)

        return Decision.allow()

    def _check_course_owner(self, principal: Principal, action: Action, target: Target) -> Decision:
        if target.course_id is None:
            return Decision.deny(DenialKind.NOT_FOUND, "Course not found")
        try:
            course = self._store.get_course(target.course_id)
        except CourseNotFoundError:
            return Decision.deny(DenialKind.NOT_FOUND, "Course not found")

        if course.instructor_id != principal.user_id:
            verb = {
                Action.UPDATE_COURSE: "update",
                Action.DELETE_COURSE: "delete",
                Action.VIEW_INSTRUCTOR_ROSTER: "view the roster of",
            }[action]
            return Decision.deny(DenialKind.FORBIDDEN, f"Not authorized to {verb} this course")
        return Decision.allow()

    def _check_profile_read(self, principal: Principal, target: Target) -> Decision:
        if target.user_id is None or target.user_id == principal.user_id:
            return Decision.allow()
        try:
            user = self._store.get_user(target.user_id)
        except UserNotFoundError:
            return Decision.deny(DenialKind.NOT_FOUND, "User not found")

        # Instructor profiles are public to signed-in users; student records
        # are visible to others only through course roster projections.
        if user.is_instructor:
            return Decision.allow()
        return Decision.deny(DenialKind.FORBIDDEN, "Not authorized to view this profile")
