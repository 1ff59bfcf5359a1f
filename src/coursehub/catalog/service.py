"""CatalogService - courses and user profiles behind the authorization gate."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coursehub.access import Action, Target

if TYPE_CHECKING:
    from coursehub.access import AuthorizationGate, Principal
    from coursehub.enrollment import EnrollmentService
    from coursehub.store import Course, EntityStore, User

logger = logging.getLogger(__name__)


class CatalogService:
    """Course publishing and profile management.

    Course deletion is delegated to the EnrollmentService so the enrollment
    cascade always runs with it.
    """

    def __init__(
        self,
        store: EntityStore,
        gate: AuthorizationGate,
        enrollments: EnrollmentService,
    ) -> None:
        self.store = store
        self.gate = gate
        self.enrollments = enrollments

    # --- Courses ---

    def list_courses(self) -> list[Course]:
        """All courses; public."""
        return self.store.list_courses()

    def get_course(self, course_id: str) -> Course:
        """One course; public.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        return self.store.get_course(course_id)

    def create_course(
        self,
        principal: Principal | None,
        title: str,
        description: str,
        category: str,
    ) -> Course:
        """Publish a course owned by the requesting instructor."""
        instructor = self.gate.require(principal, Action.CREATE_COURSE)
        course = self.store.create_course(
            instructor_id=instructor.user_id,
            title=title,
            description=description,
            category=category,
        )
        logger.info("Instructor %s created course %s", instructor.user_id, course.id)
        return course

    def update_course(
        self,
        principal: Principal | None,
        course_id: str,
        title: str | None = None,
        description: str | None = None,
        category: str | None = None,
    ) -> Course:
        """Update title, description or category of an owned course."""
        target = Target(course_id=course_id)
        self.gate.require(principal, Action.UPDATE_COURSE, target)
        return self.store.update_course(
            course_id,
            title=title,
            description=description,
            category=category,
        )

    def delete_course(self, principal: Principal | None, course_id: str) -> int:
        """Delete an owned course and drop its active enrollments.

        Returns:
            Number of enrollments dropped by the cascade.
        """
        target = Target(course_id=course_id)
        self.gate.require(principal, Action.DELETE_COURSE, target)
        return self.enrollments.retire_course(course_id)

    def list_instructor_courses(
        self, principal: Principal | None, instructor_id: str
    ) -> list[Course]:
        """Courses of an instructor, for that instructor only.

        An instructor without courses gets an empty list.
        """
        target = Target(user_id=instructor_id)
        self.gate.require(principal, Action.VIEW_INSTRUCTOR_COURSES, target)
        return self.store.list_courses(instructor_id=instructor_id)

    # --- Profiles ---

    def get_profile(self, principal: Principal | None, user_id: str) -> User:
        """Read a profile: one's own, or any instructor's.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        target = Target(user_id=user_id)
        self.gate.require(principal, Action.VIEW_PROFILE, target)
        return self.store.get_user(user_id)

    def update_profile(
        self,
        principal: Principal | None,
        user_id: str,
        name: str | None = None,
        specialization: str | None = None,
        experience: int | None = None,
        bio: str | None = None,
    ) -> User:
        """Update one's own profile. Role and email are not editable."""
        target = Target(user_id=user_id)
        self.gate.require(principal, Action.UPDATE_PROFILE, target)
        user = self.store.update_user(
            user_id,
            name=name,
            specialization=specialization,
            experience=experience,
            bio=bio,
        )
        logger.info("User %s updated their profile", user_id)
        return user
