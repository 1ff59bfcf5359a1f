"""EnrollmentService - owns enrollment transitions and the paired roster updates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coursehub.access import Action, ForbiddenError, Target
from coursehub.enrollment.machine import check_transition
from coursehub.enrollment.models import (
    EnrolledCourse,
    InstructorSummary,
    RosterRecord,
    RosterRepair,
)
from coursehub.store import (
    EnrollmentNotFoundError,
    EnrollmentStatus,
    StoreError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    from coursehub.access import AuthorizationGate, Principal
    from coursehub.store import Enrollment, EntityStore

logger = logging.getLogger(__name__)


class ActiveEnrollments:
    """A student's active enrollments as a lazy, restartable sequence.

    Nothing is read until iteration starts, and every new iteration reads the
    store again. Enrollments whose course was deleted are not included.
    """

    def __init__(self, store: EntityStore, student_id: str) -> None:
        self._store = store
        self.student_id = student_id

    def __iter__(self) -> Iterator[EnrolledCourse]:
        for enrollment, course, instructor in self._store.iter_active_enrollments(
            self.student_id
        ):
            yield EnrolledCourse(
                enrollment=enrollment,
                course=course,
                instructor=InstructorSummary.from_user(instructor),
            )


class EnrollmentService:
    """Manages the enrollment state machine.

    Enrollment records are the source of truth. Each transition writes the
    enrollment first and then updates the course roster cache. A roster
    failure after a committed enrollment write is logged and repaired by
    rebuild_roster(); it never undoes the enrollment.
    """

    def __init__(self, store: EntityStore, gate: AuthorizationGate) -> None:
        """Initialize the EnrollmentService.

        Args:
            store: EntityStore instance for persistence.
            gate: AuthorizationGate used to check every request.
        """
        self.store = store
        self.gate = gate

    def enroll(
        self,
        principal: Principal | None,
        course_id: str,
        enrollment_date: datetime | None = None,
    ) -> Enrollment:
        """Enroll the requesting student in a course.

        Args:
            principal: The requesting student.
            course_id: The course to enroll in.
            enrollment_date: Override for the enrollment timestamp (naive UTC).

        Returns:
            The new active Enrollment.

        Raises:
            NotAuthenticatedError: No principal.
            ForbiddenError: Principal is not a student.
            CourseNotFoundError: Course does not exist.
            EnrollmentExistsError: An active enrollment already exists.
        """
        student = self.gate.require(principal, Action.ENROLL, Target(course_id=course_id))

        enrollment = self.store.insert_active_enrollment(
            student_id=student.user_id,
            course_id=course_id,
            enrollment_date=enrollment_date,
        )
        logger.info(
            "Student %s enrolled in course %s (enrollment %s)",
            student.user_id,
            course_id,
            enrollment.id,
        )

        self._add_to_roster(course_id, student.user_id)
        return enrollment

    def drop(self, principal: Principal | None, enrollment_id: str) -> Enrollment:
        """Drop one of the requesting student's active enrollments.

        ``enrollment_id`` may also be a course id, in which case the student's
        active enrollment in that course is dropped.

        Returns:
            The Enrollment, now dropped.

        Raises:
            NotAuthenticatedError: No principal.
            ForbiddenError: Principal is not a student, or not the owner.
            EnrollmentNotFoundError: No such enrollment.
            EnrollmentStateError: The enrollment is not active.
        """
        student = self.gate.require(principal, Action.DROP)

        try:
            enrollment = self.store.get_enrollment(enrollment_id)
        except EnrollmentNotFoundError:
            enrollment = self.store.find_active_enrollment(student.user_id, enrollment_id)
            if enrollment is None:
                raise
            logger.debug("Resolved %s as a course id for the drop request", enrollment_id)

        if enrollment.student_id != student.user_id:
            logger.warning(
                "Student %s tried to drop enrollment %s of another student",
                student.user_id,
                enrollment.id,
            )
            raise ForbiddenError("Not authorized to drop this course")

        return self._finish(enrollment, EnrollmentStatus.DROPPED)

    def complete(self, enrollment_id: str) -> Enrollment:
        """Mark an active enrollment as completed.

        Reserved for course-completion logic; no HTTP route calls it.

        Raises:
            EnrollmentNotFoundError: No such enrollment.
            EnrollmentStateError: The enrollment is not active.
        """
        enrollment = self.store.get_enrollment(enrollment_id)
        return self._finish(enrollment, EnrollmentStatus.COMPLETED)

    def list_active_for_student(self, principal: Principal | None) -> ActiveEnrollments:
        """The requesting student's active enrollments with course and instructor."""
        student = self.gate.require(principal, Action.VIEW_OWN_ENROLLMENTS)
        return ActiveEnrollments(self.store, student.user_id)

    def list_for_course(self, principal: Principal | None, course_id: str) -> list[RosterRecord]:
        """Full enrollment history of a course, for its owning instructor.

        Raises:
            NotAuthenticatedError: No principal.
            ForbiddenError: Principal does not own the course.
            CourseNotFoundError: Course does not exist.
        """
        target = Target(course_id=course_id)
        self.gate.require(principal, Action.VIEW_INSTRUCTOR_ROSTER, target)
        return [
            RosterRecord(
                enrollment=enrollment,
                student_name=student.name,
                student_email=student.email,
            )
            for enrollment, student in self.store.list_course_enrollments(course_id)
        ]

    def retire_course(self, course_id: str) -> int:
        """Delete a course and move its active enrollments to dropped.

        Callers authorize the deletion first.

        Returns:
            Number of enrollments that were dropped.
        """
        dropped = self.store.retire_course(course_id)
        logger.info("Course %s deleted; %d active enrollment(s) dropped", course_id, dropped)
        return dropped

    def rebuild_roster(self, course_id: str) -> RosterRepair:
        """Make a course roster equal to its set of active enrollments."""
        added, removed = self.store.rebuild_roster(course_id)
        return RosterRepair(course_id=course_id, added=added, removed=removed)

    def reconcile_rosters(self) -> list[RosterRepair]:
        """Rebuild every course roster.

        Returns:
            Repairs for the courses whose roster changed.
        """
        repairs = [self.rebuild_roster(course_id) for course_id in self.store.list_course_ids()]
        changed = [repair for repair in repairs if repair.changed]
        logger.info(
            "Reconciled %d roster(s); %d needed repair", len(repairs), len(changed)
        )
        return changed

    # --- Internals ---

    def _finish(self, enrollment: Enrollment, target: EnrollmentStatus) -> Enrollment:
        check_transition(enrollment.enrollment_status, target)

        # Compare-and-set: a concurrent transition makes this raise
        # EnrollmentStateError instead of succeeding twice.
        updated = self.store.transition_enrollment(
            enrollment.id, EnrollmentStatus.ACTIVE, target
        )
        logger.info(
            "Enrollment %s of student %s in course %s is now %s",
            updated.id,
            updated.student_id,
            updated.course_id,
            updated.status,
        )

        self._remove_from_roster(updated.course_id, updated.student_id)
        return updated

    def _add_to_roster(self, course_id: str, student_id: str) -> None:
        try:
            self.store.add_to_roster(course_id, student_id)
        except StoreError:
            logger.exception(
                "Roster of course %s is missing student %s; rebuild the roster to repair",
                course_id,
                student_id,
            )

    def _remove_from_roster(self, course_id: str, student_id: str) -> None:
        try:
            self.store.remove_from_roster(course_id, student_id)
        except StoreError:
            logger.exception(
                "Roster of course %s still lists student %s; rebuild the roster to repair",
                course_id,
                student_id,
            )
