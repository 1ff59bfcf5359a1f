"""Enrollment package - enrollment state machine and roster consistency."""

from coursehub.enrollment.machine import TRANSITIONS, can_transition, check_transition
from coursehub.enrollment.models import (
    EnrolledCourse,
    InstructorSummary,
    RosterRecord,
    RosterRepair,
)
from coursehub.enrollment.service import ActiveEnrollments, EnrollmentService

__all__ = [
    "TRANSITIONS",
    "ActiveEnrollments",
    "EnrolledCourse",
    "EnrollmentService",
    "InstructorSummary",
    "RosterRecord",
    "RosterRepair",
    "can_transition",
    "check_transition",
]
