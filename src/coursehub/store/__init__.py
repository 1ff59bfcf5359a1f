"""Entity Store - persistent Users, Courses, Enrollments and course rosters."""

from coursehub.store.exceptions import (
    CourseNotFoundError,
    EnrollmentExistsError,
    EnrollmentNotFoundError,
    EnrollmentStateError,
    InvalidFieldError,
    StoreError,
    StoreUnavailableError,
    UserExistsError,
    UserNotFoundError,
)
from coursehub.store.models import (
    Course,
    Enrollment,
    EnrollmentStatus,
    Role,
    RosterEntry,
    User,
)
from coursehub.store.store import EntityStore

__all__ = [
    "Course",
    "CourseNotFoundError",
    "Enrollment",
    "EnrollmentExistsError",
    "EnrollmentNotFoundError",
    "EnrollmentStateError",
    "EnrollmentStatus",
    "EntityStore",
    "InvalidFieldError",
    "Role",
    "RosterEntry",
    "StoreError",
    "StoreUnavailableError",
    "User",
    "UserExistsError",
    "UserNotFoundError",
]
