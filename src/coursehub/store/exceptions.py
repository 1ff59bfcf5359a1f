"""Custom exceptions for the Entity Store."""


class StoreError(Exception):
    """Base exception for Entity Store errors."""


class StoreUnavailableError(StoreError):
    """Storage did not answer within the configured bound, or failed transiently."""


class InvalidFieldError(StoreError):
    """A field value violates a model constraint."""


class UserNotFoundError(StoreError):
    """User with given ID does not exist (or has the wrong role)."""


class UserExistsError(StoreError):
    """User with given email already exists."""


class CourseNotFoundError(StoreError):
    """Course with given ID does not exist."""


class EnrollmentNotFoundError(StoreError):
    """Enrollment with given ID does not exist."""


class EnrollmentExistsError(StoreError):
    """An active enrollment for this student and course already exists."""


class EnrollmentStateError(StoreError):
    """Enrollment is not in a state that allows the requested transition."""
