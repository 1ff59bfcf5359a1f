"""Custom exceptions for access control."""


class AccessError(Exception):
    """Base exception for access control errors."""


class NotAuthenticatedError(AccessError):
    """No credential, or a credential that could not be verified."""


class ForbiddenError(AccessError):
    """The principal's role or ownership does not permit the action."""
