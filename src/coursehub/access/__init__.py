"""Access control - authorization gate and bearer-token authentication."""

from coursehub.access.exceptions import AccessError, ForbiddenError, NotAuthenticatedError
from coursehub.access.gate import AuthorizationGate
from coursehub.access.models import Action, Decision, DenialKind, Principal, Target
from coursehub.access.tokens import TokenAuthenticator

__all__ = [
    "AccessError",
    "Action",
    "AuthorizationGate",
    "Decision",
    "DenialKind",
    "ForbiddenError",
    "NotAuthenticatedError",
    "Principal",
    "Target",
    "TokenAuthenticator",
]
