"""Bearer-token authentication.

Credentials are verified by an external collaborator. This adapter accepts the
signed tokens it issues and turns them into a Principal.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt

from coursehub.access.exceptions import NotAuthenticatedError
from coursehub.access.models import Principal
from coursehub.store import Role


class TokenAuthenticator:
    """Issues and verifies HS256 (by default) JWT access tokens.

    A token's ``sub`` claim is the user id and its ``role`` claim the role.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 60,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expires_minutes = expires_minutes

    def issue(self, user_id: str, role: Role | str, expires_minutes: int | None = None) -> str:
        """Create a signed access token for a user."""
        now = datetime.now(UTC)
        expire = now + timedelta(minutes=expires_minutes or self._expires_minutes)
        payload = {"sub": user_id, "role": Role(role).value, "exp": expire, "iat": now}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def authenticate(self, token: str) -> Principal:
        """Verify a token and return the principal it identifies.

        Raises:
            NotAuthenticatedError: If the token is expired, forged or malformed.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as e:
            raise NotAuthenticatedError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise NotAuthenticatedError("Invalid token") from e

        user_id = payload.get("sub")
        if not user_id:
            raise NotAuthenticatedError("Invalid token subject")
        try:
            role = Role(payload.get("role"))
        except ValueError as e:
            raise NotAuthenticatedError("Invalid token role") from e
        return Principal(user_id=user_id, role=role)
