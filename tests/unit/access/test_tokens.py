"""Unit tests for bearer-token authentication."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from coursehub.access import NotAuthenticatedError, Principal, TokenAuthenticator
from coursehub.store import Role

SECRET = "unit-test-secret"


@pytest.fixture
def authenticator() -> TokenAuthenticator:
    return TokenAuthenticator(secret=SECRET, expires_minutes=5)


@pytest.mark.unit
class TestTokenAuthenticator:
    """Tests for issue and authenticate."""

    def test_round_trip(self, authenticator: TokenAuthenticator) -> None:
        token = authenticator.issue("user-1", Role.INSTRUCTOR)

        principal = authenticator.authenticate(token)

        assert principal == Principal(user_id="user-1", role=Role.INSTRUCTOR)
        assert principal.is_instructor

    def test_claims(self, authenticator: TokenAuthenticator) -> None:
        token = authenticator.issue("user-1", "student")

        payload = jwt.decode(token, SECRET, algorithms=["HS256"])

        assert payload["sub"] == "user-1"
        assert payload["role"] == "student"
        assert payload["exp"] > payload["iat"]

    def test_expired(self, authenticator: TokenAuthenticator) -> None:
        token = authenticator.issue("user-1", Role.STUDENT, expires_minutes=-1)

        with pytest.raises(NotAuthenticatedError) as exc_info:
            authenticator.authenticate(token)

        assert str(exc_info.value) == "Token expired"

    def test_wrong_secret(self, authenticator: TokenAuthenticator) -> None:
        token = TokenAuthenticator(secret="someone-else").issue("user-1", Role.STUDENT)

        with pytest.raises(NotAuthenticatedError) as exc_info:
            authenticator.authenticate(token)

        assert str(exc_info.value) == "Invalid token"

    def test_garbage(self, authenticator: TokenAuthenticator) -> None:
        with pytest.raises(NotAuthenticatedError):
            authenticator.authenticate("not-a-token")

    @pytest.mark.parametrize(
        ("claims", "message"),
        [
            ({"role": "student"}, "Invalid token subject"),
            ({"sub": "user-1", "role": "admin"}, "Invalid token role"),
        ],
    )
    def test_bad_claims(
        self, authenticator: TokenAuthenticator, claims: dict, message: str
    ) -> None:
        claims["exp"] = datetime.now(UTC) + timedelta(minutes=5)
        token = jwt.encode(claims, SECRET, algorithm="HS256")

        with pytest.raises(NotAuthenticatedError) as exc_info:
            authenticator.authenticate(token)

        assert str(exc_info.value) == message
