"""Unit tests for JWTAuthProvider.

Tokens are HS256-signed with a shared secret. validate_token must return
None (never raise) for anything it cannot turn into a TokenUser.
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from jose import jwt as jose_jwt

from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

SECRET = "test-secret"


def _make_token(payload: dict, secret: str = SECRET) -> str:
    return jose_jwt.encode(payload, secret, algorithm="HS256")


def _far_future() -> datetime:
    return datetime.utcnow() + timedelta(hours=1)


@pytest.fixture
def provider() -> JWTAuthProvider:
    return JWTAuthProvider(secret_key=SECRET, algorithm="HS256", expire_minutes=30)


class TestCreateAndValidate:
    async def test_round_trips_identity_and_role(self, provider: JWTAuthProvider):
        user = TokenUser(id=uuid4(), email="ed@example.com", display_name="Ed", role="admin")

        result = await provider.validate_token(provider.create_token(user))

        assert result is not None
        assert result.id == user.id
        assert result.email == "ed@example.com"
        assert result.display_name == "Ed"
        assert result.role == "admin"

    async def test_role_defaults_to_editor(self, provider: JWTAuthProvider):
        user = TokenUser(id=uuid4(), email="ed@example.com")

        token = provider.create_token(user)

        claims = jose_jwt.get_unverified_claims(token)
        assert claims["role"] == "editor"

    async def test_expired_token_is_rejected(self):
        issuer = JWTAuthProvider(secret_key=SECRET, algorithm="HS256", expire_minutes=-1)
        token = issuer.create_token(TokenUser(id=uuid4(), email="ed@example.com"))

        assert await issuer.validate_token(token) is None

    async def test_wrong_secret_is_rejected(self, provider: JWTAuthProvider):
        token = _make_token(
            {"sub": str(uuid4()), "email": "ed@example.com", "exp": _far_future()},
            secret="someone-else",
        )

        assert await provider.validate_token(token) is None

    async def test_garbage_is_rejected(self, provider: JWTAuthProvider):
        assert await provider.validate_token("not.a.jwt") is None


class TestValidateTokenMissingClaims:
    """A correctly signed token still needs a UUID subject and an email."""

    @pytest.mark.parametrize(
        "claims",
        [
            {"email": "ed@example.com"},
            {"sub": str(uuid4())},
            {"sub": "", "email": "ed@example.com"},
            {"sub": str(uuid4()), "email": ""},
        ],
    )
    async def test_should_return_none_for_missing_claims(
        self, provider: JWTAuthProvider, claims: dict
    ):
        token = _make_token({**claims, "exp": _far_future()})

        assert await provider.validate_token(token) is None

    async def test_should_return_none_for_non_uuid_subject(self, provider: JWTAuthProvider):
        token = _make_token({"sub": "user-42", "email": "ed@example.com", "exp": _far_future()})

        assert await provider.validate_token(token) is None

    async def test_optional_claims_may_be_absent(self, provider: JWTAuthProvider):
        user_id = uuid4()
        token = _make_token({"sub": str(user_id), "email": "ed@example.com", "exp": _far_future()})

        result = await provider.validate_token(token)

        assert result is not None
        assert result.id == user_id
        assert result.display_name is None
        assert result.role is None
