"""Unit tests for the bearer-token dependency."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from api.dependencies.auth import get_current_user
from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWKSCache, JWTAuthProvider
from infrastructure.auth.provider import TokenUser

SECRET = "test-secret"


@pytest.fixture
def provider() -> JWTAuthProvider:
    return JWTAuthProvider(secret_key=SECRET, algorithm="HS256", jwks=JWKSCache(url=""))


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_resolves_token_user(self, provider: JWTAuthProvider):
        user = TokenUser(
            id=uuid4(),
            email="ada@acme.test",
            display_name="Ada",
            app_metadata={"provider": "email"},
        )

        result = await get_current_user(_bearer(provider.create_token(user)), provider)

        assert result.id == user.id
        assert result.email == "ada@acme.test"
        assert result.app_metadata == {"provider": "email"}

    @pytest.mark.asyncio
    async def test_missing_header_is_unauthorized(self, provider: JWTAuthProvider):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(None, provider)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "token",
        [
            "invalid.jwt.token",
            # Expired
            jwt.encode(
                {
                    "sub": "00000000-0000-0000-0000-000000000001",
                    "email": "a@acme.test",
                    "exp": datetime.utcnow() - timedelta(minutes=1),
                },
                SECRET,
                algorithm="HS256",
            ),
            # Signed with another secret
            jwt.encode(
                {"sub": "00000000-0000-0000-0000-000000000001", "email": "a@acme.test"},
                "other-secret",
                algorithm="HS256",
            ),
            # Service accounts have no user UUID
            jwt.encode(
                {"sub": "service-account", "email": "svc@acme.test"},
                SECRET,
                algorithm="HS256",
            ),
        ],
        ids=["garbage", "expired", "wrong-secret", "non-uuid-subject"],
    )
    async def test_unusable_token_is_invalid(self, provider: JWTAuthProvider, token: str):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(_bearer(token), provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN
