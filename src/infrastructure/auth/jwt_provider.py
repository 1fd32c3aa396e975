"""JWT authentication provider.

Verifies Supabase access tokens signed with ES256 against the project's
JWKS, and HS256 tokens signed with the shared secret (service-to-service
calls and tests).
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import httpx
from jose import JWTError, jwt
from jose.backends import ECKey

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = logging.getLogger(__name__)

_NAME_CLAIMS = ("display_name", "name", "full_name")


class JWKSCache:
    """Signing keys from a JWKS endpoint, keyed by ``kid``.

    Keys are fetched lazily and kept until a token names a ``kid`` that is
    not cached, which triggers a single refetch to pick up rotated keys.
    """

    def __init__(
        self,
        url: str = settings.supabase_jwks_url,
        timeout_seconds: float = settings.jwks_timeout_seconds,
    ) -> None:
        self._url = url
        self._timeout = timeout_seconds
        self._keys: dict[str, dict[str, Any]] | None = None

    async def get(self, kid: str) -> dict[str, Any] | None:
        keys = await self._load()
        if kid not in keys:
            self._keys = None
            keys = await self._load()
        return keys.get(kid)

    async def _load(self) -> dict[str, dict[str, Any]]:
        if self._keys is not None:
            return self._keys
        if not self._url:
            return {}

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self._url, timeout=self._timeout)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to fetch JWKS from %s", self._url)
            return {}

        self._keys = {k["kid"]: k for k in data.get("keys", []) if k.get("kid")}
        logger.info("Fetched %d JWKS keys", len(self._keys))
        return self._keys


class JWTAuthProvider:
    """JWT-based authentication provider."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
        jwks: JWKSCache | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._jwks = jwks or JWKSCache()

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Verify a JWT and extract its user, or None if it does not verify.

        The signing algorithm is taken from the token header: ES256 tokens
        are checked against the JWKS, anything else against the shared
        secret with the configured algorithm.
        """
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") == "ES256":
                payload = await self._decode_es256(token, header)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError:
            return None

        if payload is None:
            return None
        return self._to_user(payload)

    async def _decode_es256(self, token: str, header: dict) -> Optional[dict]:
        kid = header.get("kid")
        if not kid:
            return None

        key_data = await self._jwks.get(kid)
        if not key_data:
            logger.warning("JWKS key not found for kid=%s", kid)
            return None

        return jwt.decode(
            token,
            ECKey(key_data, algorithm="ES256"),
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    @staticmethod
    def _to_user(payload: dict[str, Any]) -> Optional[TokenUser]:
        subject = payload.get("sub")
        email = payload.get("email")
        if not subject or not email:
            return None

        try:
            user_id = UUID(subject)
        except ValueError:
            return None

        user_metadata = payload.get("user_metadata") or {}
        display_name = next(
            (user_metadata[c] for c in _NAME_CLAIMS if user_metadata.get(c)),
            payload.get("name"),
        )

        return TokenUser(
            id=user_id,
            email=email,
            display_name=display_name,
            role=payload.get("role"),
            app_metadata=payload.get("app_metadata") or {},
        )

    def create_token(self, user: TokenUser) -> str:
        """Create an HS256 token for a user."""
        expire = datetime.utcnow() + timedelta(minutes=self._expire_minutes)

        payload: dict = {
            "sub": str(user.id),
            "email": user.email,
            "aud": "authenticated",
            "role": "authenticated",
            "exp": expire,
            "user_metadata": {"display_name": user.display_name},
            "app_metadata": user.app_metadata,
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
