"""Authentication provider protocol."""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol
from uuid import UUID


@dataclass
class TokenUser:
    """The caller identified by a verified bearer token.

    Only the user ID is trusted for authorization; organization membership
    and admin rights are always read from the caller's profile.
    """

    id: UUID
    email: str
    display_name: Optional[str] = None
    role: Optional[str] = None
    app_metadata: dict[str, Any] = field(default_factory=dict)


class IAuthProvider(Protocol):
    """Protocol for authentication providers."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the token's user, or None if the token is invalid or expired."""
        ...

    def create_token(self, user: TokenUser) -> str:
        """Issue a token for a user."""
        ...
