"""Authentication provider protocol."""

from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID

DEFAULT_ROLE = "editor"


@dataclass
class TokenUser:
    """The editor a bearer token was issued to.

    Tag operations perform no permission checks of their own; a valid token
    is the whole authorization story.
    """

    id: UUID
    email: str
    display_name: Optional[str] = None
    role: Optional[str] = None


class IAuthProvider(Protocol):
    """Validates and issues bearer tokens."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the token's user, or None for any invalid or expired token."""
        ...

    def create_token(self, user: TokenUser) -> str:
        """Issue a token; a user without a role gets ``DEFAULT_ROLE``."""
        ...
