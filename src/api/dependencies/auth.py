"""Authentication dependencies for FastAPI."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import IAuthProvider, TokenUser

# auto_error=False so a missing header reaches our own 401 envelope
security = HTTPBearer(auto_error=False)

BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(security)]


@lru_cache
def get_auth_provider() -> IAuthProvider:
    return JWTAuthProvider()


async def get_current_user(
    credentials: BearerCredentials,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Require a valid bearer token. Used by every route that changes tags or
    associations.

    Raises:
        AuthenticationError: If no token provided or token is invalid
    """
    if not credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    user = await auth_provider.validate_token(credentials.credentials)
    if not user:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )

    return user


CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
