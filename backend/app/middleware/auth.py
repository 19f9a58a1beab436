"""
VideoTube Backend — Authentication Dependencies
=================================================

What:  FastAPI dependencies resolving the current user from an access token.
How:   Reads a bearer token from the Authorization header, falling back to
       the `accessToken` cookie set at login, verifies it and loads the user.
Who:   Injected into routes that require (or optionally use) a logged-in user.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import AuthenticationError
from app.models.user import User
from app.security import access_tokens
from app.services.user_service import user_service

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Dependency returning the authenticated user.

    Raises:
        AuthenticationError: no token, invalid/expired token, or unknown user (→ 401)
    """
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationError(message="Unauthorized request")

    claims = access_tokens.decode(token)
    user = await user_service.get_user(db, claims.get("_id"))
    if user is None:
        raise AuthenticationError(message="Invalid access token")
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    """Like get_current_user, but anonymous or invalid credentials yield None."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        claims = access_tokens.decode(token)
    except AuthenticationError:
        return None
    return await user_service.get_user(db, claims.get("_id"))
