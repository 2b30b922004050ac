"""
FastAPI dependencies for authentication.

Provides ``db_session`` and ``get_current_user`` dependencies that
are used across all protected routes.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Unauthorized
from auth.jwt import TokenExpired, TokenMalformed, verify_token
from config.settings import config
from database.session import get_db_session
from database.user_store import UserStore
from utils.schemas import CurrentUser

logger = logging.getLogger(__name__)

NO_TOKEN = "Not authorized to access this route. Please login."
TOKEN_EXPIRED = "Token has expired. Please login again."
TOKEN_INVALID = "Invalid token. Please login again."
USER_NOT_FOUND = "User not found. Token is invalid."


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def extract_token(request: Request) -> Optional[str]:
    """Session cookie first, then ``Authorization: Bearer <token>``."""
    token = request.cookies.get(config.auth_cookie_name)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(db_session),
) -> CurrentUser:
    """
    Resolve the request's token to a user and attach it as
    ``request.state.user``.  Raises ``Unauthorized`` otherwise.
    """
    token = extract_token(request)
    if token is None:
        raise Unauthorized(NO_TOKEN)

    try:
        user_id = verify_token(token)
    except TokenExpired:
        logger.info("Rejected expired token on %s", request.url.path)
        raise Unauthorized(TOKEN_EXPIRED)
    except TokenMalformed as exc:
        logger.info("Rejected invalid token on %s: %s", request.url.path, exc)
        raise Unauthorized(TOKEN_INVALID)

    user = await UserStore(session).get(user_id)
    if user is None:
        raise Unauthorized(USER_NOT_FOUND)

    current = CurrentUser.model_validate(user)
    request.state.user = current
    return current
