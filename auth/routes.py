"""
Auth API routes — register, login, logout, me.

Route prefix: /api/auth
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Unauthorized
from auth.dependencies import db_session, get_current_user
from auth.jwt import create_token
from config.settings import config
from database.models import User
from database.user_store import UserStore
from utils.schemas import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    UserSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials. Please check your email and password."


def set_session_cookie(response: Response, token: str) -> None:
    """HTTP-only, same-site strict, secure in production; lives as long as the token."""
    response.set_cookie(
        key=config.auth_cookie_name,
        value=token,
        max_age=config.jwt_expiry_seconds,
        httponly=True,
        samesite="strict",
        secure=config.is_production,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=config.auth_cookie_name,
        httponly=True,
        samesite="strict",
        secure=config.is_production,
        path="/",
    )


def _token_response(response: Response, user: User, message: str) -> AuthResponse:
    token = create_token(user.id)
    set_session_cookie(response, token)
    return AuthResponse(
        message=message,
        token=token,
        user=UserSummary.model_validate(user),
    )


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(db_session),
) -> AuthResponse:
    """Register a new user."""
    user = await UserStore(session).create(req.name, req.email, req.password)
    logger.info("Registered user %s (%s)", user.email, user.id)
    return _token_response(response, user, "Registration successful")


@router.post("/login", response_model=AuthResponse)
async def login(
    req: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(db_session),
) -> AuthResponse:
    """Login with email + password."""
    store = UserStore(session)
    user = await store.find_by_email(req.email)

    if not store.verify(user, req.password):
        logger.warning("Failed login for %s", req.email)
        raise Unauthorized(INVALID_CREDENTIALS)

    if store.needs_rehash(user):
        await store.update_password(user, req.password)
        logger.info("Upgraded password hash cost for user %s", user.id)

    logger.info("Login: %s (%s)", user.email, user.id)
    return _token_response(response, user, "Login successful")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    """Clear the session cookie."""
    clear_session_cookie(response)
    logger.info("Logout: %s", current_user.id)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=MeResponse)
async def me(current_user: CurrentUser = Depends(get_current_user)) -> MeResponse:
    """Return the authenticated user (never the password hash)."""
    return MeResponse(user=current_user)
