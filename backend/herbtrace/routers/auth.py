"""Identity routes: signup, login, logout, refresh, me.

Route overview:
  POST /signup   — register with a fixed role; returns a token pair
  POST /login    — username + password login
  POST /logout   — revoke the presented access token
  POST /refresh  — exchange a refresh token for a new pair
  GET  /me       — the current user
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from herbtrace.auth.deps import get_bearer_token, get_current_user
from herbtrace.auth.jwt import create_access_token, create_refresh_token, decode_token
from herbtrace.auth.password import hash_password, verify_password
from herbtrace.auth.revocation import TokenRevocation
from herbtrace.database import get_db
from herbtrace.middleware.exceptions import AuthError, ValidationError
from herbtrace.models.user import User
from herbtrace.schemas.auth import (
    LoginRequest,
    MeResponse,
    RefreshRequest,
    SignupRequest,
    TokenResponse,
    UserOut,
)
from herbtrace.schemas.common import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_token_response(user: User, message: str) -> TokenResponse:
    return TokenResponse(
        message=message,
        access_token=create_access_token(
            user_id=user.id, username=user.username, role=user.role.value,
        ),
        refresh_token=create_refresh_token(
            user_id=user.id, username=user.username, role=user.role.value,
        ),
        user=UserOut.model_validate(user),
    )


# ── POST /signup ─────────────────────────────────────────────

@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, db: AsyncSession = Depends(get_db)):
    """Register a user and log them in straight away."""
    existing = await db.execute(select(User).where(User.username == body.username))
    if existing.scalar_one_or_none():
        raise ValidationError("User already exists", fields=["username"])

    user = User(
        username=body.username,
        hashed_password=hash_password(body.password),
        role=body.role,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same name
        await db.rollback()
        raise ValidationError("User already exists", fields=["username"])

    logger.info("User %s registered as %s", user.username, user.role.value)
    return _build_token_response(user, "User registered")


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.username == body.username))
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.hashed_password):
        raise AuthError("Invalid credentials")
    if not user.is_active:
        raise AuthError("Account deactivated")

    return _build_token_response(user, "Login successful")


# ── POST /logout ─────────────────────────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(get_bearer_token),
    _user: User = Depends(get_current_user),
):
    """Blacklist the current access token until it would have expired."""
    payload = decode_token(token)
    await TokenRevocation.revoke_token(token, float(payload.get("exp", 0)))
    return MessageResponse(message="Logged out successfully")


# ── POST /refresh ────────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    payload = decode_token(body.refresh_token)
    if payload.get("type") != "refresh":
        raise AuthError("Invalid refresh token")

    result = await db.execute(select(User).where(User.id == payload.get("sub")))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise AuthError("User not found or inactive")

    return _build_token_response(user, "Token refreshed")


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    return MeResponse(user=UserOut.model_validate(user))
