from datetime import datetime

from pydantic import Field

from herbtrace.models.enums import UserRole
from herbtrace.schemas.common import CamelModel, NonBlankStr


# ── Signup ───────────────────────────────────────────────────

class SignupRequest(CamelModel):
    """Self-registration. The role is chosen once and never changes."""
    username: NonBlankStr = Field(..., max_length=150)
    password: str = Field(..., min_length=6)
    role: UserRole


# ── Login / refresh ──────────────────────────────────────────

class LoginRequest(CamelModel):
    username: NonBlankStr
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


# ── Responses ────────────────────────────────────────────────

class UserOut(CamelModel):
    id: str
    username: str
    role: UserRole
    is_active: bool
    created_at: datetime | None = None


class TokenResponse(CamelModel):
    message: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


class MeResponse(CamelModel):
    user: UserOut
