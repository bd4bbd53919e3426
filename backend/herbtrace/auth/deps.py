"""FastAPI dependencies for authentication.

Dependencies:
  get_current_user       → decode the bearer JWT, load the user, return User
  get_current_actor      → the per-request identity handed to the services
  authenticated_body(M)  → parse the JSON body into M, after authentication

The services never look at tokens or sessions; they only receive the
resolved ``Actor``.
"""

from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from herbtrace.auth.jwt import decode_token
from herbtrace.auth.revocation import TokenRevocation
from herbtrace.database import get_db
from herbtrace.middleware.exceptions import (
    AuthError,
    ValidationError,
    validation_error_from_pydantic,
)
from herbtrace.models.enums import UserRole
from herbtrace.models.user import User

# auto_error=False: a missing header becomes our AuthError, not a bare 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login", auto_error=False)


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of one request."""
    id: str
    username: str
    role: UserRole


async def get_bearer_token(token: str | None = Depends(oauth2_scheme)) -> str:
    if not token:
        raise AuthError("Not authenticated")
    return token


async def get_current_user(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the JWT, check revocation, and load the user."""
    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise AuthError("Invalid or expired token")

    if await TokenRevocation.is_revoked(token):
        raise AuthError("Session has ended. Please log in again.")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise AuthError("User not found or inactive")

    return user


async def get_current_actor(user: User = Depends(get_current_user)) -> Actor:
    return Actor(id=user.id, username=user.username, role=user.role)


def authenticated_body(model: type[BaseModel]):
    """Dependency that reads the request body as ``model`` once the caller is
    authenticated.

    A body parameter declared on the route is decoded by FastAPI before any
    dependency runs; reading it here keeps an anonymous caller's response a
    401 whatever the body contains.
    """

    async def parse_body(
        request: Request,
        _actor: Actor = Depends(get_current_actor),
    ) -> BaseModel:
        try:
            data = await request.json()
        except ValueError:
            raise ValidationError("Request body is not valid JSON", fields=["body"])
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise validation_error_from_pydantic(exc.errors())

    return parse_body
