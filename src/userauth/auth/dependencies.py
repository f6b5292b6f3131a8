"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user identity from the request.

The token is read from "Authorization: Bearer <token>" or, for older
clients, from the "x-auth-token" header. Every rejection surfaces to
the client as the same 401; the reason only goes to the log.
"""

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from userauth.auth.jwt import TokenService
from userauth.auth.password import PasswordHasher
from userauth.db.engine import get_db
from userauth.db.models import User
from userauth.errors import TokenError, TokenMalformedError, UnauthorizedError
from userauth.services.user_service import UserService

logger = structlog.get_logger()


class CurrentIdentity:
    """Represents the authenticated identity making the request."""

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id

    def owns(self, user_id: uuid.UUID) -> bool:
        return self.user_id == user_id


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_user_service(
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserService:
    return UserService(db, hasher)


def _extract_token(
    authorization: Optional[str], x_auth_token: Optional[str]
) -> Optional[str]:
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    if x_auth_token:
        return x_auth_token.strip()
    return None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_auth_token: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no valid token).

    Learn: This is the "hard" auth dependency. Used for endpoints
    that require authentication.
    """
    token = _extract_token(authorization, x_auth_token)
    if not token:
        logger.info("auth.token.rejected", reason="missing")
        raise UnauthorizedError("No token supplied")

    try:
        subject = tokens.verify(token)
    except TokenError as e:
        logger.info("auth.token.rejected", reason=e.reason)
        raise

    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        logger.info("auth.token.rejected", reason="malformed")
        raise TokenMalformedError("Subject is not a user id")
    return CurrentIdentity(user_id=user_id)


async def get_current_user_record(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
) -> User:
    """Load the authenticated user's record.

    A valid token whose user has since been deleted is treated as
    unauthenticated.
    """
    user = await svc.get_user(identity.user_id)
    if not user:
        logger.info("auth.token.rejected", reason="unknown_subject")
        raise UnauthorizedError("Token subject no longer exists")
    return user
