"""User service — business logic for accounts and credentials.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.
This makes the code testable (test services without HTTP).

This is also where username enumeration is prevented: authenticate()
raises the same InvalidCredentialsError for an unknown username and for
a wrong password, and runs a dummy bcrypt check on the unknown-username
path so the two cost the same.
"""

import uuid
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from userauth.auth.password import PasswordCheck, PasswordHasher
from userauth.db.models import User
from userauth.errors import (
    DuplicateUserError,
    InvalidCredentialsError,
    StoreUnavailableError,
    UserNotFoundError,
)

logger = structlog.get_logger()

_UPDATABLE_FIELDS = ("username", "email", "full_name")


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession, hasher: PasswordHasher):
        self.db = db
        self.hasher = hasher

    # ─── Lookup ─────────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> User | None:
        try:
            return await self.db.get(User, user_id)
        except (OperationalError, InterfaceError) as e:
            raise StoreUnavailableError(str(e)) from e

    async def require_user(self, user_id: uuid.UUID) -> User:
        user = await self.get_user(user_id)
        if not user:
            raise UserNotFoundError(f"No user {user_id}")
        return user

    async def find_by_username(self, username: str) -> User | None:
        try:
            result = await self.db.execute(
                select(User).where(User.username == username)
            )
        except (OperationalError, InterfaceError) as e:
            raise StoreUnavailableError(str(e)) from e
        return result.scalars().first()

    # ─── Registration ───────────────────────────────────

    async def register(
        self, username: str, email: str, full_name: str, password: str
    ) -> User:
        """Create a user with a freshly hashed password.

        Learn: Check-then-create is only an optimisation. The unique
        constraint on users.username is the real guard, and a late
        IntegrityError is translated into DuplicateUserError.
        """
        if await self.find_by_username(username):
            raise DuplicateUserError(username)

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            password_hash=await self.hasher.hash_password_async(password),
        )
        self.db.add(user)
        await self._commit()
        await self.db.refresh(user)
        logger.info("user.registered", user_id=str(user.id))
        return user

    # ─── Login ──────────────────────────────────────────

    async def authenticate(self, username: str, password: str) -> User:
        """Return the user if the password matches, else InvalidCredentialsError."""
        user = await self.find_by_username(username)

        if not user:
            await self.hasher.dummy_check_async(password)
            logger.info("auth.login.failed", reason="invalid_credentials")
            raise InvalidCredentialsError(username)

        check = await self.hasher.check_password_async(password, user.password_hash)
        if check is PasswordCheck.MALFORMED:
            logger.warning("auth.password.malformed_hash", user_id=str(user.id))
            raise InvalidCredentialsError(username)
        if check is not PasswordCheck.MATCH:
            logger.info("auth.login.failed", reason="invalid_credentials")
            raise InvalidCredentialsError(username)

        # Re-hash with the current cost factor on successful login
        if self.hasher.needs_rehash(user.password_hash):
            user.password_hash = await self.hasher.hash_password_async(password)
            await self._commit()
            logger.info("auth.password.rehashed", user_id=str(user.id))

        return user

    # ─── Update / delete ────────────────────────────────

    async def update_user(self, user: User, changes: dict[str, Any]) -> User:
        """Apply a partial update. A new password is hashed before it is stored."""
        new_username = changes.get("username")
        if new_username is not None and new_username != user.username:
            if await self.find_by_username(new_username):
                raise DuplicateUserError(new_username)

        for field in _UPDATABLE_FIELDS:
            if changes.get(field) is not None:
                setattr(user, field, changes[field])

        if changes.get("password") is not None:
            user.password_hash = await self.hasher.hash_password_async(
                changes["password"]
            )

        await self._commit()
        await self.db.refresh(user)
        logger.info(
            "user.updated",
            user_id=str(user.id),
            fields=sorted(k for k, v in changes.items() if v is not None),
        )
        return user

    async def delete_user(self, user: User) -> None:
        user_id = str(user.id)
        await self.db.delete(user)
        await self._commit()
        logger.info("user.deleted", user_id=user_id)

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateUserError("username already taken") from e
        except (OperationalError, InterfaceError) as e:
            await self.db.rollback()
            raise StoreUnavailableError(str(e)) from e
