"""User API routes — registration and self-service CRUD.

Learn: Registration is open and returns a token straight away, so a
new user doesn't need a second round-trip to log in. The /users/{id}
routes require a token, and a user may only read or change their own
record. There is no admin role.
"""

import uuid

from fastapi import APIRouter, Depends

from userauth.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_token_service,
    get_user_service,
)
from userauth.auth.jwt import TokenService
from userauth.errors import PermissionDeniedError
from userauth.schemas.user import (
    MessageResponse,
    TokenResponse,
    UserCreate,
    UserRead,
    UserUpdate,
)
from userauth.services.user_service import UserService

router = APIRouter(prefix="/users")


def _ensure_owner(identity: CurrentIdentity, user_id: uuid.UUID) -> None:
    if not identity.owns(user_id):
        raise PermissionDeniedError(f"{identity.user_id} cannot act on {user_id}")


@router.post("", response_model=TokenResponse)
async def register(
    body: UserCreate,
    svc: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Register a user and return a token for them."""
    user = await svc.register(
        username=body.username,
        email=body.email,
        full_name=body.full_name,
        password=body.password,
    )
    return TokenResponse(token=tokens.issue(str(user.id)))


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    _ensure_owner(identity, user_id)
    return await svc.require_user(user_id)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    """Update any subset of username, email, fullName, password."""
    _ensure_owner(identity, user_id)
    user = await svc.require_user(user_id)
    return await svc.update_user(user, body.model_dump(exclude_unset=True))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    """Delete your account. Tokens already issued stay valid until expiry."""
    _ensure_owner(identity, user_id)
    user = await svc.require_user(user_id)
    await svc.delete_user(user)
    return MessageResponse(msg="User removed")
