"""Auth API — login and current user.

Learn: Routes for session tokens:
- POST /auth → username/password → signed token
- GET /auth  → current user info (token required)

Login failures always come back as the same 400 body, whether the
username is unknown or the password is wrong.
"""

from fastapi import APIRouter, Depends

from userauth.auth.dependencies import (
    get_current_user_record,
    get_token_service,
    get_user_service,
)
from userauth.auth.jwt import TokenService
from userauth.db.models import User
from userauth.schemas.user import LoginRequest, TokenResponse, UserRead
from userauth.services.user_service import UserService

router = APIRouter(prefix="/auth")


@router.post("", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    svc: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Log in with username and password → token."""
    user = await svc.authenticate(body.username, body.password)
    return TokenResponse(token=tokens.issue(str(user.id)))


@router.get("", response_model=UserRead)
async def get_logged_in_user(user: User = Depends(get_current_user_record)):
    """Get the current authenticated user's record (never the password hash)."""
    return user
