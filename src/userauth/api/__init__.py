"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Authentication is applied per route rather than per router,
because /api/users mixes an open route (registration) with protected
ones, and /api/auth mixes login with the protected current-user route.
"""

from fastapi import APIRouter

from userauth.api.auth import router as auth_router
from userauth.api.health import router as health_router
from userauth.api.users import router as users_router

api_router = APIRouter(prefix="/api")
api_router.include_router(users_router, tags=["users"])
api_router.include_router(auth_router, tags=["auth"])
