"""Health check and welcome endpoints.

Learn: Simple GET endpoints that verify the server is running
and the user store is reachable.
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from userauth import __version__

router = APIRouter()


@router.get("/")
async def welcome():
    return {"msg": "Welcome to the User Auth API..."}


@router.get("/api/health")
async def health_check(request: Request):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e.__class__.__name__}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
