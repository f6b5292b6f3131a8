"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Everything with process lifetime (settings, token service,
password hasher, DB engine) is built here from one Settings value and
parked on app.state. Lifespan manages startup/shutdown.

Run with uvicorn's factory mode:
    uvicorn userauth.main:create_app --factory --port 5000
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from userauth import __version__
from userauth.api import api_router, health_router
from userauth.auth.jwt import TokenService
from userauth.auth.password import PasswordHasher
from userauth.config import Settings, get_settings
from userauth.db.engine import build_engine, build_session_factory, create_schema
from userauth.errors import (
    DuplicateUserError,
    InvalidCredentialsError,
    PermissionDeniedError,
    StoreUnavailableError,
    UnauthorizedError,
    UserNotFoundError,
)
from userauth.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "userauth.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        bcrypt_rounds=settings.bcrypt_rounds,
        token_ttl_seconds=settings.token_ttl_seconds,
    )

    await create_schema(app.state.engine)

    yield

    logger.info("userauth.shutdown")
    app.state.password_hasher.shutdown()
    await app.state.engine.dispose()


# ─── Error mapping ───────────────────────────────────────


def _msg(status_code: int, msg: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"msg": msg}, headers=headers)


async def _validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": str(err["loc"][-1]) if err.get("loc") else None,
            "location": str(err["loc"][0]) if err.get("loc") else None,
            "msg": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"errors": errors})


async def _invalid_credentials(request: Request, exc: InvalidCredentialsError):
    return _msg(400, "Invalid Credentials")


async def _duplicate_user(request: Request, exc: DuplicateUserError):
    return _msg(400, "User already exists")


async def _unauthorized(request: Request, exc: UnauthorizedError):
    return _msg(401, "Unauthorized", headers={"WWW-Authenticate": "Bearer"})


async def _permission_denied(request: Request, exc: PermissionDeniedError):
    logger.info("auth.forbidden", detail=str(exc))
    return _msg(403, "Not authorized")


async def _user_not_found(request: Request, exc: UserNotFoundError):
    return _msg(404, "User not found")


async def _store_unavailable(request: Request, exc: StoreUnavailableError):
    logger.error("store.unavailable", error=str(exc))
    return _msg(500, "Server Error")


async def _unhandled(request: Request, exc: Exception):
    logger.exception("server.error", error_type=exc.__class__.__name__)
    return _msg(500, "Server Error")


def _register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(InvalidCredentialsError, _invalid_credentials)
    app.add_exception_handler(DuplicateUserError, _duplicate_user)
    app.add_exception_handler(UnauthorizedError, _unauthorized)
    app.add_exception_handler(PermissionDeniedError, _permission_denied)
    app.add_exception_handler(UserNotFoundError, _user_not_found)
    app.add_exception_handler(StoreUnavailableError, _store_unavailable)
    app.add_exception_handler(Exception, _unhandled)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application.

    Raises pydantic.ValidationError when no settings are given and the
    environment lacks USERAUTH_JWT_SECRET. The process must not start
    without a signing secret.
    """
    settings = settings or get_settings()
    configure_logging(json_logs=settings.log_json, debug=settings.debug)

    app = FastAPI(
        title="User Auth API",
        description="Register, log in, and manage your own user record",
        version=__version__,
        lifespan=lifespan,
    )

    engine = build_engine(settings.database_url, echo=settings.debug)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService(
        secret=settings.jwt_secret.get_secret_value(),
        ttl_seconds=settings.token_ttl_seconds,
        algorithm=settings.jwt_algorithm,
    )
    app.state.password_hasher = PasswordHasher(
        rounds=settings.bcrypt_rounds,
        max_workers=settings.hash_workers,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → handler

    from userauth.middleware.rate_limit import RateLimitMiddleware
    from userauth.middleware.request_id import RequestIdMiddleware
    from userauth.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            default_rpm=settings.rate_limit_rpm,
            auth_rpm=settings.rate_limit_auth_rpm,
        )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    _register_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router)

    return app
