"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with USERAUTH_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Learn: Settings is frozen. It is built once at startup and handed to
create_app(), which passes the pieces each component needs (secret,
TTL, bcrypt cost) into their constructors. Nothing reads the secret
from module globals at request time.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via USERAUTH_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./userauth.db"

    # Auth. No default secret: a missing one fails startup.
    jwt_secret: SecretStr
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = Field(default=36000, gt=0)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    hash_workers: int = Field(default=4, ge=1)

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000
    log_json: bool = False

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_rpm: int = 100  # requests per minute per IP
    rate_limit_auth_rpm: int = 10  # stricter limit for login/register

    model_config = {"env_prefix": "USERAUTH_", "frozen": True}

    @field_validator("jwt_secret")
    @classmethod
    def validate_secret(cls, v: SecretStr) -> SecretStr:
        """Reject empty or trivially short signing secrets."""
        if len(v.get_secret_value().encode()) < 32:
            raise ValueError(
                "USERAUTH_JWT_SECRET must be at least 32 bytes. "
                "Generate one with: userauth gen-secret"
            )
        return v


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment once per process."""
    return Settings()
