"""userauth CLI — run the server and look after its settings.

Usage:
    userauth serve --port 5000          # Run the API with uvicorn
    userauth init-db                    # Create the users table
    userauth calibrate --target-ms 50   # Pick a bcrypt cost for this machine
    userauth gen-secret                 # Print a fresh signing secret
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import secrets
import sys
import time
from typing import Optional

import bcrypt
import click

from userauth import __version__

# bcrypt's accepted cost range.
MIN_ROUNDS = 4
MAX_ROUNDS = 31


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop — normal CLI invocation
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _load_settings():
    """Load Settings, turning a config error into a readable exit."""
    from pydantic import ValidationError

    from userauth.config import Settings

    try:
        return Settings()
    except ValidationError as e:
        click.secho("Error: invalid configuration", fg="red", err=True)
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"]) or "settings"
            click.secho(f"  {field}: {err['msg']}", fg="red", err=True)
        sys.exit(1)


def time_hash(rounds: int, password: bytes = b"calibration-password") -> float:
    """Seconds taken by one bcrypt hash at the given cost."""
    salt = bcrypt.gensalt(rounds=rounds)
    start = time.perf_counter()
    bcrypt.hashpw(password, salt)
    return time.perf_counter() - start


def pick_rounds(target_seconds: float, timer=time_hash, max_rounds: int = 16) -> int:
    """Highest cost whose hash time stays under target_seconds.

    Each extra round doubles the work, so probing stops as soon as a
    cost goes over the target.
    """
    best = MIN_ROUNDS
    for rounds in range(MIN_ROUNDS, max_rounds + 1):
        if timer(rounds) > target_seconds:
            break
        best = rounds
    return best


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="userauth")
def main():
    """userauth — minimal user-account API."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: USERAUTH_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: USERAUTH_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    settings = _load_settings()
    uvicorn.run(
        "userauth.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create the database schema."""
    from userauth.db.engine import build_engine, create_schema

    settings = _load_settings()

    async def _init():
        engine = build_engine(settings.database_url)
        try:
            await create_schema(engine)
        finally:
            await engine.dispose()

    _run(_init())
    click.secho("Schema created.", fg="green")


@main.command()
@click.option("--target-ms", type=float, default=50.0, show_default=True,
              help="Upper bound for one hash, in milliseconds")
@click.option("--max-rounds", type=click.IntRange(MIN_ROUNDS, MAX_ROUNDS),
              default=16, show_default=True, help="Highest cost to try")
def calibrate(target_ms: float, max_rounds: int):
    """Measure bcrypt on this machine and suggest USERAUTH_BCRYPT_ROUNDS."""
    def timer(rounds: int) -> float:
        elapsed = time_hash(rounds)
        click.echo(f"  rounds={rounds:<3} {elapsed * 1000:8.1f} ms")
        return elapsed

    click.echo(f"Timing bcrypt (target {target_ms:.0f} ms)...")
    rounds = pick_rounds(target_ms / 1000.0, timer=timer, max_rounds=max_rounds)
    click.secho(f"USERAUTH_BCRYPT_ROUNDS={rounds}", fg="green", bold=True)


@main.command("gen-secret")
@click.option("--bytes", "nbytes", type=click.IntRange(24, 256), default=32,
              show_default=True)
def gen_secret(nbytes: int):
    """Print a random value for USERAUTH_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(nbytes))


if __name__ == "__main__":
    main()
