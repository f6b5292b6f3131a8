"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor (rounds=10) takes tens of milliseconds per hash on
commodity hardware; raise USERAUTH_BCRYPT_ROUNDS as hardware improves
(`userauth calibrate` measures it).

bcrypt is CPU-bound, so the async variants run it on a small bounded
thread pool instead of the event loop.
"""

import asyncio
import concurrent.futures
import enum
import secrets

import bcrypt

# bcrypt only looks at the first 72 bytes of the password.
MAX_PASSWORD_BYTES = 72


class PasswordCheck(enum.Enum):
    """Outcome of checking a password against a stored hash."""

    MATCH = "match"
    MISMATCH = "mismatch"
    MALFORMED = "malformed"  # stored hash is not a usable bcrypt hash


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def _hash_rounds(password_hash: str) -> int | None:
    """Extract the cost factor from a "$2b$NN$..." hash, or None."""
    parts = password_hash.split("$")
    if len(parts) != 4 or not parts[1].startswith("2"):
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


class PasswordHasher:
    """bcrypt hashing with a fixed cost and a bounded worker pool."""

    def __init__(self, rounds: int = 10, max_workers: int = 4):
        self.rounds = rounds
        self._pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="bcrypt"
        )
        # Verified against when the username is unknown, so a miss costs
        # the same as a wrong password.
        self._dummy_hash = self.hash_password(secrets.token_urlsafe(16))

    # ─── Sync ────────────────────────────────────────────

    def hash_password(self, password: str) -> str:
        """Hash a password with a fresh random salt.

        Learn: bcrypt.gensalt() draws a new salt on every call, so two
        hashes of the same password never compare equal. The salt and
        the cost are embedded in the "$2b$..." string.
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def check_password(self, password: str, password_hash: str) -> PasswordCheck:
        """Check a password, telling a wrong password from a broken hash."""
        try:
            ok = bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return PasswordCheck.MALFORMED
        return PasswordCheck.MATCH if ok else PasswordCheck.MISMATCH

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash. Never raises."""
        return self.check_password(password, password_hash) is PasswordCheck.MATCH

    def dummy_check(self, password: str) -> None:
        """Burn one bcrypt verification's worth of CPU. Always a miss."""
        self.check_password(password, self._dummy_hash)

    def needs_rehash(self, password_hash: str) -> bool:
        """Check if a stored hash was made with a different cost factor."""
        return _hash_rounds(password_hash) != self.rounds

    # ─── Async (off the event loop) ──────────────────────

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, fn, *args)

    async def hash_password_async(self, password: str) -> str:
        return await self._run(self.hash_password, password)

    async def check_password_async(
        self, password: str, password_hash: str
    ) -> PasswordCheck:
        return await self._run(self.check_password, password, password_hash)

    async def dummy_check_async(self, password: str) -> None:
        await self._run(self.dummy_check, password)

    def shutdown(self) -> None:
        """Stop the worker pool. Called from the app lifespan."""
        self._pool.shutdown(wait=True)
