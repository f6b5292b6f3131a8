"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
One token type, one HMAC secret, one fixed TTL (36000s = 10 hours).

The token carries only the user id ("sub") plus "iat"/"exp". It is
never stored, so it cannot be revoked: it stays valid until it expires,
even across a password change. Rotating the secret invalidates every
outstanding token at once.
"""

import time
from typing import Callable

import jwt

from userauth.errors import (
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureInvalidError,
)

DEFAULT_TTL_SECONDS = 36000

_REQUIRED_CLAIMS = ["sub", "iat", "exp"]


class TokenService:
    """Issues and verifies signed session tokens.

    Learn: The secret is handed in at construction and held for the
    life of the process. The clock is injectable so expiry can be
    tested without sleeping.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm
        self._clock = clock

    def __repr__(self) -> str:
        return f"TokenService(algorithm={self.algorithm!r}, ttl_seconds={self.ttl_seconds})"

    def issue(self, user_id: str) -> str:
        """Create a signed token for user_id, expiring ttl_seconds from now."""
        now = int(self._clock())
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Verify a token and return its user id.

        Checks run in order: structure, signature, expiry. The first
        failure wins, so a forged token is reported as a bad signature
        even when its "exp" is also in the past.

        Raises TokenMalformedError, TokenSignatureInvalidError or
        TokenExpiredError.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                # Expiry is checked below against our own clock.
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidSignatureError:
            raise TokenSignatureInvalidError("Signature verification failed")
        except jwt.InvalidTokenError as e:
            raise TokenMalformedError(f"Malformed token: {e}")

        exp = payload["exp"]
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise TokenMalformedError("Malformed token: non-numeric exp")
        if self._clock() >= exp:
            raise TokenExpiredError("Token has expired")

        sub = payload["sub"]
        if not isinstance(sub, str) or not sub:
            raise TokenMalformedError("Malformed token: bad subject")
        return sub
