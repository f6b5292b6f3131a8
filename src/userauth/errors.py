"""Domain errors raised by the auth core and the user service.

Learn: Routes never build error responses by hand. Services raise one
of these and the exception handlers in main.py map each class to a
status code and a fixed client message. The exception text itself is
for logs only and never reaches the response body.
"""


class UserAuthError(Exception):
    """Base class for all userauth domain errors."""


class InvalidCredentialsError(UserAuthError):
    """Unknown username or wrong password. Deliberately not distinguished."""


class DuplicateUserError(UserAuthError):
    """A user with that username already exists."""


class UserNotFoundError(UserAuthError):
    """No user record with the requested id."""


class PermissionDeniedError(UserAuthError):
    """Authenticated, but acting on someone else's record."""


class StoreUnavailableError(UserAuthError):
    """The user store could not be reached."""


class UnauthorizedError(UserAuthError):
    """The request carries no usable identity."""


class TokenError(UnauthorizedError):
    """Raised when token verification fails.

    Subclasses tell logs *why* a token was rejected; clients only ever
    see a single 401.
    """

    reason = "invalid"


class TokenMalformedError(TokenError):
    reason = "malformed"


class TokenSignatureInvalidError(TokenError):
    reason = "signature"


class TokenExpiredError(TokenError):
    reason = "expired"
