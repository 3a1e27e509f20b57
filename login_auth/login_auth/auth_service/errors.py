"""
Error taxonomy for the authentication core.

Every error carries a generic public ``detail`` that is safe to send to the
client. The underlying cause (library exception, algorithm name, ...) is
chained with ``raise ... from`` and only ever reaches the logs.
"""


class AuthError(Exception):
    """Base class for failures that end the current request as unauthorized."""

    detail = "authentication failed"

    def __init__(self, detail: str = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class AuthenticationError(AuthError):
    """Bad credentials. Never says which field was wrong."""

    detail = "invalid username or password"


class HashingError(AuthError):
    """Internal hashing failure (entropy source, backend, limiter timeout)."""

    detail = "authentication failed"


class InvalidClaimError(AuthError):
    """Attempted to issue a token for an empty identity."""

    detail = "could not issue token"


class TokenError(AuthError):
    """Malformed or forged token."""

    detail = "invalid token"


class TokenExpiredError(AuthError):
    """Token signature is valid but its expiry has passed."""

    detail = "token expired"


class UserStoreError(Exception):
    """A user store could not complete a read or write."""


class UserExistsError(UserStoreError):
    """Raised by a user store when the username is already taken."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"username already exists: {username}")
