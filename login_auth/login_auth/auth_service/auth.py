import logging
import threading
from contextlib import contextmanager

from passlib.context import CryptContext
from passlib.exc import MissingBackendError

from .config import HashingConfig
from .errors import AuthenticationError, HashingError, UserStoreError
from .models import User
from .schemas import Credentials, IdentityClaim
from .store import UserStore

logger = logging.getLogger(__name__)


class PasswordHasher:
    """
    Salted one-way password hashing on top of a passlib CryptContext.

    Hash records are modular-crypt strings that carry their own scheme,
    cost and salt, so verification needs nothing but the record. The first
    configured scheme hashes new passwords; records from any other configured
    scheme, or with fewer rounds than configured, still verify but are
    reported by ``needs_rehash``.

    Hashing is CPU bound, so every hash and verify holds a slot from a
    bounded semaphore. Failing to get a slot within ``acquire_timeout``
    raises ``HashingError`` instead of queueing forever.
    """

    def __init__(self, schemes=("pbkdf2_sha256",), rounds: int = 29000,
                 max_concurrent: int = 4, acquire_timeout: float = 10.0):
        schemes = list(schemes)
        default = schemes[0]
        self._context = CryptContext(
            schemes=schemes,
            default=default,
            deprecated="auto",
            **{
                f"{default}__default_rounds": rounds,
                f"{default}__min_rounds": rounds,
            },
        )
        self._limiter = threading.BoundedSemaphore(max_concurrent)
        self._acquire_timeout = acquire_timeout

    @classmethod
    def from_config(cls, config: HashingConfig) -> "PasswordHasher":
        return cls(
            schemes=config.schemes,
            rounds=config.rounds,
            max_concurrent=config.max_concurrent,
            acquire_timeout=config.acquire_timeout,
        )

    @contextmanager
    def _slot(self):
        if not self._limiter.acquire(timeout=self._acquire_timeout):
            logger.warning("Hashing limiter timed out after %ss", self._acquire_timeout)
            raise HashingError()
        try:
            yield
        finally:
            self._limiter.release()

    def hash(self, plaintext: str) -> str:
        with self._slot():
            try:
                return self._context.hash(plaintext)
            except (ValueError, RuntimeError, OSError) as e:
                logger.error("Password hashing failed: %s", type(e).__name__)
                raise HashingError() from e

    def verify(self, plaintext: str, hash_record: str) -> bool:
        """Constant-time check. False for any mismatch or unusable record."""
        if not hash_record:
            # Still pay the hashing cost so an empty record looks like any miss.
            return self.dummy_verify(plaintext)
        with self._slot():
            try:
                return self._context.verify(plaintext, hash_record)
            except MissingBackendError as e:
                logger.error("Password hash backend unavailable: %s", e)
                raise HashingError() from e
            except (ValueError, TypeError):
                return False

    def dummy_verify(self, plaintext: str) -> bool:
        """Full-cost verification against a throwaway hash. Always False."""
        with self._slot():
            try:
                self._context.dummy_verify()
            except MissingBackendError as e:
                logger.error("Password hash backend unavailable: %s", e)
                raise HashingError() from e
        return False

    def needs_rehash(self, hash_record: str) -> bool:
        if not hash_record:
            return False
        try:
            return self._context.needs_update(hash_record)
        except (ValueError, TypeError):
            return False


class CredentialVerifier:
    """Checks a username/password pair against the user store."""

    def __init__(self, store: UserStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher

    def verify_credentials(self, credentials: Credentials) -> User:
        """
        Return the stored user whose username and password match.

        Raises:
            AuthenticationError: unknown username, wrong password, or an
                internal hashing failure. Always the same generic message.
        """
        password = credentials.password.get_secret_value()
        user = self.store.find_by_username(credentials.username)

        try:
            if user is None:
                # Same hashing work as a real check so timing does not reveal
                # whether the username exists.
                self.hasher.dummy_verify(password)
                matched = False
            else:
                matched = self.hasher.verify(password, user.password_hash)
        except HashingError as e:
            logger.warning("Credential check aborted for username=%r: %s",
                           credentials.username, type(e).__name__)
            raise AuthenticationError() from e

        if not matched:
            raise AuthenticationError()

        if self.hasher.needs_rehash(user.password_hash):
            self._upgrade_hash(user, password)
        return user

    def _upgrade_hash(self, user: User, password: str) -> None:
        try:
            self.store.update_password_hash(user, self.hasher.hash(password))
        except (HashingError, UserStoreError) as e:
            logger.warning("Could not upgrade password hash for user_id=%s: %s",
                           user.id, type(e).__name__)
            return
        logger.info("Upgraded password hash for user_id=%s", user.id)


def project_identity(user: User) -> IdentityClaim:
    # Username doubles as the subject: it is the unique lookup key.
    return IdentityClaim(subject_id=user.username, username=user.username)
