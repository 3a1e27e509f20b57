"""
Bearer token issuing and verification.

Tokens are compact JWTs signed with the process-wide secret from
``TokenConfig``. A token is:

- *valid* while its signature matches and ``exp`` has not passed,
- *expired* once ``exp`` has passed (``TokenExpiredError``),
- *invalid* as soon as anything fails to verify (``TokenError``).

Only ``sub`` and ``username`` are carried besides the timestamps.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from pydantic import ValidationError

from .config import TokenConfig
from .errors import InvalidClaimError, TokenError, TokenExpiredError
from .schemas import IdentityClaim

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "username", "iat", "exp"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    def __init__(self, config: TokenConfig, clock: Optional[Callable[[], datetime]] = None):
        self._secret = config.signing_secret.get_secret_value()
        self._algorithm = config.algorithm
        self._lifetime = config.token_lifetime
        self._leeway = config.leeway
        self._clock = clock or utcnow

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def generate_token(self, claim: IdentityClaim) -> str:
        """
        Sign ``claim`` into a token expiring after the configured lifetime.

        Raises:
            InvalidClaimError: claim is None or has no subject_id
        """
        if claim is None or not claim.subject_id:
            raise InvalidClaimError()

        issued_at = self._clock()
        payload = {
            "sub": claim.subject_id,
            "username": claim.username,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError) as e:
            logger.error("Token signing failed for sub=%s: %s", claim.subject_id, e)
            raise InvalidClaimError() from e

    def verify_token(self, token: str) -> IdentityClaim:
        """
        Decode ``token`` back into the identity claim it was issued for.

        ``exp`` and ``iat`` are checked against the service clock, not
        PyJWT's wall time, so issuing and verifying share one notion of now.

        Raises:
            TokenExpiredError: signature is valid but exp has passed
            TokenError: empty, forged, malformed, or missing claims
        """
        if not token:
            raise TokenError()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected token: %s", e)
            raise TokenError() from e

        self._check_timestamps(payload)

        try:
            claim = IdentityClaim(subject_id=payload["sub"], username=payload["username"])
        except ValidationError as e:
            raise TokenError() from e
        if not claim.subject_id:
            raise TokenError()
        return claim

    def _check_timestamps(self, payload: dict) -> None:
        exp, iat = payload["exp"], payload["iat"]
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (exp, iat)):
            raise TokenError()

        now = self._clock().timestamp()
        leeway = self._leeway.total_seconds()
        if iat > now + leeway:
            logger.debug("Rejected token issued in the future: iat=%s now=%s", iat, now)
            raise TokenError()
        if exp <= now - leeway:
            raise TokenExpiredError()
