"""
JWT token issuer - Implements TokenIssuer protocol with PyJWT.

Tokens are signed with a shared secret and carry the customer's email
as the `sub` claim plus `iat` and `exp`.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import jwt

from onboarding.domain.exceptions import InvalidToken

logger = logging.getLogger(__name__)


class JwtTokenIssuer:
    """
    Implements TokenIssuer protocol via PyJWT.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expiration_minutes: int = 1440,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expiration = timedelta(minutes=expiration_minutes)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, subject_email: str) -> str:
        issued_at = self._clock()
        claims = {
            "sub": subject_email,
            "iat": issued_at,
            "exp": issued_at + self._expiration,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> bool:
        try:
            self.subject_of(token)
        except InvalidToken:
            return False
        return True

    def subject_of(self, token: str) -> str:
        """
        Decode the token and return its subject email.

        Raises:
            InvalidToken: On bad signature, expiry, malformed token or missing subject
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("Rejected bearer token: %s", e)
            raise InvalidToken("Invalid or expired token") from e

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidToken("Token has no subject")
        return subject
