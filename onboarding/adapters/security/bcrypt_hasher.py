"""
bcrypt password hasher - Implements PasswordHasher protocol.

Timing Oracle Prevention:
-------------------------
When there is no stored hash (unknown email), the password is still
checked against a pre-computed dummy hash so that bcrypt always runs and
response time does not reveal whether an account exists.
"""

import bcrypt

_DUMMY_PASSWORD = b"dummy_password_for_timing_safety"


class BcryptPasswordHasher:
    """
    Implements PasswordHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, cost: int = 10) -> None:
        self._cost = cost
        # Same cost as real hashes so both login failure paths take equal time
        self._dummy_hash = bcrypt.hashpw(_DUMMY_PASSWORD, bcrypt.gensalt(rounds=cost)).decode()

    def hash(self, password: str) -> str:
        """Hash password using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self._cost)).decode()

    def verify(self, password: str, password_hash: str | None) -> bool:
        """
        Constant-time password comparison.

        A missing hash is compared against the dummy hash and always fails.
        """
        stored_hash = password_hash if password_hash is not None else self._dummy_hash
        try:
            matches = bcrypt.checkpw(password.encode(), stored_hash.encode())
        except ValueError:
            # Malformed stored hash
            return False
        return matches and password_hash is not None
