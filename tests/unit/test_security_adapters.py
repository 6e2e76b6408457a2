"""
Unit tests for the bcrypt hasher and the JWT token issuer.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from onboarding.adapters.security import BcryptPasswordHasher, JwtTokenIssuer
from onboarding.domain.exceptions import InvalidToken

SECRET = "unit-test-secret-with-enough-length"


class TestBcryptPasswordHasher:
    """Tests for BcryptPasswordHasher."""

    @pytest.fixture
    def hasher(self) -> BcryptPasswordHasher:
        # Minimum cost keeps the suite fast
        return BcryptPasswordHasher(cost=4)

    def test_hash_is_bcrypt_and_not_plaintext(self, hasher: BcryptPasswordHasher) -> None:
        hashed = hasher.hash("Secret123!")

        assert hashed.startswith("$2b$04$")
        assert "Secret123!" not in hashed

    def test_verify_correct_and_wrong_password(self, hasher: BcryptPasswordHasher) -> None:
        hashed = hasher.hash("Secret123!")

        assert hasher.verify("Secret123!", hashed) is True
        assert hasher.verify("secret123!", hashed) is False

    def test_missing_hash_never_matches(self, hasher: BcryptPasswordHasher) -> None:
        """Unknown accounts are checked against the dummy hash and always fail."""
        assert hasher.verify("dummy_password_for_timing_safety", None) is False

    @pytest.mark.parametrize("cost", [4, 5])
    def test_dummy_hash_uses_configured_cost(self, cost: int) -> None:
        """Unknown-account checks run bcrypt at the same cost as real hashes."""
        hasher = BcryptPasswordHasher(cost=cost)

        assert hasher._dummy_hash[:7] == hasher.hash("Secret123!")[:7] == f"$2b${cost:02d}$"

    def test_malformed_hash_is_rejected(self, hasher: BcryptPasswordHasher) -> None:
        assert hasher.verify("Secret123!", "not-a-bcrypt-hash") is False


class TestJwtTokenIssuer:
    """Tests for JwtTokenIssuer."""

    @pytest.fixture
    def issuer(self) -> JwtTokenIssuer:
        return JwtTokenIssuer(secret=SECRET, expiration_minutes=60)

    def test_round_trip_subject(self, issuer: JwtTokenIssuer) -> None:
        token = issuer.issue("jane@x.com")

        assert issuer.subject_of(token) == "jane@x.com"
        assert issuer.validate(token) is True

    def test_claims_carry_expiry(self, issuer: JwtTokenIssuer) -> None:
        """exp is iat + configured expiration."""
        token = issuer.issue("jane@x.com")

        claims = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert claims["sub"] == "jane@x.com"
        assert claims["exp"] - claims["iat"] == 3600

    def test_wrong_secret_is_rejected(self, issuer: JwtTokenIssuer) -> None:
        other = JwtTokenIssuer(secret="another-secret-with-enough-length")
        token = other.issue("jane@x.com")

        assert issuer.validate(token) is False
        with pytest.raises(InvalidToken):
            issuer.subject_of(token)

    def test_expired_token_is_rejected(self) -> None:
        """A token issued two hours ago with a one-hour lifetime is invalid."""
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        stale_issuer = JwtTokenIssuer(secret=SECRET, expiration_minutes=60, clock=lambda: past)
        token = stale_issuer.issue("jane@x.com")

        assert JwtTokenIssuer(secret=SECRET).validate(token) is False

    def test_tampered_token_is_rejected(self, issuer: JwtTokenIssuer) -> None:
        header, payload, signature = issuer.issue("jane@x.com").split(".")
        forged = jwt.encode({"sub": "admin@x.com"}, "guess", algorithm="HS256").split(".")[1]

        assert issuer.validate(f"{header}.{forged}.{signature}") is False

    def test_token_without_subject_is_rejected(self, issuer: JwtTokenIssuer) -> None:
        exp = datetime.now(timezone.utc) + timedelta(minutes=5)
        token = jwt.encode({"exp": exp}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidToken):
            issuer.subject_of(token)

    def test_garbage_is_rejected(self, issuer: JwtTokenIssuer) -> None:
        assert issuer.validate("not.a.token") is False
