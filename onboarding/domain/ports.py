"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from .models import Customer, IdentityRecord


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of an identity verification against the registry.

    `data` is only present when the registry returned a structured
    identity-card payload. Transport failures are reported as
    `valid=False` with a descriptive message, never raised.
    """

    valid: bool
    message: str
    data: IdentityRecord | None = None


@dataclass(frozen=True)
class FailedAttempt:
    """Login-attempt counters after a failed attempt has been recorded."""

    failed_login_attempts: int
    account_locked_until: datetime | None


class IdentityRegistry(Protocol):
    """Port interface for the external national-ID registry."""

    base_url: str

    def verify_identity(
        self, id_number: str, full_name: str, birth_date: date
    ) -> VerificationOutcome:
        """
        Check that ID number, full name and birth date form one identity.

        Args:
            id_number: 16-digit national ID number
            full_name: Name as written on the identity card
            birth_date: Date of birth

        Returns:
            VerificationOutcome, negative on any transport failure
        """
        ...

    def id_number_exists(self, id_number: str) -> bool:
        """Return True if the registry knows the ID number. False on failure."""
        ...

    def is_healthy(self) -> bool:
        """Return True if the registry reports status OK. False on failure."""
        ...


class CustomerRepository(Protocol):
    """Port interface for customer persistence."""

    def exists_by_email(self, email: str) -> bool:
        """Case-insensitive email existence check."""
        ...

    def exists_by_phone_number(self, phone_number: str) -> bool: ...

    def exists_by_id_number(self, id_number: str) -> bool: ...

    def exists_by_account_code(self, account_code: int) -> bool: ...

    def exists_by_card_number(self, card_number: str) -> bool: ...

    def find_by_email(self, email: str) -> Customer | None:
        """Case-insensitive lookup."""
        ...

    def find_by_id_number(self, id_number: str) -> Customer | None: ...

    def find_by_account_code(self, account_code: int) -> Customer | None: ...

    def save(self, customer: Customer) -> Customer:
        """
        Insert the customer with its address and guardian in one transaction.

        Returns:
            The stored customer with its generated id

        Raises:
            RegistrationConflict: If a uniqueness constraint rejects the write
        """
        ...

    def record_failed_attempt(
        self, email: str, max_attempts: int, locked_until: datetime
    ) -> FailedAttempt | None:
        """
        Increment the failed-login counter in its own committed transaction.

        When the incremented counter reaches `max_attempts` the lockout
        expiry is set to `locked_until`.

        Returns:
            Updated counters, or None if no customer has that email
        """
        ...

    def reset_failed_attempts(self, email: str) -> None:
        """Set the counter to zero and clear the lockout expiry."""
        ...

    def mark_email_verified(self, email: str) -> bool:
        """Return True if a customer was marked as verified."""
        ...

    def count_customers(self) -> int: ...

    def count_verified_customers(self) -> int: ...


class PasswordHasher(Protocol):
    """Port interface for one-way password hashing."""

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str | None) -> bool:
        """
        Compare a password against a stored hash.

        A `None` hash must still take the same time as a real comparison
        and return False.
        """
        ...


class TokenIssuer(Protocol):
    """Port interface for bearer-token minting and validation."""

    def issue(self, subject_email: str) -> str: ...

    def validate(self, token: str) -> bool: ...

    def subject_of(self, token: str) -> str:
        """
        Return the email the token was issued for.

        Raises:
            InvalidToken: If the token is malformed, tampered with or expired
        """
        ...
