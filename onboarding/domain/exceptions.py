"""
Domain exceptions - Semantic error types for registration and login.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception carries a human-readable message.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class RegistryUnavailable(RegistrationError):
    """The identity registry failed its health check."""

    pass


class IdentityMismatch(RegistrationError):
    """The registry rejected the ID number, name and birth date combination."""

    pass


class DuplicateEmail(RegistrationError):
    """Email is already registered (case-insensitive)."""

    pass


class DuplicatePhone(RegistrationError):
    """Phone number is already registered."""

    pass


class DuplicateIdNumber(RegistrationError):
    """ID number has already been used for a registration."""

    pass


class RegistrationConflict(RegistrationError):
    """A storage uniqueness constraint rejected the write."""

    pass


class AuthenticationError(Exception):
    """Base class for login failures."""

    pass


class InvalidCredentials(AuthenticationError):
    """Unknown email or wrong password (deliberately indistinguishable)."""

    def __init__(self, message: str, remaining_attempts: int | None = None) -> None:
        super().__init__(message)
        self.remaining_attempts = remaining_attempts


class AccountLocked(AuthenticationError):
    """Too many consecutive failed logins."""

    def __init__(self, message: str, minutes: int) -> None:
        super().__init__(message)
        self.minutes = minutes


class InvalidToken(Exception):
    """Bearer token is malformed, tampered with or expired."""

    pass
