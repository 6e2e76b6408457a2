"""
Domain layer - Pure business logic with zero framework imports.

This package contains the customer onboarding and login logic. It defines
its own port interfaces for infrastructure abstraction (registry,
persistence, password hashing, tokens), ensuring true hexagonal
architecture decoupling.
"""

from .account_codes import AccountCodeGenerator
from .exceptions import (
    AccountLocked,
    AuthenticationError,
    DuplicateEmail,
    DuplicateIdNumber,
    DuplicatePhone,
    IdentityMismatch,
    InvalidCredentials,
    InvalidToken,
    RegistrationConflict,
    RegistrationError,
    RegistryUnavailable,
)
from .lockout import LockoutTracker
from .models import (
    Address,
    CardTier,
    Customer,
    Guardian,
    IdentityRecord,
    RegistrationRequest,
    RegistrationResult,
    RegistrationStats,
)
from .password_strength import PasswordStrength, check_password_strength
from .ports import (
    CustomerRepository,
    FailedAttempt,
    IdentityRegistry,
    PasswordHasher,
    TokenIssuer,
    VerificationOutcome,
)
from .registration import RegistrationService

__all__ = [
    "AccountCodeGenerator",
    "AccountLocked",
    "Address",
    "AuthenticationError",
    "CardTier",
    "Customer",
    "CustomerRepository",
    "DuplicateEmail",
    "DuplicateIdNumber",
    "DuplicatePhone",
    "FailedAttempt",
    "Guardian",
    "IdentityMismatch",
    "IdentityRecord",
    "IdentityRegistry",
    "InvalidCredentials",
    "InvalidToken",
    "LockoutTracker",
    "PasswordHasher",
    "PasswordStrength",
    "RegistrationConflict",
    "RegistrationError",
    "RegistrationRequest",
    "RegistrationResult",
    "RegistrationService",
    "RegistrationStats",
    "RegistryUnavailable",
    "TokenIssuer",
    "VerificationOutcome",
    "check_password_strength",
]
