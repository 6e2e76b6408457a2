"""
Registration domain service - onboarding and login workflows.

Registration is a linear sequence of hard gates. Any failure aborts the
whole operation before anything is written:

    1. registry health check          -> RegistryUnavailable
    2. identity verification          -> IdentityMismatch
    3. email not registered           -> DuplicateEmail
    4. phone number not registered    -> DuplicatePhone
    5. ID number not yet registered   -> DuplicateIdNumber
    6. resolve tier, generate account code (unless supplied)
    7. generate virtual card number
    8. assemble the customer, preferring registry identity data
    9. attach address
   10. attach guardian only if complete
   11. hash password, lower-case email
   12. single transactional write      -> RegistrationConflict

Login:

    unknown email        -> InvalidCredentials (generic)
    locked account       -> AccountLocked (remaining minutes)
    wrong password       -> counter + 1 in its own transaction,
                            AccountLocked when the limit is reached,
                            otherwise InvalidCredentials with remaining attempts
    correct password     -> counters cleared, bearer token issued

The "exists" pre-checks only narrow the race window. Storage unique
constraints are the final arbiter and surface as RegistrationConflict.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date

from .account_codes import AccountCodeGenerator
from .exceptions import (
    AccountLocked,
    DuplicateEmail,
    DuplicateIdNumber,
    DuplicatePhone,
    IdentityMismatch,
    InvalidCredentials,
    InvalidToken,
    RegistryUnavailable,
)
from .lockout import LockoutTracker
from .models import (
    CardTier,
    Customer,
    Guardian,
    IdentityRecord,
    RegistrationRequest,
    RegistrationResult,
    RegistrationStats,
    mask_id_number,
)
from .password_strength import PasswordStrength, check_password_strength
from .ports import (
    CustomerRepository,
    IdentityRegistry,
    PasswordHasher,
    TokenIssuer,
    VerificationOutcome,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


@dataclass
class RegistrationService:
    """
    Domain service for customer onboarding and authentication.

    Orchestrates the registry, the repository, identifier generation,
    password hashing, lockout tracking and token issuance.
    """

    repository: CustomerRepository
    registry: IdentityRegistry
    password_hasher: PasswordHasher
    token_issuer: TokenIssuer
    lockout: LockoutTracker
    code_generator: AccountCodeGenerator

    def register(self, request: RegistrationRequest) -> RegistrationResult:
        """
        Register a new customer.

        Args:
            request: Submitted registration form

        Returns:
            Card tier, full name, account code, account type and card number

        Raises:
            RegistryUnavailable: Registry failed its health check
            IdentityMismatch: Registry rejected the identity
            DuplicateEmail, DuplicatePhone, DuplicateIdNumber: Already registered
            RegistrationConflict: Uniqueness constraint hit at write time
        """
        masked = mask_id_number(request.id_number)

        if not self.registry.is_healthy():
            logger.warning("Registration for %s aborted: registry unavailable", masked)
            raise RegistryUnavailable("Identity registry is unavailable. Please try again later.")

        outcome = self.registry.verify_identity(
            request.id_number, request.full_name, request.birth_date
        )
        if not outcome.valid:
            logger.info("Registration for %s rejected by registry: %s", masked, outcome.message)
            raise IdentityMismatch(f"Identity verification failed: {outcome.message}")

        email = self._normalize_email(request.email)
        if self.repository.exists_by_email(email):
            raise DuplicateEmail(f"Email {email} is already registered. Use another email.")

        if self.repository.exists_by_phone_number(request.phone_number):
            raise DuplicatePhone(
                f"Phone number {request.phone_number} is already registered. Use another number."
            )

        if self.repository.exists_by_id_number(request.id_number):
            raise DuplicateIdNumber(f"ID number {masked} has already been used for registration.")

        tier = CardTier.parse(request.card_tier)
        account_code = request.account_code
        if account_code is None:
            account_code = self.code_generator.generate_unique_account_code(tier)

        card_number = self.code_generator.generate_unique_card_number(tier)

        customer = self._assemble_customer(request, outcome.data, email, tier, account_code, card_number)
        saved = self.repository.save(customer)

        logger.info("Registered customer %s with %s card", masked, tier.value)
        return RegistrationResult(
            card_tier=saved.card_tier.value,
            full_name=saved.full_name,
            account_code=str(saved.account_code),
            account_type=saved.account_type,
            virtual_card_number=saved.virtual_card_number,
        )

    def authenticate(self, email: str, password: str) -> str:
        """
        Authenticate a customer and issue a bearer token.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            AccountLocked: Account is, or has just become, locked
        """
        customer = self.repository.find_by_email(self._normalize_email(email))

        if customer is None:
            # Keep the bcrypt cost on this path so timing does not reveal the email
            self.password_hasher.verify(password, None)
            raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

        if self.lockout.is_locked(customer):
            minutes = self.lockout.remaining_lockout_minutes(customer)
            raise AccountLocked(
                "Your account is locked after too many failed login attempts. "
                f"Try again in {minutes} minute(s).",
                minutes=minutes,
            )

        if self.password_hasher.verify(password, customer.password_hash):
            if customer.failed_login_attempts or customer.account_locked_until is not None:
                self.lockout.reset(customer.email)
            return self.token_issuer.issue(customer.email)

        attempt = self.lockout.record_failed_attempt(customer.email)
        failed = attempt.failed_login_attempts if attempt else customer.failed_login_attempts + 1

        if failed >= self.lockout.max_attempts:
            raise AccountLocked(
                "Too many failed login attempts. Your account has been locked for "
                f"{self.lockout.lockout_duration_minutes} minute(s).",
                minutes=self.lockout.lockout_duration_minutes,
            )

        remaining = self.lockout.remaining_attempts(failed)
        raise InvalidCredentials(
            f"{INVALID_CREDENTIALS_MESSAGE} Remaining attempts: {remaining}",
            remaining_attempts=remaining,
        )

    def check_id_exists(self, id_number: str) -> bool:
        """Ask the registry whether it knows the ID number (advisory only)."""
        return self.registry.id_number_exists(id_number)

    def validate_identity(
        self, id_number: str, full_name: str, birth_date: date
    ) -> VerificationOutcome:
        """Preview an identity verification without side effects."""
        return self.registry.verify_identity(id_number, full_name, birth_date)

    def stats(self) -> RegistrationStats:
        total = self.repository.count_customers()
        verified = self.repository.count_verified_customers()
        rate = verified / total * 100 if total > 0 else 0.0
        return RegistrationStats(
            total_customers=total,
            verified_customers=verified,
            verification_rate=rate,
            registry_available=self.registry.is_healthy(),
            registry_url=self.registry.base_url,
        )

    def get_customer_by_email(self, email: str) -> Customer | None:
        return self.repository.find_by_email(self._normalize_email(email))

    def get_customer_by_id_number(self, id_number: str) -> Customer | None:
        return self.repository.find_by_id_number(id_number)

    def get_customer_by_account_code(self, account_code: int) -> Customer | None:
        return self.repository.find_by_account_code(account_code)

    def is_email_available(self, email: str) -> bool:
        return not self.repository.exists_by_email(self._normalize_email(email))

    def is_phone_available(self, phone_number: str) -> bool:
        return not self.repository.exists_by_phone_number(phone_number)

    def verify_email(self, email: str) -> bool:
        """Mark the customer's email as verified. Returns False if unknown."""
        return self.repository.mark_email_verified(self._normalize_email(email))

    def check_password_strength(self, password: str) -> PasswordStrength:
        return check_password_strength(password)

    def issue_token_for(self, email: str) -> str:
        return self.token_issuer.issue(self._normalize_email(email))

    def validate_token(self, token: str) -> bool:
        return self.token_issuer.validate(token)

    def email_from_token(self, token: str) -> str | None:
        try:
            return self.token_issuer.subject_of(token)
        except InvalidToken:
            return None

    @staticmethod
    def validate_id_number_format(id_number: str | None) -> bool:
        """
        Structural check of a national ID number.

        16 digits, and the province, regency and district codes
        (digit pairs 1-2, 3-4, 5-6) must not be "00".
        """
        if id_number is None or len(id_number) != 16 or not id_number.isdigit():
            return False
        return all(id_number[i : i + 2] != "00" for i in (0, 2, 4))

    def _assemble_customer(
        self,
        request: RegistrationRequest,
        identity: IdentityRecord | None,
        email: str,
        tier: CardTier,
        account_code: int,
        card_number: str,
    ) -> Customer:
        """Build the aggregate, preferring registry identity fields when present."""
        if identity is not None:
            full_name = identity.full_name or request.full_name
            birth_place = identity.birth_place or request.birth_place
            birth_date = identity.birth_date or request.birth_date
            gender = identity.gender or request.gender
            religion = identity.religion or request.religion
        else:
            full_name = request.full_name
            birth_place = request.birth_place
            birth_date = request.birth_date
            gender = request.gender
            religion = request.religion

        return Customer(
            id_number=request.id_number,
            full_name=full_name,
            birth_place=birth_place,
            birth_date=birth_date,
            gender=gender,
            religion=religion,
            mother_maiden_name=request.mother_maiden_name,
            phone_number=request.phone_number,
            email=email,
            password_hash=self.password_hasher.hash(request.password),
            account_type=request.account_type,
            card_tier=tier,
            account_code=account_code,
            virtual_card_number=card_number,
            marital_status=request.marital_status,
            occupation=request.occupation,
            income_source=request.income_source,
            income_range=request.income_range,
            account_purpose=request.account_purpose,
            address=replace(request.address),
            guardian=self._complete_guardian(request.guardian),
        )

    def _complete_guardian(self, guardian: Guardian | None) -> Guardian | None:
        if guardian is None or not guardian.is_complete():
            return None
        return Guardian(
            guardian_type=guardian.guardian_type,
            full_name=guardian.full_name,
            occupation=guardian.occupation,
            address=guardian.address,
            phone_number=guardian.phone_number,
        )

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
