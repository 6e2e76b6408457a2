"""
Domain models - Customer aggregate and registration value objects.

The customer aggregate owns exactly one Address and at most one Guardian.
Identity fields are fixed at registration; only the login-attempt
bookkeeping and the email-verified flag change afterwards.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

logger = logging.getLogger(__name__)


class CardTier(str, Enum):
    """
    Card/account product class.

    Each tier carries its fixed prefixes:

    | Tier      | Account prefix | Card prefix |
    |-----------|----------------|-------------|
    | Silver    | 10             | 4101        |
    | Gold      | 20             | 4102        |
    | Platinum  | 30             | 4103        |
    | Batik Air | 40             | 4104        |
    | GPN       | (card only)    | 4105        |

    GPN has no account prefix of its own and shares Silver's.
    """

    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"
    BATIK_AIR = "Batik Air"
    GPN = "GPN"

    @property
    def card_prefix(self) -> str:
        return _CARD_PREFIXES[self]

    @property
    def account_prefix(self) -> int:
        return _ACCOUNT_PREFIXES.get(self, _ACCOUNT_PREFIXES[CardTier.SILVER])

    @classmethod
    def _missing_(cls, value: object) -> "CardTier | None":
        # "Batik Air", "BatikAir" and "batik air" all name the same tier
        if isinstance(value, str):
            wanted = value.replace(" ", "").lower()
            for tier in cls:
                if tier.value.replace(" ", "").lower() == wanted:
                    return tier
        return None

    @classmethod
    def parse(cls, label: "str | CardTier | None") -> "CardTier":
        """
        Resolve a tier label, defaulting to Silver.

        A missing or blank label means Silver. An unrecognised label also
        falls back to Silver, with a warning.
        """
        if isinstance(label, CardTier):
            return label
        if label is None or not label.strip():
            return cls.SILVER

        try:
            return cls(label)
        except ValueError:
            logger.warning("Unknown card tier %r, defaulting to %s", label, cls.SILVER.value)
            return cls.SILVER


_CARD_PREFIXES = {
    CardTier.SILVER: "4101",
    CardTier.GOLD: "4102",
    CardTier.PLATINUM: "4103",
    CardTier.BATIK_AIR: "4104",
    CardTier.GPN: "4105",
}

_ACCOUNT_PREFIXES = {
    CardTier.SILVER: 10,
    CardTier.GOLD: 20,
    CardTier.PLATINUM: 30,
    CardTier.BATIK_AIR: 40,
}


@dataclass
class Address:
    """Residential address owned by a customer."""

    street: str
    province: str
    city: str
    district: str
    subdistrict: str
    postal_code: str


@dataclass
class Guardian:
    """Guardian (next of kin) record owned by a customer."""

    guardian_type: str
    full_name: str
    occupation: str
    address: str
    phone_number: str

    def is_complete(self) -> bool:
        """True when every field holds a non-blank value."""
        return all(
            value is not None and str(value).strip()
            for value in (
                self.guardian_type,
                self.full_name,
                self.occupation,
                self.address,
                self.phone_number,
            )
        )


@dataclass
class Customer:
    """Customer aggregate persisted after a successful registration."""

    id_number: str
    full_name: str
    birth_place: str | None
    birth_date: date
    gender: str | None
    religion: str | None
    mother_maiden_name: str | None
    phone_number: str
    email: str
    password_hash: str
    account_type: str
    card_tier: CardTier
    account_code: int
    virtual_card_number: str
    marital_status: str | None
    occupation: str | None
    income_source: str | None
    income_range: str | None
    account_purpose: str | None
    address: Address
    guardian: Guardian | None = None
    email_verified: bool = False
    failed_login_attempts: int = 0
    account_locked_until: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None


@dataclass
class RegistrationRequest:
    """Registration form data as submitted by the customer."""

    id_number: str
    full_name: str
    birth_date: date
    email: str
    phone_number: str
    password: str
    account_type: str
    address: Address
    birth_place: str | None = None
    gender: str | None = None
    religion: str | None = None
    mother_maiden_name: str | None = None
    marital_status: str | None = None
    occupation: str | None = None
    income_source: str | None = None
    income_range: str | None = None
    account_purpose: str | None = None
    card_tier: str | CardTier | None = None
    account_code: int | None = None
    guardian: Guardian | None = None


@dataclass(frozen=True)
class RegistrationResult:
    """Projection returned to the caller after registration."""

    card_tier: str
    full_name: str
    account_code: str
    account_type: str
    virtual_card_number: str


@dataclass(frozen=True)
class RegistrationStats:
    """Registration statistics for the reporting surface."""

    total_customers: int
    verified_customers: int
    verification_rate: float
    registry_available: bool
    registry_url: str


@dataclass(frozen=True)
class IdentityRecord:
    """Structured identity-card payload returned by the registry."""

    full_name: str | None = None
    birth_place: str | None = None
    birth_date: date | None = None
    gender: str | None = None
    religion: str | None = None
    extra: dict = field(default_factory=dict)


def mask_id_number(id_number: str | None) -> str:
    """Keep the first four digits of an ID number for log lines."""
    if not id_number:
        return "null"
    return f"{id_number[:4]}****"
