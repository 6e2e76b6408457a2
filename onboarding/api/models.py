"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, EmailStr, Field

from onboarding.domain.account_codes import MAX_INT32
from onboarding.domain.models import (
    Address,
    CardTier,
    Guardian,
    RegistrationRequest,
)

ID_NUMBER_PATTERN = r"^\d{16}$"


class AddressIn(BaseModel):
    """Residential address (required)."""

    street: str = Field(..., min_length=1)
    province: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    subdistrict: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1, max_length=16)


class GuardianIn(BaseModel):
    """Guardian data. Only stored when every field is filled in."""

    guardian_type: str | None = None
    full_name: str | None = None
    occupation: str | None = None
    address: str | None = None
    phone_number: str | None = None


class RegisterRequest(BaseModel):
    """Request model for customer registration."""

    id_number: str = Field(..., pattern=ID_NUMBER_PATTERN, description="16-digit national ID number")
    full_name: str = Field(..., min_length=1)
    birth_date: date
    birth_place: str | None = None
    gender: str | None = None
    religion: str | None = None
    mother_maiden_name: str | None = None
    email: EmailStr
    phone_number: str = Field(..., min_length=8, max_length=20, pattern=r"^\+?\d+$")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    account_type: str = Field(..., min_length=1)
    marital_status: str | None = None
    occupation: str | None = None
    income_source: str | None = None
    income_range: str | None = None
    account_purpose: str | None = None
    card_tier: CardTier | None = Field(None, description="Defaults to Silver")
    account_code: int | None = Field(None, gt=0, le=MAX_INT32)
    address: AddressIn
    guardian: GuardianIn | None = None

    def to_domain(self) -> RegistrationRequest:
        guardian = None
        if self.guardian is not None:
            guardian = Guardian(
                guardian_type=self.guardian.guardian_type,
                full_name=self.guardian.full_name,
                occupation=self.guardian.occupation,
                address=self.guardian.address,
                phone_number=self.guardian.phone_number,
            )

        return RegistrationRequest(
            id_number=self.id_number,
            full_name=self.full_name,
            birth_date=self.birth_date,
            birth_place=self.birth_place,
            gender=self.gender,
            religion=self.religion,
            mother_maiden_name=self.mother_maiden_name,
            email=self.email,
            phone_number=self.phone_number,
            password=self.password,
            account_type=self.account_type,
            marital_status=self.marital_status,
            occupation=self.occupation,
            income_source=self.income_source,
            income_range=self.income_range,
            account_purpose=self.account_purpose,
            card_tier=self.card_tier,
            account_code=self.account_code,
            address=Address(**self.address.model_dump()),
            guardian=guardian,
        )


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    card_tier: str
    full_name: str
    account_code: str
    account_type: str
    virtual_card_number: str


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Response model for successful login."""

    token: str
    token_type: str = "bearer"


class IdentityCheckRequest(BaseModel):
    """Request model for identity preview against the registry."""

    id_number: str = Field(..., pattern=ID_NUMBER_PATTERN)
    full_name: str = Field(..., min_length=1)
    birth_date: date


class IdentityCheckResponse(BaseModel):
    valid: bool
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


class IdNumberRequest(BaseModel):
    id_number: str


class IdNumberResponse(BaseModel):
    registered: bool
    message: str


class EmailAvailabilityRequest(BaseModel):
    email: EmailStr


class PhoneAvailabilityRequest(BaseModel):
    phone_number: str = Field(..., min_length=8, max_length=20, pattern=r"^\+?\d+$")


class AvailabilityResponse(BaseModel):
    available: bool
    message: str


class PasswordStrengthRequest(BaseModel):
    password: str


class PasswordStrengthResponse(BaseModel):
    strength: str


class StatsResponse(BaseModel):
    total_customers: int
    verified_customers: int
    verification_rate: float
    registry_available: bool
    registry_url: str


class CustomerProfileResponse(BaseModel):
    """Profile projection for the authenticated customer."""

    full_name: str
    email: str
    phone_number: str
    card_tier: str
    account_code: str
    account_type: str
    virtual_card_number: str
    email_verified: bool


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
