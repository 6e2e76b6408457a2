"""
API v1 routes.

Defines REST endpoints for the customer onboarding API.

Handlers are plain `def` functions: the domain service performs blocking
database and registry calls, so FastAPI runs each request on its
threadpool.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from onboarding.api.dependencies import get_current_email, get_registration_service
from onboarding.api.models import (
    AvailabilityResponse,
    CustomerProfileResponse,
    EmailAvailabilityRequest,
    ErrorResponse,
    IdentityCheckRequest,
    IdentityCheckResponse,
    IdNumberRequest,
    IdNumberResponse,
    LoginRequest,
    PasswordStrengthRequest,
    PasswordStrengthResponse,
    PhoneAvailabilityRequest,
    RegisterRequest,
    RegisterResponse,
    StatsResponse,
    TokenResponse,
)
from onboarding.domain.exceptions import (
    AccountLocked,
    DuplicateEmail,
    DuplicateIdNumber,
    DuplicatePhone,
    IdentityMismatch,
    InvalidCredentials,
    RegistrationConflict,
    RegistryUnavailable,
)
from onboarding.domain.registration import RegistrationService

router = APIRouter(tags=["v1"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email, phone or ID number already registered"},
        422: {"model": ErrorResponse, "description": "Identity verification failed or validation error"},
        503: {"model": ErrorResponse, "description": "Identity registry unavailable"},
    },
    summary="Register a new customer",
    description="Verify the identity with the national registry, then open an account "
    "and issue an account code and virtual debit card number.",
)
def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    """
    Register a new customer.

    Returns card tier, full name, account code, account type and virtual card number.
    """
    try:
        result = service.register(request_data.to_domain())
    except RegistryUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from None
    except IdentityMismatch as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    except (DuplicateEmail, DuplicatePhone, DuplicateIdNumber, RegistrationConflict) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from None

    return RegisterResponse(
        card_tier=result.card_tier,
        full_name=result.full_name,
        account_code=result.account_code,
        account_type=result.account_type,
        virtual_card_number=result.virtual_card_number,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        423: {"model": ErrorResponse, "description": "Account locked"},
    },
    summary="Log in and obtain a bearer token",
)
def login(
    request_data: LoginRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> TokenResponse:
    try:
        token = service.authenticate(request_data.email, request_data.password)
    except AccountLocked as e:
        raise HTTPException(status_code=status.HTTP_423_LOCKED, detail=str(e)) from None
    except InvalidCredentials as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    return TokenResponse(token=token)


@router.get(
    "/me",
    response_model=CustomerProfileResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid or expired token"}},
    summary="Profile of the authenticated customer",
)
def me(
    email: str = Depends(get_current_email),
    service: RegistrationService = Depends(get_registration_service),
) -> CustomerProfileResponse:
    customer = service.get_customer_by_email(email)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    return CustomerProfileResponse(
        full_name=customer.full_name,
        email=customer.email,
        phone_number=customer.phone_number,
        card_tier=customer.card_tier.value,
        account_code=str(customer.account_code),
        account_type=customer.account_type,
        virtual_card_number=customer.virtual_card_number,
        email_verified=customer.email_verified,
    )


@router.post(
    "/verification/id-number",
    response_model=IdentityCheckResponse,
    summary="Preview identity verification",
    description="Check ID number, full name and birth date against the registry. Nothing is stored.",
)
def verify_id_number(
    request_data: IdentityCheckRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> IdentityCheckResponse:
    outcome = service.validate_identity(
        request_data.id_number, request_data.full_name, request_data.birth_date
    )

    data = {}
    if outcome.data is not None:
        identity = outcome.data
        data = {
            **identity.extra,
            "full_name": identity.full_name,
            "birth_place": identity.birth_place,
            "birth_date": identity.birth_date.isoformat() if identity.birth_date else None,
            "gender": identity.gender,
            "religion": identity.religion,
        }
    return IdentityCheckResponse(valid=outcome.valid, message=outcome.message, data=data)


@router.post(
    "/verification/id-number/check",
    response_model=IdNumberResponse,
    responses={400: {"model": ErrorResponse, "description": "ID number is not 16 characters"}},
    summary="Check whether the registry knows an ID number",
)
def check_id_number(
    request_data: IdNumberRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> IdNumberResponse:
    if len(request_data.id_number) != 16:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="ID number must be 16 digits"
        )

    registered = service.check_id_exists(request_data.id_number)
    message = (
        "ID number is registered with the identity registry"
        if registered
        else "ID number is not registered with the identity registry"
    )
    return IdNumberResponse(registered=registered, message=message)


@router.post(
    "/verification/email",
    response_model=AvailabilityResponse,
    summary="Check whether an email can still be registered",
)
def check_email(
    request_data: EmailAvailabilityRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> AvailabilityResponse:
    available = service.is_email_available(request_data.email)
    message = "Email is available" if available else "Email is already registered"
    return AvailabilityResponse(available=available, message=message)


@router.post(
    "/verification/phone",
    response_model=AvailabilityResponse,
    summary="Check whether a phone number can still be registered",
)
def check_phone(
    request_data: PhoneAvailabilityRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> AvailabilityResponse:
    available = service.is_phone_available(request_data.phone_number)
    message = "Phone number is available" if available else "Phone number is already registered"
    return AvailabilityResponse(available=available, message=message)


@router.get(
    "/verification/stats",
    response_model=StatsResponse,
    summary="Registration statistics",
)
def stats(service: RegistrationService = Depends(get_registration_service)) -> StatsResponse:
    result = service.stats()
    return StatsResponse(
        total_customers=result.total_customers,
        verified_customers=result.verified_customers,
        verification_rate=result.verification_rate,
        registry_available=result.registry_available,
        registry_url=result.registry_url,
    )


@router.post(
    "/password-strength",
    response_model=PasswordStrengthResponse,
    summary="Classify a candidate password as weak, medium or strong",
)
def password_strength(
    request_data: PasswordStrengthRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> PasswordStrengthResponse:
    return PasswordStrengthResponse(
        strength=service.check_password_strength(request_data.password).value
    )


@router.post(
    "/me/email-verification",
    response_model=CustomerProfileResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid or expired token"}},
    summary="Mark the authenticated customer's email as verified",
)
def verify_email(
    email: str = Depends(get_current_email),
    service: RegistrationService = Depends(get_registration_service),
) -> CustomerProfileResponse:
    if not service.verify_email(email):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return me(email=email, service=service)
