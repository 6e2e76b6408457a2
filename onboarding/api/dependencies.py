"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from onboarding.adapters.registry.http import HttpIdentityRegistryClient
from onboarding.adapters.repository.postgres import PostgresCustomerRepository
from onboarding.adapters.security import BcryptPasswordHasher, JwtTokenIssuer
from onboarding.config.settings import get_settings
from onboarding.domain.account_codes import AccountCodeGenerator
from onboarding.domain.lockout import LockoutTracker
from onboarding.domain.registration import RegistrationService


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_registry(request: Request) -> HttpIdentityRegistryClient:
    """Get the shared registry client created at startup."""
    return request.app.state.registry


def get_repository(request: Request) -> PostgresCustomerRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresCustomerRepository(pool)


@lru_cache
def get_password_hasher(cost: int) -> BcryptPasswordHasher:
    """Shared hasher per cost factor; building one computes its dummy hash."""
    return BcryptPasswordHasher(cost=cost)


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires the repository, registry client, password hasher, token issuer,
    lockout tracker and identifier generator into the domain service.
    """
    settings = get_settings()
    repository = get_repository(request)
    return RegistrationService(
        repository=repository,
        registry=get_registry(request),
        password_hasher=get_password_hasher(settings.bcrypt_cost),
        token_issuer=JwtTokenIssuer(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expiration_minutes=settings.jwt_expiration_minutes,
        ),
        lockout=LockoutTracker(
            repository=repository,
            max_attempts=settings.max_login_attempts,
            lockout_duration_minutes=settings.lockout_duration_minutes,
        ),
        code_generator=AccountCodeGenerator(oracle=repository),
    )


# Bearer token security scheme for OpenAPI documentation
http_bearer = HTTPBearer()


def get_current_email(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
    service: RegistrationService = Depends(get_registration_service),
) -> str:
    """
    Resolve the authenticated customer's email from the bearer token.

    FastAPI's HTTPBearer returns 401/403 for a missing or malformed
    Authorization header; an invalid or expired token is a 401 here.
    """
    email = service.email_from_token(credentials.credentials)
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return email
