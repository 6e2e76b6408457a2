"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory repository and fake identity registry (see tests/fakes.py)
- A movable clock
- Fast bcrypt hasher and JWT issuer
- A fully wired RegistrationService
- PostgreSQL pool, repository and service for integration tests
"""

from collections.abc import Generator
from datetime import datetime, timezone

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from onboarding.adapters.repository.postgres import PostgresCustomerRepository, run_migrations
from onboarding.adapters.security import BcryptPasswordHasher, JwtTokenIssuer
from onboarding.config.settings import get_settings
from onboarding.domain.account_codes import AccountCodeGenerator
from onboarding.domain.lockout import LockoutTracker
from onboarding.domain.registration import RegistrationService
from tests.fakes import FakeIdentityRegistry, FixedClock, InMemoryCustomerRepository

TEST_JWT_SECRET = "test-secret-key-that-is-at-least-32-bytes-long"


@pytest.fixture
def repository() -> InMemoryCustomerRepository:
    return InMemoryCustomerRepository()


@pytest.fixture
def registry() -> FakeIdentityRegistry:
    return FakeIdentityRegistry()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def password_hasher() -> BcryptPasswordHasher:
    """bcrypt at its minimum cost to keep tests fast."""
    return BcryptPasswordHasher(cost=4)


@pytest.fixture
def token_issuer() -> JwtTokenIssuer:
    return JwtTokenIssuer(secret=TEST_JWT_SECRET, expiration_minutes=60)


@pytest.fixture
def service(
    repository: InMemoryCustomerRepository,
    registry: FakeIdentityRegistry,
    clock: FixedClock,
    password_hasher: BcryptPasswordHasher,
    token_issuer: JwtTokenIssuer,
) -> RegistrationService:
    """RegistrationService wired to in-memory collaborators (max 5 attempts, 15 minutes)."""
    return RegistrationService(
        repository=repository,
        registry=registry,
        password_hasher=password_hasher,
        token_issuer=token_issuer,
        lockout=LockoutTracker(
            repository=repository, max_attempts=5, lockout_duration_minutes=15, clock=clock
        ),
        code_generator=AccountCodeGenerator(oracle=repository, clock=clock),
    )


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """
    Connection pool against the configured PostgreSQL, with migrations applied.

    Tests that use it are skipped when the database is unreachable.
    """
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=2):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL unreachable: {e}")

    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=True)
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty the customers table (addresses and guardians cascade)."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM customers")
    yield


@pytest.fixture
def pg_repository(pool: ConnectionPool, clean_database: None) -> PostgresCustomerRepository:
    return PostgresCustomerRepository(pool)


@pytest.fixture
def pg_service(
    pg_repository: PostgresCustomerRepository,
    registry: FakeIdentityRegistry,
    clock: FixedClock,
    password_hasher: BcryptPasswordHasher,
    token_issuer: JwtTokenIssuer,
) -> RegistrationService:
    """RegistrationService wired to PostgreSQL and the fake registry."""
    return RegistrationService(
        repository=pg_repository,
        registry=registry,
        password_hasher=password_hasher,
        token_issuer=token_issuer,
        lockout=LockoutTracker(
            repository=pg_repository, max_attempts=5, lockout_duration_minutes=15, clock=clock
        ),
        code_generator=AccountCodeGenerator(oracle=pg_repository, clock=clock),
    )
