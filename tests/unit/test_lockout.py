"""
Unit tests for LockoutTracker.

Tests verify counter increments, the lockout threshold, expiry handling
and reset, using the in-memory repository.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from onboarding.domain.lockout import LockoutTracker
from onboarding.domain.ports import FailedAttempt
from onboarding.domain.registration import RegistrationService
from tests.fakes import FixedClock, InMemoryCustomerRepository, make_request


@pytest.fixture
def registered(service: RegistrationService, repository: InMemoryCustomerRepository) -> str:
    """Register Jane and return her email."""
    service.register(make_request())
    return "jane@x.com"


@pytest.fixture
def tracker(repository: InMemoryCustomerRepository, clock: FixedClock) -> LockoutTracker:
    return LockoutTracker(repository=repository, max_attempts=5, lockout_duration_minutes=15, clock=clock)


class TestRecordFailedAttempt:
    """Tests for record_failed_attempt."""

    def test_increments_counter(self, tracker: LockoutTracker, registered: str) -> None:
        """Each failure increments the counter by one."""
        first = tracker.record_failed_attempt(registered)
        second = tracker.record_failed_attempt(registered)

        assert first.failed_login_attempts == 1
        assert second.failed_login_attempts == 2
        assert second.account_locked_until is None

    def test_locks_at_threshold(
        self, tracker: LockoutTracker, registered: str, clock: FixedClock
    ) -> None:
        """Reaching max attempts sets expiry to now + lockout duration."""
        for _ in range(4):
            tracker.record_failed_attempt(registered)

        attempt = tracker.record_failed_attempt(registered)

        assert attempt.failed_login_attempts == 5
        assert attempt.account_locked_until == clock.now + timedelta(minutes=15)

    def test_unknown_email_returns_none(self, tracker: LockoutTracker) -> None:
        """Unknown emails are not tracked."""
        assert tracker.record_failed_attempt("nobody@x.com") is None

    def test_passes_threshold_and_expiry_to_repository(self, clock: FixedClock) -> None:
        """The repository receives the configured max and the computed expiry."""
        repo = Mock()
        repo.record_failed_attempt.return_value = FailedAttempt(1, None)
        tracker = LockoutTracker(repository=repo, max_attempts=3, lockout_duration_minutes=30, clock=clock)

        tracker.record_failed_attempt("jane@x.com")

        email, max_attempts, locked_until = repo.record_failed_attempt.call_args[0]
        assert email == "jane@x.com"
        assert max_attempts == 3
        assert (locked_until - clock.now).total_seconds() == 30 * 60

    def test_logs_lockout(
        self, tracker: LockoutTracker, registered: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Locking an account is logged at WARNING."""
        for _ in range(5):
            tracker.record_failed_attempt(registered)

        assert "Account locked after 5 failed login attempts" in caplog.text


class TestIsLocked:
    """Tests for is_locked and remaining lockout time."""

    def test_not_locked_without_expiry(
        self, tracker: LockoutTracker, repository: InMemoryCustomerRepository, registered: str
    ) -> None:
        """No expiry means not locked."""
        customer = repository.find_by_email(registered)
        assert tracker.is_locked(customer) is False
        assert tracker.remaining_lockout_minutes(customer) == 0

    def test_locked_while_expiry_in_future(
        self,
        tracker: LockoutTracker,
        repository: InMemoryCustomerRepository,
        registered: str,
        clock: FixedClock,
    ) -> None:
        """Locked until the expiry passes, then unlocked."""
        for _ in range(5):
            tracker.record_failed_attempt(registered)
        customer = repository.find_by_email(registered)

        assert tracker.is_locked(customer) is True
        assert tracker.remaining_lockout_minutes(customer) == 15

        clock.advance(minutes=10, seconds=30)
        assert tracker.remaining_lockout_minutes(customer) == 5

        clock.advance(minutes=5)
        assert tracker.is_locked(customer) is False

    def test_remaining_attempts(self, tracker: LockoutTracker) -> None:
        """Remaining attempts count down to zero and never go negative."""
        assert tracker.remaining_attempts(1) == 4
        assert tracker.remaining_attempts(4) == 1
        assert tracker.remaining_attempts(7) == 0


class TestReset:
    """Tests for reset."""

    def test_reset_clears_counter_and_expiry(
        self, tracker: LockoutTracker, repository: InMemoryCustomerRepository, registered: str
    ) -> None:
        """Reset zeroes the counter and clears the lockout."""
        for _ in range(5):
            tracker.record_failed_attempt(registered)

        tracker.reset(registered)

        customer = repository.find_by_email(registered)
        assert customer.failed_login_attempts == 0
        assert customer.account_locked_until is None
