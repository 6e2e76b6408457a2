"""
Login lockout tracking.

Consecutive failed logins are counted per customer. When the counter
reaches `max_attempts` the account is locked until now + lockout duration.
A successful login resets both the counter and the expiry.

The failed-attempt update is committed by the repository on its own
connection, so it stays durable even if the surrounding login operation
later fails.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .models import Customer
from .ports import CustomerRepository, FailedAttempt

logger = logging.getLogger(__name__)


@dataclass
class LockoutTracker:
    """Maintains failed-login counters and lockout expiry."""

    repository: CustomerRepository
    max_attempts: int = 5
    lockout_duration_minutes: int = 15
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))

    def record_failed_attempt(self, email: str) -> FailedAttempt | None:
        """
        Increment the failed-attempt counter for the customer.

        Returns:
            Updated counters, or None if the email is unknown
        """
        locked_until = self.clock() + timedelta(minutes=self.lockout_duration_minutes)
        attempt = self.repository.record_failed_attempt(email, self.max_attempts, locked_until)

        if attempt is not None and attempt.failed_login_attempts >= self.max_attempts:
            logger.warning(
                "Account locked after %d failed login attempts until %s",
                attempt.failed_login_attempts,
                attempt.account_locked_until,
            )
        return attempt

    def is_locked(self, customer: Customer) -> bool:
        """True iff a lockout expiry is set and still in the future."""
        locked_until = customer.account_locked_until
        return locked_until is not None and locked_until > self.clock()

    def remaining_lockout_minutes(self, customer: Customer) -> int:
        """Whole minutes left on the lockout, rounded up (0 when not locked)."""
        if not self.is_locked(customer):
            return 0
        remaining = customer.account_locked_until - self.clock()
        return max(1, math.ceil(remaining.total_seconds() / 60))

    def remaining_attempts(self, failed_login_attempts: int) -> int:
        return max(0, self.max_attempts - failed_login_attempts)

    def reset(self, email: str) -> None:
        """Clear counters after a successful login."""
        self.repository.reset_failed_attempts(email)
