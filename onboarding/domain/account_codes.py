"""
Account code and virtual card number generation.

Both identifiers are derived from the card tier prefix table on
CardTier and drawn from the `secrets` CSPRNG, which is safe to call
from concurrent request workers.

Account code layout (10 digits before reduction):

    [tier prefix: 2][YYMM: 4][random 1000-9999: 4]

The composite is reduced modulo 2**31 - 1 so it fits a signed 32-bit
column. Silver and Gold codes are below the bound and keep their prefix;
Platinum and Batik Air composites exceed it and are reduced.

Card number layout (16 digits, printed in groups of four):

    [tier card prefix: 4][random: 12]

Uniqueness is checked against the repository with a bounded number of
retries. The storage layer's unique constraints remain the final arbiter.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from .models import CardTier

logger = logging.getLogger(__name__)

MAX_INT32 = 2**31 - 1
MAX_COLLISION_RETRIES = 5
CARD_NUMBER_LENGTH = 16


class UniquenessOracle(Protocol):
    """Subset of the customer repository used for collision checks."""

    def exists_by_account_code(self, account_code: int) -> bool: ...

    def exists_by_card_number(self, card_number: str) -> bool: ...


def format_card_number(digits: str) -> str:
    """
    Format 16 digits as "dddd dddd dddd dddd".

    Raises:
        ValueError: If the input is not exactly 16 digits
    """
    if len(digits) != CARD_NUMBER_LENGTH or not digits.isdigit():
        raise ValueError(f"Card number must be {CARD_NUMBER_LENGTH} digits, got {len(digits)}")
    return " ".join(digits[i : i + 4] for i in range(0, CARD_NUMBER_LENGTH, 4))


@dataclass
class AccountCodeGenerator:
    """Generates tier-scoped account codes and virtual card numbers."""

    oracle: UniquenessOracle
    clock: Callable[[], datetime] = field(default=datetime.now)

    def generate_card_number(self, tier: CardTier | str | None) -> str:
        """Generate a formatted card number for the tier (no uniqueness check)."""
        tier = CardTier.parse(tier)
        random_part = secrets.randbelow(10**12)
        return format_card_number(f"{tier.card_prefix}{random_part:012d}")

    def generate_unique_card_number(self, tier: CardTier | str | None) -> str:
        """
        Generate a card number not yet present in the repository.

        Retries up to MAX_COLLISION_RETRIES times. If every candidate
        collides the last one is returned and the write-time constraint
        decides.
        """
        card_number = self.generate_card_number(tier)

        attempts = 0
        while self.oracle.exists_by_card_number(card_number) and attempts < MAX_COLLISION_RETRIES:
            card_number = self.generate_card_number(tier)
            attempts += 1

        if attempts:
            logger.info("Card number collided %d time(s) before resolving", attempts)
        return card_number

    def generate_account_code(self, tier: CardTier | str | None) -> int:
        """Generate an account code for the tier (no uniqueness check)."""
        tier = CardTier.parse(tier)
        now = self.clock()
        year_month = (now.year % 100) * 100 + now.month
        suffix = 1000 + secrets.randbelow(9000)

        composite = tier.account_prefix * 100_000_000 + year_month * 10_000 + suffix
        return composite % MAX_INT32

    def generate_unique_account_code(self, tier: CardTier | str | None) -> int:
        """
        Generate an account code not yet present in the repository.

        After MAX_COLLISION_RETRIES collisions, falls back to the simple
        scheme `prefix * 1_000_000 + <6 random digits>` without checking
        again.
        """
        tier = CardTier.parse(tier)
        account_code = self.generate_account_code(tier)

        attempts = 0
        while self.oracle.exists_by_account_code(account_code) and attempts < MAX_COLLISION_RETRIES:
            account_code = self.generate_account_code(tier)
            attempts += 1

        if self.oracle.exists_by_account_code(account_code):
            logger.warning(
                "Account code still colliding after %d retries, using fallback scheme",
                MAX_COLLISION_RETRIES,
            )
            account_code = self.simple_account_code(tier)

        return account_code

    def simple_account_code(self, tier: CardTier | str | None) -> int:
        """Fallback scheme: tier prefix followed by six random digits."""
        tier = CardTier.parse(tier)
        return tier.account_prefix * 1_000_000 + 100_000 + secrets.randbelow(900_000)
