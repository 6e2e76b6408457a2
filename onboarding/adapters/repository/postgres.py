"""
PostgreSQL repository adapter - Implements CustomerRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Transaction boundaries:
----------------------
Every method checks out its own pooled connection and commits before
returning, so each call is its own unit of work:

1. **save()**: customer, address and guardian rows are inserted inside a
   single `conn.transaction()`. A unique-constraint violation rolls the
   whole aggregate back and is raised as RegistrationConflict.

2. **record_failed_attempt()**: a single atomic UPDATE ... RETURNING on a
   separate connection, committed immediately. The increment and the
   lockout decision happen in one statement, so concurrent failed logins
   cannot lose updates, and the result stays durable even if the caller's
   surrounding work fails afterwards.

Uniqueness constraints (see migrations/001_create_customers.sql) are the
final arbiter for email (lower-cased), phone number, ID number, account
code and card number.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from onboarding.domain.exceptions import RegistrationConflict
from onboarding.domain.models import Address, CardTier, Customer, Guardian
from onboarding.domain.ports import FailedAttempt

logger = logging.getLogger(__name__)

_CONSTRAINT_MESSAGES = {
    "customers_email_lower_key": "Email is already registered.",
    "customers_phone_number_key": "Phone number is already registered.",
    "customers_id_number_key": "ID number has already been used for registration.",
    "customers_account_code_key": "Account code is already in use.",
    "customers_virtual_card_number_key": "Virtual card number is already in use.",
}

_SELECT_CUSTOMER = """
    SELECT c.id, c.id_number, c.full_name, c.birth_place, c.birth_date, c.gender,
           c.religion, c.mother_maiden_name, c.phone_number, c.email, c.password_hash,
           c.account_type, c.card_tier, c.account_code, c.virtual_card_number,
           c.marital_status, c.occupation, c.income_source, c.income_range,
           c.account_purpose, c.email_verified, c.failed_login_attempts,
           c.account_locked_until, c.created_at,
           a.street, a.province, a.city, a.district, a.subdistrict, a.postal_code,
           g.guardian_type, g.full_name AS guardian_full_name,
           g.occupation AS guardian_occupation, g.address AS guardian_address,
           g.phone_number AS guardian_phone_number
    FROM customers c
    JOIN addresses a ON a.customer_id = c.id
    LEFT JOIN guardians g ON g.customer_id = c.id
"""


class PostgresCustomerRepository:
    """
    Implements CustomerRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def exists_by_email(self, email: str) -> bool:
        return self._exists("SELECT 1 FROM customers WHERE lower(email) = lower(%s)", email)

    def exists_by_phone_number(self, phone_number: str) -> bool:
        return self._exists("SELECT 1 FROM customers WHERE phone_number = %s", phone_number)

    def exists_by_id_number(self, id_number: str) -> bool:
        return self._exists("SELECT 1 FROM customers WHERE id_number = %s", id_number)

    def exists_by_account_code(self, account_code: int) -> bool:
        return self._exists("SELECT 1 FROM customers WHERE account_code = %s", account_code)

    def exists_by_card_number(self, card_number: str) -> bool:
        return self._exists(
            "SELECT 1 FROM customers WHERE virtual_card_number = %s", card_number
        )

    def find_by_email(self, email: str) -> Customer | None:
        return self._find_one("WHERE lower(c.email) = lower(%s)", email)

    def find_by_id_number(self, id_number: str) -> Customer | None:
        return self._find_one("WHERE c.id_number = %s", id_number)

    def find_by_account_code(self, account_code: int) -> Customer | None:
        return self._find_one("WHERE c.account_code = %s", account_code)

    def save(self, customer: Customer) -> Customer:
        """
        Insert the customer aggregate in a single transaction.

        Raises:
            RegistrationConflict: If any uniqueness constraint rejects the write
        """
        customer_sql = """
            INSERT INTO customers (
                id_number, full_name, birth_place, birth_date, gender, religion,
                mother_maiden_name, phone_number, email, password_hash, account_type,
                card_tier, account_code, virtual_card_number, marital_status,
                occupation, income_source, income_range, account_purpose,
                email_verified, failed_login_attempts, account_locked_until
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                    %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at
        """

        address_sql = """
            INSERT INTO addresses (customer_id, street, province, city, district, subdistrict, postal_code)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """

        guardian_sql = """
            INSERT INTO guardians (customer_id, guardian_type, full_name, occupation, address, phone_number)
            VALUES (%s, %s, %s, %s, %s, %s)
        """

        try:
            with self._pool.connection() as conn, conn.transaction(), conn.cursor() as cursor:
                cursor.execute(
                    customer_sql,
                    (
                        customer.id_number,
                        customer.full_name,
                        customer.birth_place,
                        customer.birth_date,
                        customer.gender,
                        customer.religion,
                        customer.mother_maiden_name,
                        customer.phone_number,
                        customer.email,
                        customer.password_hash,
                        customer.account_type,
                        customer.card_tier.value,
                        customer.account_code,
                        customer.virtual_card_number,
                        customer.marital_status,
                        customer.occupation,
                        customer.income_source,
                        customer.income_range,
                        customer.account_purpose,
                        customer.email_verified,
                        customer.failed_login_attempts,
                        customer.account_locked_until,
                    ),
                )
                customer_id, created_at = cursor.fetchone()

                address = customer.address
                cursor.execute(
                    address_sql,
                    (
                        customer_id,
                        address.street,
                        address.province,
                        address.city,
                        address.district,
                        address.subdistrict,
                        address.postal_code,
                    ),
                )

                guardian = customer.guardian
                if guardian is not None:
                    cursor.execute(
                        guardian_sql,
                        (
                            customer_id,
                            guardian.guardian_type,
                            guardian.full_name,
                            guardian.occupation,
                            guardian.address,
                            guardian.phone_number,
                        ),
                    )
        except psycopg.errors.UniqueViolation as e:
            constraint = e.diag.constraint_name
            logger.warning("Registration write rejected by constraint %s", constraint)
            message = _CONSTRAINT_MESSAGES.get(constraint, "Customer data is already registered.")
            raise RegistrationConflict(message) from e

        customer.id = customer_id
        customer.created_at = created_at
        return customer

    def record_failed_attempt(
        self, email: str, max_attempts: int, locked_until: datetime
    ) -> FailedAttempt | None:
        """
        Atomically increment the failed-login counter and lock at the threshold.

        Committed on its own connection, independent of any caller transaction.
        """
        sql = """
            UPDATE customers
            SET failed_login_attempts = failed_login_attempts + 1,
                account_locked_until = CASE
                    WHEN failed_login_attempts + 1 >= %s THEN %s
                    ELSE account_locked_until
                END
            WHERE lower(email) = lower(%s)
            RETURNING failed_login_attempts, account_locked_until
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (max_attempts, locked_until, email))
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            return None
        return FailedAttempt(failed_login_attempts=row[0], account_locked_until=row[1])

    def reset_failed_attempts(self, email: str) -> None:
        sql = """
            UPDATE customers
            SET failed_login_attempts = 0, account_locked_until = NULL
            WHERE lower(email) = lower(%s)
        """

        with self._pool.connection() as conn:
            conn.execute(sql, (email,))
            conn.commit()

    def mark_email_verified(self, email: str) -> bool:
        sql = "UPDATE customers SET email_verified = TRUE WHERE lower(email) = lower(%s)"

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            conn.commit()
            return cursor.rowcount == 1

    def count_customers(self) -> int:
        return self._count("SELECT COUNT(*) FROM customers")

    def count_verified_customers(self) -> int:
        return self._count("SELECT COUNT(*) FROM customers WHERE email_verified")

    def _exists(self, sql: str, value: Any) -> bool:
        with self._pool.connection() as conn:
            return conn.execute(sql, (value,)).fetchone() is not None

    def _count(self, sql: str) -> int:
        with self._pool.connection() as conn:
            return conn.execute(sql).fetchone()[0]

    def _find_one(self, where: str, value: Any) -> Customer | None:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(f"{_SELECT_CUSTOMER} {where}", (value,))
            row = cursor.fetchone()

        return _customer_from_row(row) if row is not None else None


def _customer_from_row(row: dict[str, Any]) -> Customer:
    guardian = None
    if row["guardian_type"] is not None:
        guardian = Guardian(
            guardian_type=row["guardian_type"],
            full_name=row["guardian_full_name"],
            occupation=row["guardian_occupation"],
            address=row["guardian_address"],
            phone_number=row["guardian_phone_number"],
        )

    return Customer(
        id=row["id"],
        id_number=row["id_number"],
        full_name=row["full_name"],
        birth_place=row["birth_place"],
        birth_date=row["birth_date"],
        gender=row["gender"],
        religion=row["religion"],
        mother_maiden_name=row["mother_maiden_name"],
        phone_number=row["phone_number"],
        email=row["email"],
        password_hash=row["password_hash"],
        account_type=row["account_type"],
        card_tier=CardTier(row["card_tier"]),
        account_code=row["account_code"],
        virtual_card_number=row["virtual_card_number"],
        marital_status=row["marital_status"],
        occupation=row["occupation"],
        income_source=row["income_source"],
        income_range=row["income_range"],
        account_purpose=row["account_purpose"],
        address=Address(
            street=row["street"],
            province=row["province"],
            city=row["city"],
            district=row["district"],
            subdistrict=row["subdistrict"],
            postal_code=row["postal_code"],
        ),
        guardian=guardian,
        email_verified=row["email_verified"],
        failed_login_attempts=row["failed_login_attempts"],
        account_locked_until=row["account_locked_until"],
        created_at=row["created_at"],
    )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: onboarding/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
