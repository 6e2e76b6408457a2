"""Repository adapters - Database implementations."""

from .postgres import PostgresCustomerRepository, run_migrations

__all__ = ["PostgresCustomerRepository", "run_migrations"]
