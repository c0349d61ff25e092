"""Repository adapters - Database implementations."""

from .postgres import PostgresPolicyProvider, PostgresRegistrationStore, run_migrations

__all__ = ["PostgresPolicyProvider", "PostgresRegistrationStore", "run_migrations"]
