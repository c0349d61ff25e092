"""
Shared fixtures for integration tests.

Requires PostgreSQL to be running (DATABASE_URL); tests are skipped when
no database is reachable.
"""

import pytest
from psycopg_pool import ConnectionPool

from registrar.adapters.repository.postgres import PostgresRegistrationStore


@pytest.fixture
def store(pool: ConnectionPool) -> PostgresRegistrationStore:
    """Create store instance for each test."""
    return PostgresRegistrationStore(pool)


@pytest.fixture(autouse=True)
def fresh_database(clean_database: None) -> None:
    """Start every integration test from empty tables."""
