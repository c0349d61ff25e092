"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for race condition tests.
"""

import pytest
from psycopg_pool import ConnectionPool

from registrar.adapters.repository.postgres import PostgresPolicyProvider, PostgresRegistrationStore
from registrar.adapters.session.token import TokenSessionIssuer
from registrar.api.dependencies import utcnow
from registrar.domain.accounts import AccountService
from registrar.domain.models import SignupConfig
from registrar.domain.pending import PendingCompletionService


@pytest.fixture
def store(pool: ConnectionPool) -> PostgresRegistrationStore:
    """Create store instance for each test."""
    return PostgresRegistrationStore(pool)


@pytest.fixture
def accounts(pool: ConnectionPool) -> AccountService:
    return AccountService(policy_provider=PostgresPolicyProvider(pool), clock=utcnow, bcrypt_cost=4)


@pytest.fixture
def completion_service(
    store: PostgresRegistrationStore, accounts: AccountService
) -> PendingCompletionService:
    return PendingCompletionService(
        config=SignupConfig(instance_url="https://example.social"),
        store=store,
        accounts=accounts,
        sessions=TokenSessionIssuer(),
        clock=utcnow,
    )


@pytest.fixture(autouse=True)
def fresh_database(clean_database: None) -> None:
    """Start every adversarial test from empty tables."""
