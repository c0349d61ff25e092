"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory RegistrationStore with transaction rollback
- A controllable clock
- A mutable instance policy provider
- Ready-wired signup and pending completion services
- A PostgreSQL pool and seeding helpers for integration tests
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from registrar.adapters.repository.postgres import run_migrations
from registrar.config.settings import get_settings
from registrar.domain.accounts import AccountService
from registrar.domain.exceptions import DuplicatedUsername
from registrar.domain.models import (
    Account,
    AccountProfile,
    EmailValidation,
    InstancePolicy,
    PendingRegistration,
    RegistrationTicket,
    SessionResult,
    SignupConfig,
)
from registrar.domain.pending import PendingCompletionService
from registrar.domain.signup import SignupService

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakePolicyProvider:
    """Policy provider whose snapshot tests can swap between calls."""

    def __init__(self, policy: InstancePolicy | None = None) -> None:
        self.policy = policy or InstancePolicy()
        self.fetch_count = 0

    def fetch(self) -> InstancePolicy:
        self.fetch_count += 1
        return self.policy


class InMemoryRegistrationStore:
    """
    RegistrationStore fake mirroring the PostgreSQL adapter's semantics.

    transaction() snapshots all tables and restores them if the block raises.
    write_count counts mutating calls so tests can assert nothing was written.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.password_hashes: dict[str, str] = {}
        self.profiles: dict[str, AccountProfile] = {}
        self.used_usernames: set[str] = set()
        self.pendings: dict[str, PendingRegistration] = {}
        self.tickets: dict[str, RegistrationTicket] = {}
        self.write_count = 0
        self.fail_finalize_ticket = False

    def _snapshot(self) -> tuple:
        return (
            dict(self.accounts),
            dict(self.password_hashes),
            dict(self.profiles),
            set(self.used_usernames),
            dict(self.pendings),
            dict(self.tickets),
        )

    @contextmanager
    def transaction(self) -> Iterator["InMemoryRegistrationStore"]:
        snapshot = self._snapshot()
        try:
            yield self
        except BaseException:
            (
                self.accounts,
                self.password_hashes,
                self.profiles,
                self.used_usernames,
                self.pendings,
                self.tickets,
            ) = snapshot
            raise

    # Seeding helpers

    def add_account(self, username: str, host: str | None = None) -> Account:
        account = Account(
            id=f"user-{username.lower()}-{host or 'local'}",
            username=username,
            username_lower=username.lower(),
            host=host,
            created_at=START,
            token="existingtoken000",
        )
        self.accounts[account.id] = account
        return account

    def add_ticket(self, code: str = "INVITE", **fields) -> RegistrationTicket:
        ticket = RegistrationTicket(id=f"ticket-{code}", code=code, **fields)
        self.tickets[ticket.id] = ticket
        return ticket

    def ticket(self, code: str = "INVITE") -> RegistrationTicket:
        return self.tickets[f"ticket-{code}"]

    # RegistrationStore protocol

    def local_username_exists(self, username_lower: str) -> bool:
        return any(
            a.username_lower == username_lower and a.host is None for a in self.accounts.values()
        )

    def username_was_used(self, username_lower: str) -> bool:
        return username_lower in self.used_usernames

    def email_in_use(self, email: str) -> bool:
        return any(p.email == email and p.email_verified for p in self.profiles.values())

    def insert_account(self, account: Account, password_hash: str) -> None:
        self.write_count += 1
        for existing in self.accounts.values():
            if existing.username_lower == account.username_lower and existing.host == account.host:
                raise DuplicatedUsername()
        self.accounts[account.id] = account
        self.password_hashes[account.id] = password_hash
        self.profiles[account.id] = AccountProfile(user_id=account.id)

    def verify_profile_email(self, user_id: str, email: str) -> None:
        self.write_count += 1
        self.profiles[user_id] = replace(
            self.profiles[user_id], email=email, email_verified=True, email_verify_code=None
        )

    def insert_pending(self, pending: PendingRegistration) -> None:
        self.write_count += 1
        self.pendings[pending.id] = pending

    def find_pending_by_code(self, code: str, *, lock: bool = False) -> PendingRegistration | None:
        return next((p for p in self.pendings.values() if p.code == code), None)

    def delete_pending(self, pending_id: str) -> None:
        self.write_count += 1
        self.pendings.pop(pending_id, None)

    def find_ticket_by_code(self, code: str) -> RegistrationTicket | None:
        return next((t for t in self.tickets.values() if t.code == code), None)

    def allocate_ticket(
        self, ticket_id: str, pending_id: str, now: datetime, lease_cutoff: datetime
    ) -> bool:
        self.write_count += 1
        ticket = self.tickets[ticket_id]
        if ticket.used_by_id is not None or ticket.is_expired(now):
            return False
        if ticket.used_at is not None and ticket.used_at > lease_cutoff:
            return False
        self.tickets[ticket_id] = replace(ticket, used_at=now, pending_user_id=pending_id)
        return True

    def consume_ticket(self, ticket_id: str, account_id: str, now: datetime) -> bool:
        self.write_count += 1
        ticket = self.tickets[ticket_id]
        if ticket.used_by_id is not None or ticket.used_at is not None or ticket.is_expired(now):
            return False
        self.tickets[ticket_id] = replace(ticket, used_at=now, used_by_id=account_id)
        return True

    def finalize_ticket(self, pending_id: str, account_id: str) -> str | None:
        self.write_count += 1
        if self.fail_finalize_ticket:
            raise RuntimeError("ticket update failed")
        for ticket in self.tickets.values():
            if ticket.pending_user_id == pending_id and ticket.used_by_id is None:
                self.tickets[ticket.id] = replace(
                    ticket, used_by_id=account_id, pending_user_id=None
                )
                return ticket.id
        return None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryRegistrationStore:
    return InMemoryRegistrationStore()


@pytest.fixture
def policy_provider() -> FakePolicyProvider:
    return FakePolicyProvider()


@pytest.fixture
def config() -> SignupConfig:
    return SignupConfig(instance_url="https://example.social")


@pytest.fixture
def accounts(policy_provider: FakePolicyProvider, clock: FakeClock) -> AccountService:
    # Minimum bcrypt cost keeps the suite fast
    return AccountService(policy_provider=policy_provider, clock=clock, bcrypt_cost=4)


@pytest.fixture
def email_validator() -> Mock:
    validator = Mock()
    validator.validate.return_value = EmailValidation(available=True)
    return validator


@pytest.fixture
def limiter() -> Mock:
    limiter = Mock()
    limiter.is_available.return_value = True
    return limiter


@pytest.fixture
def signup_service(
    config: SignupConfig,
    store: InMemoryRegistrationStore,
    policy_provider: FakePolicyProvider,
    email_validator: Mock,
    limiter: Mock,
    accounts: AccountService,
    clock: FakeClock,
) -> SignupService:
    return SignupService(
        config=replace(config, bcrypt_cost=4),
        store=store,
        policy_provider=policy_provider,
        captcha_verifier=Mock(),
        email_validator=email_validator,
        email_sender=Mock(),
        limiter=limiter,
        accounts=accounts,
        clock=clock,
    )


@pytest.fixture
def sessions() -> Mock:
    sessions = Mock()
    sessions.signin.side_effect = lambda context, account: SessionResult(
        id=account.id, i=account.token
    )
    return sessions


@pytest.fixture
def completion_service(
    config: SignupConfig,
    store: InMemoryRegistrationStore,
    accounts: AccountService,
    sessions: Mock,
    clock: FakeClock,
) -> PendingCompletionService:
    return PendingCompletionService(
        config=config, store=store, accounts=accounts, sessions=sessions, clock=clock
    )


# PostgreSQL fixtures shared by integration and adversarial tests

DB_TABLES = ["registration_tickets", "user_pendings", "used_usernames", "user_profiles", "users"]


@pytest.fixture(scope="module")
def pool() -> Iterator[ConnectionPool]:
    """Create connection pool and apply migrations; skip if PostgreSQL is unreachable."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Iterator[None]:
    """Empty signup tables and reset instance policy."""
    with pool.connection() as conn:
        for table in DB_TABLES:
            conn.execute(f"DELETE FROM {table}")
        conn.execute("DELETE FROM meta")
        conn.execute("INSERT INTO meta (id) VALUES (1)")
        conn.commit()
    yield


@pytest.fixture
def set_policy(pool: ConnectionPool):
    """Update meta columns, e.g. set_policy(disable_registration=True)."""

    def _set_policy(**columns) -> None:
        assignments = ", ".join(f"{name} = %s" for name in columns)
        with pool.connection() as conn:
            conn.execute(f"UPDATE meta SET {assignments} WHERE id = 1", tuple(columns.values()))
            conn.commit()

    return _set_policy


@pytest.fixture
def insert_ticket(pool: ConnectionPool):
    """Insert a registration ticket row; returns its id."""

    def _insert_ticket(code: str = "INVITE", **columns) -> str:
        ticket_id = f"ticket-{code}"
        names = ["id", "code", *columns]
        placeholders = ", ".join(["%s"] * len(names))
        with pool.connection() as conn:
            conn.execute(
                f"INSERT INTO registration_tickets ({', '.join(names)}) VALUES ({placeholders})",
                (ticket_id, code, *columns.values()),
            )
            conn.commit()
        return ticket_id

    return _insert_ticket
