"""
PostgreSQL repository adapter - Implements RegistrationStore and PolicyProvider.

This module provides the PostgreSQL implementation of the domain's
storage ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
1. **Username uniqueness**: The unique index on (username_lower, host) is the
   authority. The domain's pre-checks only reject early; a UniqueViolation
   on insert is mapped to DuplicatedUsername.

2. **Ticket allocation**: allocate_ticket() and consume_ticket() are
   conditional UPDATEs whose WHERE clause re-checks the ticket state, so two
   requests racing for one code cannot both win.

3. **Pending completion**: find_pending_by_code(lock=True) uses
   SELECT ... FOR UPDATE. A concurrent completion of the same code blocks
   until the first transaction commits and then sees the row deleted.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from psycopg import Connection, Cursor, errors
from psycopg_pool import ConnectionPool

from registrar.domain.exceptions import DuplicatedUsername
from registrar.domain.models import (
    Account,
    InstancePolicy,
    PendingRegistration,
    RegistrationTicket,
)

logger = logging.getLogger(__name__)

_TICKET_COLUMNS = "id, code, expires_at, used_at, used_by_id, pending_user_id"

# Unique index from migrations/001_initial.sql
_USERNAME_INDEX = "users_username_lower_host_key"


class PostgresRegistrationStore:
    """
    Implements RegistrationStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.

    A store created from a pool runs each call on its own pooled connection
    (committed on success). transaction() yields a store bound to a single
    connection so several calls commit or roll back together.
    """

    def __init__(self, pool: ConnectionPool, connection: Connection | None = None) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            connection: Connection of an open transaction, if bound to one
        """
        self._pool = pool
        self._connection = connection

    @contextmanager
    def transaction(self) -> Iterator["PostgresRegistrationStore"]:
        if self._connection is not None:
            # Nested: psycopg turns this into a savepoint
            with self._connection.transaction():
                yield self
            return

        with self._pool.connection() as conn, conn.transaction():
            yield PostgresRegistrationStore(self._pool, conn)

    @contextmanager
    def _cursor(self) -> Iterator[Cursor]:
        if self._connection is not None:
            with self._connection.cursor() as cursor:
                yield cursor
            return

        with self._pool.connection() as conn, conn.cursor() as cursor:
            yield cursor

    def local_username_exists(self, username_lower: str) -> bool:
        sql = "SELECT 1 FROM users WHERE username_lower = %s AND host IS NULL"
        with self._cursor() as cursor:
            cursor.execute(sql, (username_lower,))
            return cursor.fetchone() is not None

    def username_was_used(self, username_lower: str) -> bool:
        sql = "SELECT 1 FROM used_usernames WHERE username = %s"
        with self._cursor() as cursor:
            cursor.execute(sql, (username_lower,))
            return cursor.fetchone() is not None

    def email_in_use(self, email: str) -> bool:
        sql = "SELECT 1 FROM user_profiles WHERE email = %s AND email_verified"
        with self._cursor() as cursor:
            cursor.execute(sql, (email,))
            return cursor.fetchone() is not None

    def insert_account(self, account: Account, password_hash: str) -> None:
        """
        Insert account and its empty profile.

        Raises:
            DuplicatedUsername: On username index violation (concurrent signup
                for the same username that passed the pre-checks)
            psycopg.errors.UniqueViolation: On any other collision (id, token)
        """
        user_sql = """
            INSERT INTO users (id, username, username_lower, host, password_hash, token, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """
        profile_sql = "INSERT INTO user_profiles (user_id) VALUES (%s)"

        with self._cursor() as cursor:
            try:
                cursor.execute(
                    user_sql,
                    (
                        account.id,
                        account.username,
                        account.username_lower,
                        account.host,
                        password_hash,
                        account.token,
                        account.created_at,
                    ),
                )
            except errors.UniqueViolation as e:
                if e.diag.constraint_name != _USERNAME_INDEX:
                    raise
                logger.info("Username conflict on insert: %s", account.username_lower)
                raise DuplicatedUsername() from e
            cursor.execute(profile_sql, (account.id,))

    def verify_profile_email(self, user_id: str, email: str) -> None:
        sql = """
            UPDATE user_profiles
            SET email = %s, email_verified = TRUE, email_verify_code = NULL
            WHERE user_id = %s
        """
        with self._cursor() as cursor:
            cursor.execute(sql, (email, user_id))
            if cursor.rowcount != 1:
                raise LookupError(f"Profile not found for user {user_id}")

    def insert_pending(self, pending: PendingRegistration) -> None:
        sql = """
            INSERT INTO user_pendings (id, code, email, username, password)
            VALUES (%s, %s, %s, %s, %s)
        """
        with self._cursor() as cursor:
            cursor.execute(
                sql,
                (pending.id, pending.code, pending.email, pending.username, pending.password_hash),
            )

    def find_pending_by_code(self, code: str, *, lock: bool = False) -> PendingRegistration | None:
        sql = "SELECT id, code, email, username, password FROM user_pendings WHERE code = %s"
        if lock:
            sql += " FOR UPDATE"

        with self._cursor() as cursor:
            cursor.execute(sql, (code,))
            row = cursor.fetchone()

        if row is None:
            return None
        return PendingRegistration(
            id=row[0], code=row[1], email=row[2], username=row[3], password_hash=row[4]
        )

    def delete_pending(self, pending_id: str) -> None:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM user_pendings WHERE id = %s", (pending_id,))

    def find_ticket_by_code(self, code: str) -> RegistrationTicket | None:
        sql = f"SELECT {_TICKET_COLUMNS} FROM registration_tickets WHERE code = %s"
        with self._cursor() as cursor:
            cursor.execute(sql, (code,))
            row = cursor.fetchone()

        if row is None:
            return None
        return RegistrationTicket(
            id=row[0],
            code=row[1],
            expires_at=row[2],
            used_at=row[3],
            used_by_id=row[4],
            pending_user_id=row[5],
        )

    def allocate_ticket(
        self, ticket_id: str, pending_id: str, now: datetime, lease_cutoff: datetime
    ) -> bool:
        sql = """
            UPDATE registration_tickets
            SET used_at = %(now)s, pending_user_id = %(pending_id)s
            WHERE id = %(ticket_id)s
              AND used_by_id IS NULL
              AND (used_at IS NULL OR used_at <= %(lease_cutoff)s)
              AND (expires_at IS NULL OR expires_at >= %(now)s)
        """
        with self._cursor() as cursor:
            cursor.execute(
                sql,
                {
                    "now": now,
                    "pending_id": pending_id,
                    "ticket_id": ticket_id,
                    "lease_cutoff": lease_cutoff,
                },
            )
            return cursor.rowcount == 1

    def consume_ticket(self, ticket_id: str, account_id: str, now: datetime) -> bool:
        sql = """
            UPDATE registration_tickets
            SET used_at = %(now)s, used_by_id = %(account_id)s
            WHERE id = %(ticket_id)s
              AND used_by_id IS NULL
              AND used_at IS NULL
              AND (expires_at IS NULL OR expires_at >= %(now)s)
        """
        with self._cursor() as cursor:
            cursor.execute(sql, {"now": now, "account_id": account_id, "ticket_id": ticket_id})
            return cursor.rowcount == 1

    def finalize_ticket(self, pending_id: str, account_id: str) -> str | None:
        sql = """
            UPDATE registration_tickets
            SET used_by_id = %s, pending_user_id = NULL
            WHERE pending_user_id = %s AND used_by_id IS NULL
            RETURNING id
        """
        with self._cursor() as cursor:
            cursor.execute(sql, (account_id, pending_id))
            row = cursor.fetchone()
        return row[0] if row is not None else None


class PostgresPolicyProvider:
    """
    Implements PolicyProvider protocol by reading the single-row meta table.

    Reads on every call so administrative changes apply immediately.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def fetch(self) -> InstancePolicy:
        sql = """
            SELECT disable_registration, enable_registration_limit, email_required_for_signup,
                   enable_hcaptcha, hcaptcha_secret_key,
                   enable_recaptcha, recaptcha_secret_key,
                   enable_turnstile, turnstile_secret_key,
                   preserved_usernames
            FROM meta
            WHERE id = 1
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql)
            row = cursor.fetchone()

        if row is None:
            logger.warning("Instance meta row missing, using default policy")
            return InstancePolicy()

        return InstancePolicy(
            disable_registration=row[0],
            enable_registration_limit=row[1],
            email_required_for_signup=row[2],
            enable_hcaptcha=row[3],
            hcaptcha_secret_key=row[4],
            enable_recaptcha=row[5],
            recaptcha_secret_key=row[6],
            enable_turnstile=row[7],
            turnstile_secret_key=row[8],
            preserved_usernames=tuple(row[9] or ()),
        )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: registrar/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
