"""
Account creation - the account-creator collaborator of the signup flows.

Two entry points share one insert path:
- create_with_password: immediate signup, hashes the plaintext password
- create_with_hash: pending completion, stores the hash made at signup time
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import bcrypt

from .exceptions import AccountCreationFailed
from .ids import generate_id, secure_random_string
from .models import Account
from .ports import PolicyProvider, RegistrationStore
from .usernames import ensure_username_available, normalize_username

LOCAL_USERNAME_PATTERN = re.compile(r"^\w{1,20}$")

TOKEN_LENGTH = 16


def hash_password(password: str, cost: int) -> str:
    """Hash password using bcrypt with a fresh salt on every call."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=cost)).decode()


@dataclass
class AccountService:
    """
    Domain service creating local and (test-mode) remote accounts.

    Storage goes through the store handed in by the caller so account
    creation joins the caller's transaction.
    """

    policy_provider: PolicyProvider
    clock: Callable[[], datetime]
    bcrypt_cost: int = 8

    def create_with_password(
        self, store: RegistrationStore, username: str, password: str, host: str | None = None
    ) -> Account:
        """
        Create an account from a plaintext password.

        Raises:
            AccountCreationFailed: Invalid username or empty password
            DuplicatedUsername, UsedUsername, DeniedUsername: Username unavailable
        """
        if not password:
            raise AccountCreationFailed("Invalid password")
        self._check_username(store, username, host)
        return self._insert(store, username, hash_password(password, self.bcrypt_cost), host)

    def create_with_hash(
        self, store: RegistrationStore, username: str, password_hash: str
    ) -> Account:
        """Create a local account from an already-hashed password."""
        self._check_username(store, username, None)
        return self._insert(store, username, password_hash, None)

    def _check_username(self, store: RegistrationStore, username: str, host: str | None) -> None:
        if host is not None:
            return
        if not LOCAL_USERNAME_PATTERN.match(username):
            raise AccountCreationFailed("Invalid username")
        policy = self.policy_provider.fetch()
        ensure_username_available(store, username, policy.preserved_usernames)

    def _insert(
        self, store: RegistrationStore, username: str, password_hash: str, host: str | None
    ) -> Account:
        now = self.clock()
        account = Account(
            id=generate_id(now),
            username=username,
            username_lower=normalize_username(username),
            host=host,
            created_at=now,
            token=secure_random_string(TOKEN_LENGTH),
        )
        store.insert_account(account, password_hash)
        return account
