"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Protocol

from .models import (
    Account,
    CaptchaKind,
    EmailValidation,
    InstancePolicy,
    PendingRegistration,
    RegistrationTicket,
    SessionResult,
)


class RegistrationStore(Protocol):
    """Port interface for signup persistence."""

    def transaction(self) -> AbstractContextManager["RegistrationStore"]:
        """
        Open a transaction and yield a store bound to it.

        Everything done through the yielded store commits together when
        the block exits normally and rolls back if it raises.
        """
        ...

    def local_username_exists(self, username_lower: str) -> bool:
        ...

    def username_was_used(self, username_lower: str) -> bool:
        """True if the username is in the used-username ledger."""
        ...

    def email_in_use(self, email: str) -> bool:
        """True if a profile already holds this email as verified."""
        ...

    def insert_account(self, account: Account, password_hash: str) -> None:
        """
        Insert an account with its empty profile.

        Raises:
            DuplicatedUsername: If (username_lower, host) is already taken.
                Storage constraint violations are mapped to this error.
        """
        ...

    def verify_profile_email(self, user_id: str, email: str) -> None:
        """Set profile email, mark it verified and clear the verify code."""
        ...

    def insert_pending(self, pending: PendingRegistration) -> None:
        ...

    def find_pending_by_code(self, code: str, *, lock: bool = False) -> PendingRegistration | None:
        """
        Look up a pending registration by confirmation code.

        With lock=True the row stays locked until the enclosing
        transaction ends.
        """
        ...

    def delete_pending(self, pending_id: str) -> None:
        ...

    def find_ticket_by_code(self, code: str) -> RegistrationTicket | None:
        ...

    def allocate_ticket(
        self, ticket_id: str, pending_id: str, now: datetime, lease_cutoff: datetime
    ) -> bool:
        """
        Provisionally allocate a ticket to a pending registration.

        Conditional update: succeeds only if the ticket is not consumed and
        either unallocated or allocated at or before lease_cutoff.

        Returns:
            True if the ticket was allocated, False if another request won
        """
        ...

    def consume_ticket(self, ticket_id: str, account_id: str, now: datetime) -> bool:
        """
        Consume an unallocated ticket for an immediately created account.

        Returns:
            True if consumed, False if the ticket was taken meanwhile
        """
        ...

    def finalize_ticket(self, pending_id: str, account_id: str) -> str | None:
        """
        Turn the ticket allocated to pending_id into a consumed one.

        Returns:
            The finalized ticket id, or None if no ticket was allocated
        """
        ...


class PolicyProvider(Protocol):
    """Port interface for the instance policy snapshot."""

    def fetch(self) -> InstancePolicy:
        """Return the current policy; called once per request, never cached."""
        ...


class CaptchaVerifier(Protocol):
    """Port interface for captcha provider verification."""

    def verify(self, kind: CaptchaKind, secret: str, response: str | None) -> None:
        """
        Verify a captcha response token with the given provider.

        Raises:
            CaptchaRejected: With the provider's rejection reason
        """
        ...


class EmailValidator(Protocol):
    """Port interface for email address validation."""

    def validate(self, address: str) -> EmailValidation:
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send(self, address: str, subject: str, html: str, text: str) -> None:
        ...


class RegistrationLimiter(Protocol):
    """Port interface for open-registration throttling."""

    def is_available(self, consuming: bool) -> bool:
        """
        Check whether another open registration is currently allowed.

        Args:
            consuming: Record this registration against the limit when allowed
        """
        ...


class AccountCreator(Protocol):
    """Port interface for account creation, with two credential shapes."""

    def create_with_password(
        self, store: RegistrationStore, username: str, password: str, host: str | None = None
    ) -> Account:
        ...

    def create_with_hash(
        self, store: RegistrationStore, username: str, password_hash: str
    ) -> Account:
        ...


class SessionIssuer(Protocol):
    """Port interface for establishing an authenticated session."""

    def signin(self, context: dict[str, Any], account: Account) -> SessionResult:
        ...
