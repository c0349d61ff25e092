"""
Pending registration completion.

Consumes a confirmation code: the account is created from the stored
password hash, the pending record is deleted, the profile email is marked
verified and the provisionally allocated ticket (if any) becomes consumed.
All of that runs in one transaction with the pending row locked, so a
second completion with the same code finds nothing and no account is
created twice.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .exceptions import (
    AccountCreationFailed,
    PendingRegistrationExpired,
    PendingRegistrationNotFound,
    SignupError,
)
from .models import SessionResult, SignupConfig
from .ports import AccountCreator, RegistrationStore, SessionIssuer

logger = logging.getLogger(__name__)


@dataclass
class PendingCompletionService:
    """Domain service finalizing email-confirmed registrations."""

    config: SignupConfig
    store: RegistrationStore
    accounts: AccountCreator
    sessions: SessionIssuer
    clock: Callable[[], datetime]

    def complete(self, code: str, context: dict[str, Any] | None = None) -> SessionResult:
        """
        Finalize the pending registration identified by code.

        Args:
            code: Confirmation code from the signup email
            context: Request details handed to the session issuer

        Returns:
            SessionResult for the newly created account

        Raises:
            PendingRegistrationNotFound: Unknown or already used code
            PendingRegistrationExpired: Confirmation window has passed
            AccountCreationFailed: Any unexpected failure, message preserved
        """
        try:
            with self.store.transaction() as tx:
                pending = tx.find_pending_by_code(code, lock=True)
                if pending is None:
                    raise PendingRegistrationNotFound()

                if pending.is_expired(self.clock(), self.config.pending_ttl):
                    raise PendingRegistrationExpired()

                account = self.accounts.create_with_hash(
                    tx, pending.username, pending.password_hash
                )
                tx.delete_pending(pending.id)
                tx.verify_profile_email(account.id, pending.email)

                ticket_id = tx.finalize_ticket(pending.id, account.id)
                if ticket_id is not None:
                    logger.info("Ticket %s finalized for account %s", ticket_id, account.id)
        except SignupError:
            raise
        except Exception as e:
            raise AccountCreationFailed(str(e)) from e

        logger.info("Pending registration %s completed as account %s", pending.id, account.id)
        return self.sessions.signin(context or {}, account)
