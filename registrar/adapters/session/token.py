"""
Token session issuer adapter - Implements SessionIssuer protocol.

Sign-in hands back the account's native token, issued when the account
was created.
"""

import logging
from typing import Any

from registrar.domain.models import Account, SessionResult

logger = logging.getLogger(__name__)


class TokenSessionIssuer:
    """Implements SessionIssuer protocol with the account's native token."""

    def signin(self, context: dict[str, Any], account: Account) -> SessionResult:
        if account.token is None:
            raise ValueError(f"Account {account.id} has no token")
        logger.info("[SIGNIN] Account: %s IP: %s", account.id, context.get("ip", "unknown"))
        return SessionResult(id=account.id, i=account.token)
