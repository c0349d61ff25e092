"""
Invitation ticket validation.

Unusable tickets (unknown, consumed, expired, leased) all come back as None
so callers cannot tell an invalid code from a missing one.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .models import Consumed, ProvisionallyAllocated, RegistrationTicket
from .ports import RegistrationStore


def is_consumable(
    ticket: RegistrationTicket, email_required: bool, now: datetime, lease: timedelta
) -> bool:
    """
    Decide whether a ticket can be used by a new signup right now.

    Email-gated signups may take over a provisional allocation whose lease
    has run out; immediate signups only accept never-used tickets.
    """
    state = ticket.state
    if isinstance(state, Consumed):
        return False
    if ticket.is_expired(now):
        return False
    if isinstance(state, ProvisionallyAllocated):
        if not email_required:
            return False
        return not state.lease_active(now, lease)
    return True


@dataclass
class TicketValidator:
    """Read-only lookup of currently consumable tickets."""

    store: RegistrationStore
    lease: timedelta
    clock: Callable[[], datetime]

    def fetch(self, code: str, email_required: bool) -> RegistrationTicket | None:
        ticket = self.store.find_ticket_by_code(code)
        if ticket is None:
            return None
        if not is_consumable(ticket, email_required, self.clock(), self.lease):
            return None
        return ticket
