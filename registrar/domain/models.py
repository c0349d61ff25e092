"""
Domain models - Records handled by the signup workflow.

Ticket lifecycle (derived from stored fields, forward-only):
    Unused -> ProvisionallyAllocated  (email-gated signup, lease starts)
    Unused -> Consumed                (immediate signup)
    ProvisionallyAllocated -> Consumed (pending registration confirmed)
    ProvisionallyAllocated -> ProvisionallyAllocated (lease expired, reallocated)
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .ids import parse_id


class CaptchaKind(str, Enum):
    """Supported captcha providers."""

    HCAPTCHA = "hcaptcha"
    RECAPTCHA = "recaptcha"
    TURNSTILE = "turnstile"


@dataclass(frozen=True)
class Account:
    """Durable identity record. host is None for local accounts."""

    id: str
    username: str
    username_lower: str
    host: str | None
    created_at: datetime
    token: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class AccountProfile:
    user_id: str
    email: str | None = None
    email_verified: bool = False
    email_verify_code: str | None = None


@dataclass(frozen=True)
class PendingRegistration:
    """Signup awaiting email confirmation; password is already hashed."""

    id: str
    code: str
    email: str
    username: str
    password_hash: str = field(repr=False)

    @property
    def created_at(self) -> datetime:
        return parse_id(self.id)

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.created_at >= ttl


@dataclass(frozen=True)
class Unused:
    pass


@dataclass(frozen=True)
class ProvisionallyAllocated:
    """Ticket leased to a pending registration since `since`."""

    since: datetime
    pending_id: str | None

    def lease_active(self, now: datetime, lease: timedelta) -> bool:
        return self.since + lease > now


@dataclass(frozen=True)
class Consumed:
    account_id: str


TicketState = Unused | ProvisionallyAllocated | Consumed


@dataclass(frozen=True)
class RegistrationTicket:
    """
    Invitation token gating restricted registration.

    The stored optional fields are kept as-is for persistence; `state`
    is the authoritative reading of them.
    """

    id: str
    code: str
    expires_at: datetime | None = None
    used_at: datetime | None = None
    used_by_id: str | None = None
    pending_user_id: str | None = None

    @property
    def state(self) -> TicketState:
        if self.used_by_id is not None:
            return Consumed(account_id=self.used_by_id)
        if self.used_at is not None:
            return ProvisionallyAllocated(since=self.used_at, pending_id=self.pending_user_id)
        return Unused()

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


@dataclass(frozen=True)
class InstancePolicy:
    """Snapshot of instance-wide signup policy."""

    disable_registration: bool = False
    enable_registration_limit: bool = False
    email_required_for_signup: bool = False
    enable_hcaptcha: bool = False
    hcaptcha_secret_key: str | None = None
    enable_recaptcha: bool = False
    recaptcha_secret_key: str | None = None
    enable_turnstile: bool = False
    turnstile_secret_key: str | None = None
    preserved_usernames: tuple[str, ...] = ()

    def captcha_secrets(self) -> list[tuple[CaptchaKind, str]]:
        """Enabled captcha providers that have a secret configured, in check order."""
        candidates = [
            (CaptchaKind.HCAPTCHA, self.enable_hcaptcha, self.hcaptcha_secret_key),
            (CaptchaKind.RECAPTCHA, self.enable_recaptcha, self.recaptcha_secret_key),
            (CaptchaKind.TURNSTILE, self.enable_turnstile, self.turnstile_secret_key),
        ]
        return [(kind, secret) for kind, enabled, secret in candidates if enabled and secret]


@dataclass(frozen=True)
class SignupRequest:
    username: str
    password: str
    host: str | None = None
    invitation_code: str | None = None
    email_address: str | None = None
    captcha_responses: dict[CaptchaKind, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class PendingSignup:
    """Outcome of an email-gated signup: nothing created but the pending record."""

    pending_id: str


@dataclass(frozen=True)
class CreatedAccount:
    """Outcome of an immediate signup."""

    account: Account
    token: str = field(repr=False)


@dataclass(frozen=True)
class EmailValidation:
    available: bool
    reason: str | None = None


@dataclass(frozen=True)
class SessionResult:
    """Established session: account id plus its access credential."""

    id: str
    i: str = field(repr=False)


@dataclass(frozen=True)
class SignupConfig:
    """
    Process-level switches passed to the signup services at construction.

    test_mode disables captcha checks and honours the requested host.
    ticket_lease must cover pending_ttl so a ticket stays leased for as long
    as the pending registration holding it can be completed.
    """

    instance_url: str
    test_mode: bool = False
    pending_ttl: timedelta = timedelta(minutes=30)
    ticket_lease: timedelta = timedelta(minutes=30)
    bcrypt_cost: int = 8

    def __post_init__(self) -> None:
        if self.ticket_lease < self.pending_ttl:
            raise ValueError(
                f"ticket_lease ({self.ticket_lease}) must not be shorter than "
                f"pending_ttl ({self.pending_ttl})"
            )
