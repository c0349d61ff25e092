"""
Signup domain service - entry point of account registration.

Signup flow (each step short-circuits with a SignupError):
1. Fetch instance policy
2. Verify enabled captchas (skipped in test mode)
3. Validate email address when the instance requires one
4. Resolve invitation ticket when registration is closed or limited
5. Enforce registration gating (closed / limit)
6. Email required: store a pending registration, lease the ticket,
   send the confirmation link. No account exists yet.
7. Otherwise: create the account now and consume the ticket.

Ticket writes are conditional updates inside the same transaction as the
record they belong to, so a ticket lost to a concurrent request rolls the
whole step back.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from .accounts import LOCAL_USERNAME_PATTERN, hash_password
from .exceptions import (
    AccountCreationFailed,
    EmailUnavailable,
    RegistrationClosed,
    RegistrationLimitExceeded,
    SignupError,
)
from .ids import generate_id, secure_random_string
from .models import (
    CreatedAccount,
    InstancePolicy,
    PendingRegistration,
    PendingSignup,
    RegistrationTicket,
    SignupConfig,
    SignupRequest,
)
from .ports import (
    AccountCreator,
    CaptchaVerifier,
    EmailSender,
    EmailValidator,
    PolicyProvider,
    RegistrationLimiter,
    RegistrationStore,
)
from .tickets import TicketValidator
from .usernames import ensure_username_available

logger = logging.getLogger(__name__)

CONFIRMATION_CODE_LENGTH = 16


@dataclass
class SignupService:
    """Domain service orchestrating a signup request."""

    config: SignupConfig
    store: RegistrationStore
    policy_provider: PolicyProvider
    captcha_verifier: CaptchaVerifier
    email_validator: EmailValidator
    email_sender: EmailSender
    limiter: RegistrationLimiter
    accounts: AccountCreator
    clock: Callable[[], datetime]

    def signup(self, request: SignupRequest) -> PendingSignup | CreatedAccount:
        """
        Register a new user.

        Returns:
            PendingSignup when email confirmation is required,
            CreatedAccount when the account was created immediately

        Raises:
            CaptchaRejected, EmailUnavailable, RegistrationClosed,
            RegistrationLimitExceeded, DuplicatedUsername, UsedUsername,
            DeniedUsername, AccountCreationFailed
        """
        policy = self.policy_provider.fetch()

        if not self.config.test_mode:
            self._verify_captchas(policy, request)

        if policy.email_required_for_signup:
            self._validate_email(request.email_address)

        ticket = self._resolve_ticket(policy, request.invitation_code)
        self._enforce_gating(policy, ticket)

        if policy.email_required_for_signup:
            return self._create_pending(policy, request, ticket)
        return self._create_account(request, ticket)

    def _verify_captchas(self, policy: InstancePolicy, request: SignupRequest) -> None:
        for kind, secret in policy.captcha_secrets():
            self.captcha_verifier.verify(kind, secret, request.captcha_responses.get(kind))

    def _validate_email(self, address: str | None) -> None:
        if not address:
            raise EmailUnavailable("Email address is required")
        result = self.email_validator.validate(address)
        if not result.available:
            raise EmailUnavailable(f"Email address is not available: {result.reason}")

    def _resolve_ticket(
        self, policy: InstancePolicy, invitation_code: str | None
    ) -> RegistrationTicket | None:
        needs_ticket = policy.disable_registration or policy.enable_registration_limit
        if not needs_ticket or not invitation_code or not invitation_code.strip():
            return None
        validator = TicketValidator(
            store=self.store, lease=self.config.ticket_lease, clock=self.clock
        )
        return validator.fetch(invitation_code.strip(), policy.email_required_for_signup)

    def _enforce_gating(self, policy: InstancePolicy, ticket: RegistrationTicket | None) -> None:
        if policy.disable_registration:
            if ticket is None:
                raise RegistrationClosed()
        elif policy.enable_registration_limit and ticket is None:
            if not self.limiter.is_available(consuming=True):
                raise RegistrationLimitExceeded()

    def _create_pending(
        self, policy: InstancePolicy, request: SignupRequest, ticket: RegistrationTicket | None
    ) -> PendingSignup:
        if not LOCAL_USERNAME_PATTERN.match(request.username):
            raise AccountCreationFailed("Invalid username")
        ensure_username_available(self.store, request.username, policy.preserved_usernames)

        now = self.clock()
        pending = PendingRegistration(
            id=generate_id(now),
            code=secure_random_string(CONFIRMATION_CODE_LENGTH),
            email=request.email_address,
            username=request.username,
            password_hash=hash_password(request.password, self.config.bcrypt_cost),
        )

        with self.store.transaction() as tx:
            tx.insert_pending(pending)
            if ticket is not None:
                allocated = tx.allocate_ticket(
                    ticket.id, pending.id, now, now - self.config.ticket_lease
                )
                if not allocated:
                    raise RegistrationClosed("Invitation code is no longer available")
                logger.info("Ticket %s allocated to pending registration %s", ticket.id, pending.id)

        logger.info("Pending registration %s created for %s", pending.id, pending.username)
        self._send_confirmation(pending)
        return PendingSignup(pending_id=pending.id)

    def _send_confirmation(self, pending: PendingRegistration) -> None:
        link = f"{self.config.instance_url.rstrip('/')}/signup-complete/{pending.code}"
        try:
            self.email_sender.send(
                pending.email,
                "Signup",
                f'To complete signup, please click this link:<br><a href="{link}">{link}</a>',
                f"To complete signup, please click this link: {link}",
            )
        except Exception:
            logger.exception("Failed to send confirmation email for pending %s", pending.id)

    def _create_account(
        self, request: SignupRequest, ticket: RegistrationTicket | None
    ) -> CreatedAccount:
        host = request.host if self.config.test_mode else None
        try:
            with self.store.transaction() as tx:
                account = self.accounts.create_with_password(
                    tx, request.username, request.password, host
                )
                if ticket is not None:
                    if not tx.consume_ticket(ticket.id, account.id, self.clock()):
                        raise RegistrationClosed("Invitation code is no longer available")
                    logger.info("Ticket %s consumed by account %s", ticket.id, account.id)
        except SignupError:
            raise
        except Exception as e:
            raise AccountCreationFailed(str(e)) from e

        logger.info("Account %s created for %s", account.id, account.username)
        return CreatedAccount(account=account, token=account.token)
