"""
Domain layer - Pure signup business logic with zero framework imports.

This package contains the registration workflow of the server: ticket
validation, username availability, account creation, signup orchestration
and pending registration completion. It defines its own port interfaces
for infrastructure abstraction.
"""

from .accounts import AccountService
from .exceptions import (
    AccountCreationFailed,
    CaptchaRejected,
    DeniedUsername,
    DuplicatedUsername,
    EmailUnavailable,
    PendingRegistrationExpired,
    PendingRegistrationNotFound,
    RegistrationClosed,
    RegistrationLimitExceeded,
    SignupError,
    UsedUsername,
)
from .models import (
    Account,
    CaptchaKind,
    CreatedAccount,
    InstancePolicy,
    PendingRegistration,
    PendingSignup,
    RegistrationTicket,
    SessionResult,
    SignupConfig,
    SignupRequest,
)
from .pending import PendingCompletionService
from .signup import SignupService
from .tickets import TicketValidator

__all__ = [
    "Account",
    "AccountCreationFailed",
    "AccountService",
    "CaptchaKind",
    "CaptchaRejected",
    "CreatedAccount",
    "DeniedUsername",
    "DuplicatedUsername",
    "EmailUnavailable",
    "InstancePolicy",
    "PendingCompletionService",
    "PendingRegistration",
    "PendingRegistrationExpired",
    "PendingRegistrationNotFound",
    "PendingSignup",
    "RegistrationClosed",
    "RegistrationLimitExceeded",
    "RegistrationTicket",
    "SessionResult",
    "SignupConfig",
    "SignupError",
    "SignupRequest",
    "SignupService",
    "TicketValidator",
    "UsedUsername",
]
