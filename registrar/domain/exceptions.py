"""
Domain exceptions - Semantic error types for signup.

Every error here is client-reportable: it carries a stable machine-readable
code and a human message, and maps to a 4xx response at the API layer.
"""


class SignupError(Exception):
    """Base class for signup domain errors."""

    code = "SIGNUP_FAILED"
    default_message = "Signup failed"
    status_code = 400

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class CaptchaRejected(SignupError):
    """A captcha provider rejected the response token."""

    code = "CAPTCHA_REJECTED"
    default_message = "Captcha verification failed"


class EmailUnavailable(SignupError):
    """Email address missing, malformed, or already in use."""

    code = "EMAIL_UNAVAILABLE"
    default_message = "Email address is not available"


class RegistrationClosed(SignupError):
    """Registration is disabled and no usable invitation code was given."""

    code = "REGISTRATION_CLOSED"
    default_message = "Registration is closed"


class RegistrationLimitExceeded(SignupError):
    """Open registration is currently throttled."""

    code = "REGISTRATION_LIMIT_EXCEEDED"
    default_message = "Registration limit exceeded"


class DuplicatedUsername(SignupError):
    """A local account already holds this username."""

    code = "DUPLICATED_USERNAME"
    default_message = "Username is already taken"


class UsedUsername(SignupError):
    """Username belonged to a deleted account and cannot be reused."""

    code = "USED_USERNAME"
    default_message = "Username was used before and cannot be reused"


class DeniedUsername(SignupError):
    """Username is reserved by the instance."""

    code = "DENIED_USERNAME"
    default_message = "Username is reserved"


class AccountCreationFailed(SignupError):
    """Account creation failed; message preserves the underlying cause."""

    code = "ACCOUNT_CREATION_FAILED"
    default_message = "Account creation failed"


class PendingRegistrationExpired(SignupError):
    """Pending registration is older than the confirmation window."""

    code = "EXPIRED"
    default_message = "Confirmation code has expired"


class PendingRegistrationNotFound(SignupError):
    """No pending registration matches the confirmation code."""

    code = "PENDING_NOT_FOUND"
    default_message = "Confirmation code is invalid or has expired"
