"""
Email address validator adapter - Implements EmailValidator protocol.

An address is available when no profile already holds it as verified and
email-validator accepts its syntax (and, if enabled, its domain's DNS).
"""

from email_validator import EmailNotValidError, validate_email

from registrar.domain.models import EmailValidation
from registrar.domain.ports import RegistrationStore


class EmailAddressValidator:
    """Implements EmailValidator protocol via email-validator and the store."""

    def __init__(self, store: RegistrationStore, check_deliverability: bool = False) -> None:
        self._store = store
        self._check_deliverability = check_deliverability

    def validate(self, address: str) -> EmailValidation:
        if self._store.email_in_use(address):
            return EmailValidation(available=False, reason="used")

        try:
            validate_email(address, check_deliverability=self._check_deliverability)
        except EmailNotValidError:
            return EmailValidation(available=False, reason="format")

        return EmailValidation(available=True)
