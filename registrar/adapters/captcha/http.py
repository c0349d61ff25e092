"""
HTTP captcha verifier adapter - Implements CaptchaVerifier protocol.

Posts the secret and the client's response token to the provider's
siteverify endpoint. All three supported providers share the same
form-encoded request and JSON `success` / `error-codes` reply.
"""

import logging

import httpx

from registrar.domain.exceptions import CaptchaRejected
from registrar.domain.models import CaptchaKind

logger = logging.getLogger(__name__)

VERIFY_URLS = {
    CaptchaKind.HCAPTCHA: "https://hcaptcha.com/siteverify",
    CaptchaKind.RECAPTCHA: "https://www.recaptcha.net/recaptcha/api/siteverify",
    CaptchaKind.TURNSTILE: "https://challenges.cloudflare.com/turnstile/v0/siteverify",
}


class HttpCaptchaVerifier:
    """
    Implements CaptchaVerifier protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        """
        Args:
            timeout: Seconds to wait for the provider
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self._timeout = timeout
        self._transport = transport

    def verify(self, kind: CaptchaKind, secret: str, response: str | None) -> None:
        """
        Verify a response token, raising CaptchaRejected on any failure.

        Rejection reasons follow the `{kind}-failed: ...` format so the
        client can tell which provider failed.
        """
        if not response:
            raise CaptchaRejected(f"{kind.value}-failed: no response provided")

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                r = client.post(VERIFY_URLS[kind], data={"secret": secret, "response": response})
        except httpx.HTTPError as e:
            logger.warning("Captcha request to %s failed: %s", kind.value, e)
            raise CaptchaRejected(f"{kind.value}-request-failed: {e}") from e

        if not 200 <= r.status_code < 300:
            raise CaptchaRejected(f"{kind.value}-request-failed: status {r.status_code}")

        try:
            result = r.json()
        except ValueError as e:
            raise CaptchaRejected(f"{kind.value}-request-failed: invalid response") from e

        if result.get("success") is not True:
            error_codes = ", ".join(result.get("error-codes") or [])
            raise CaptchaRejected(f"{kind.value}-failed: {error_codes or 'unknown'}")
