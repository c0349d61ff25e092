"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging outgoing mail to stdout for demo purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - confirmation links end up in the logs.
    """

    def send(self, address: str, subject: str, html: str, text: str) -> None:
        """
        Log the message to console (simulates email delivery).

        In production, this would be replaced with an SMTP adapter.
        Only the plain-text body is logged; html carries the same link.

        Args:
            address: Recipient email address
            subject: Message subject
            html: HTML body
            text: Plain-text body
        """
        logger.info("[EMAIL] To: %s Subject: %s Body: %s", address, subject, text)
