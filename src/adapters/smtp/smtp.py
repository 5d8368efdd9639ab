"""
SMTP notification sender adapter - Implements NotificationSender protocol.

Delivers verification links over SMTP using aiosmtplib. Port 465 uses
implicit TLS; any other port upgrades with STARTTLS when enabled.

Failure classification:
- Connection errors, disconnects, timeouts and 4xx replies are retryable.
- Refused senders/recipients, authentication failures and other 5xx
  replies are fatal; the same request will fail again.
"""

import logging

import aiosmtplib
from aiosmtplib import (
    SMTPConnectError,
    SMTPException,
    SMTPResponseException,
    SMTPServerDisconnected,
    SMTPTimeoutError,
)

from src.config.settings import Settings
from src.domain.exceptions import SendFailure

from .message import build_verification_message

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465


def is_retryable(exc: Exception) -> bool:
    """Classify an SMTP or socket failure as transient or permanent."""
    if isinstance(exc, (SMTPConnectError, SMTPServerDisconnected, SMTPTimeoutError)):
        return True
    if isinstance(exc, SMTPResponseException):
        return 400 <= exc.code < 500
    if isinstance(exc, SMTPException):
        return False
    return isinstance(exc, OSError)


class SmtpNotificationSender:
    """
    Implements NotificationSender protocol via aiosmtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def send(self, email: str, verification_url: str) -> None:
        """
        Send the verification email.

        Raises:
            SendFailure: With retryable set from the failure classification
        """
        settings = self._settings
        message = build_verification_message(
            sender=settings.sender_email,
            recipient=email,
            verification_url=verification_url,
            window=settings.verification_window,
        )
        use_tls = settings.smtp_port == IMPLICIT_TLS_PORT

        try:
            await aiosmtplib.send(
                message,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username or None,
                password=settings.smtp_password or None,
                use_tls=use_tls,
                start_tls=False if use_tls else settings.smtp_start_tls,
                timeout=settings.smtp_timeout_seconds,
            )
        except (SMTPException, OSError) as exc:
            retryable = is_retryable(exc)
            logger.error(
                "SMTP delivery to %s via %s:%s failed (retryable=%s): %s",
                email,
                settings.smtp_host,
                settings.smtp_port,
                retryable,
                exc,
            )
            raise SendFailure(email, type(exc).__name__, retryable=retryable) from exc

        logger.info("Verification email sent to %s", email)
