"""
Console notification sender adapter - Implements NotificationSender protocol.

This module provides a console-based implementation of the domain's
notification sender port, logging verification links for local
development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotificationSender:
    """
    Implements NotificationSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints verification links to the log.
    """

    async def send(self, email: str, verification_url: str) -> None:
        """
        Log verification link (simulates email delivery).

        The link is logged at INFO level to be visible in docker-compose logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            verification_url: Absolute verification link
        """
        logger.info("[VERIFICATION] Email: %s Link: %s", email, verification_url)
