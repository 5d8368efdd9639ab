"""Notification adapters - Verification message delivery."""

from .console import ConsoleNotificationSender
from .smtp import SmtpNotificationSender

__all__ = ["ConsoleNotificationSender", "SmtpNotificationSender"]
