"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import PostgresTokenStore
from src.adapters.smtp.console import ConsoleNotificationSender
from src.adapters.smtp.smtp import SmtpNotificationSender
from src.config.settings import Settings, get_settings
from src.domain.ports import NotificationSender, TokenStore
from src.domain.verification import VerificationService

# Module-level singleton - ConsoleNotificationSender is stateless
_console_sender = ConsoleNotificationSender()


def get_pool(request: Request) -> AsyncConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_token_store(request: Request) -> TokenStore:
    """Create token store with connection pool from app state."""
    return PostgresTokenStore(get_pool(request))


def get_notification_sender(settings: Settings = Depends(get_settings)) -> NotificationSender:
    """Select the notification sender named by settings.email_backend."""
    if settings.email_backend == "smtp":
        return SmtpNotificationSender(settings)
    return _console_sender


def get_verification_service(
    store: TokenStore = Depends(get_token_store),
    sender: NotificationSender = Depends(get_notification_sender),
    settings: Settings = Depends(get_settings),
) -> VerificationService:
    """
    Create verification service with injected dependencies.

    Wires together the token store, notification sender and configured
    validity window for the domain service.
    """
    return VerificationService(
        store=store,
        sender=sender,
        window=settings.verification_window,
        base_url=settings.base_url,
    )


def resolve_request_base_url(request: Request) -> str:
    """
    Derive scheme://host[/root_path] from the inbound request.

    Used for verification links when no base URL is configured.
    """
    return str(request.base_url).rstrip("/")
