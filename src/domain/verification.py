"""
Verification domain service - Token lifecycle state machine.

This module contains the core business logic for email verification:
issuing single-use tokens and deciding the outcome of a verification
attempt.

Token State Machine (Forward-Only Transitions)
==============================================

Stored states:
- PENDING: Token issued, link not yet followed
- VERIFIED: Terminal state after a successful verification

Derived at read time:
- EXPIRED: PENDING and created_at + window < now
- INVALID: No record for the token

Valid Transitions:
    PENDING -> VERIFIED   (link followed within the window)

Invalid Transitions (never allowed):
    VERIFIED -> any       (VERIFIED is terminal)

The PENDING -> VERIFIED write is a conditional update performed by the
store, so concurrent attempts on the same token yield exactly one SUCCESS.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from email_validator import EmailNotValidError, validate_email

from .exceptions import BaseUrlMissing, InvalidEmail
from .ports import (
    NotificationSender,
    Outcome,
    OutcomeKind,
    TokenStore,
    VerificationRecord,
    VerificationStatus,
)

logger = logging.getLogger(__name__)

VERIFY_PATH = "/v1/verification/verify/{token}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def decide(record: VerificationRecord | None, now: datetime, window: timedelta) -> Outcome:
    """
    Decide the outcome of a verification attempt.

    Pure function: performs no I/O. The caller is responsible for the single
    store write when the outcome is SUCCESS.

    The validity interval is closed, [created_at, created_at + window]:
    a token presented exactly at created_at + window is still honored.

    Args:
        record: Stored record, or None if the token is unknown
        now: Current time (timezone-aware)
        window: Configured validity window

    Returns:
        Outcome describing the attempt
    """
    if record is None:
        return Outcome.invalid_token()

    if record.is_verified:
        return Outcome.already_verified(record.email)

    if record.created_at + window < now:
        return Outcome.expired(record.email)

    return Outcome.success(record.email)


def build_verification_url(base_url: str, token: str) -> str:
    """Join an absolute base URL with the fixed verify path."""
    return base_url.rstrip("/") + VERIFY_PATH.format(token=token)


@dataclass
class VerificationService:
    """
    Domain service for email verification.

    Orchestrates the submission flow (validate, issue token, persist,
    notify) and the verification flow (read, decide, conditional write).
    """

    store: TokenStore
    sender: NotificationSender
    window: timedelta
    base_url: str | None = None
    clock: Callable[[], datetime] = field(default=utc_now)

    async def submit(self, email: str, request_base_url: str | None = None) -> str:
        """
        Issue a verification token for an email address and send the link.

        Args:
            email: Address to verify
            request_base_url: Scheme and host of the inbound request, used
                when no base URL is configured

        Returns:
            The issued token

        Raises:
            InvalidEmail: If the address is malformed (nothing is stored or sent)
            BaseUrlMissing: If no base URL is configured or supplied (nothing is stored or sent)
            StoreUnavailable: If the record could not be persisted (nothing is sent)
            SendFailure: If delivery failed (the PENDING record is kept)
        """
        normalized_email = self._validate_email(email)
        base_url = self._resolve_base_url(request_base_url)
        token = self._generate_token()

        record = VerificationRecord(
            token=token,
            email=normalized_email,
            status=VerificationStatus.PENDING,
            created_at=self.clock(),
        )
        await self.store.put(record)
        logger.info("Issued verification token %s... for %s", token[:8], normalized_email)

        url = build_verification_url(base_url, token)
        await self.sender.send(normalized_email, url)
        return token

    async def verify(self, token: str) -> Outcome:
        """
        Process a verification attempt for a token.

        Reads the record, decides the outcome, and on SUCCESS performs one
        conditional PENDING -> VERIFIED write. If another attempt completed
        the transition first, the result is ALREADY_VERIFIED.

        Raises:
            StoreUnavailable: If the store cannot be read or written
        """
        record = await self.store.get(token)
        outcome = decide(record, self.clock(), self.window)

        if outcome.kind != OutcomeKind.SUCCESS:
            logger.warning(
                "Verification attempt for token %s... resolved to %s",
                token[:8],
                outcome.kind.value,
            )
            return outcome

        if not await self.store.mark_verified(token):
            logger.warning("Token %s... was verified by a concurrent request", token[:8])
            return Outcome.already_verified(outcome.email)

        logger.info("Verified %s", outcome.email)
        return outcome

    async def health_check(self) -> bool:
        """Return True if the token store is reachable."""
        return await self.store.ping()

    def _resolve_base_url(self, request_base_url: str | None) -> str:
        """
        Pick the base URL for verification links.

        Applies: configured base URL, falling back to the inbound request's
        own scheme and host.
        """
        base_url = self.base_url or request_base_url
        if not base_url:
            raise BaseUrlMissing()
        return base_url

    def _validate_email(self, email: str) -> str:
        """
        Check address syntax and return its normalized form.

        Deliverability (DNS) is not checked.
        """
        try:
            result = validate_email(email.strip(), check_deliverability=False)
        except EmailNotValidError as exc:
            raise InvalidEmail(email, str(exc)) from exc
        return result.normalized

    def _generate_token(self) -> str:
        """
        Generate an unguessable URL-safe token.

        32 bytes from the secrets module (256 bits). Uniqueness rests on
        entropy alone; the store is not consulted.
        """
        return secrets.token_urlsafe(32)
