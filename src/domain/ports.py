"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the value types shared across layers and the
interfaces (ports) that the domain requires from infrastructure.
Adapters implement these protocols.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Protocol


class VerificationStatus(str, Enum):
    """
    Stored status of a verification record.

    State Transitions (forward-only):
    - PENDING -> VERIFIED (link followed within the validity window)

    Expired and invalid are never stored; they are derived at read time
    from status and created_at.
    """

    PENDING = "PENDING"
    VERIFIED = "VERIFIED"


class OutcomeKind(Enum):
    """Closed set of verification attempt results."""

    SUCCESS = "success"
    ALREADY_VERIFIED = "already-verified"
    EXPIRED = "expired"
    INVALID_TOKEN = "invalid"


@dataclass(frozen=True)
class Outcome:
    """
    Result of a verification attempt.

    email is known for every kind except INVALID_TOKEN.
    """

    kind: OutcomeKind
    email: str | None = None

    @classmethod
    def success(cls, email: str) -> "Outcome":
        return cls(OutcomeKind.SUCCESS, email)

    @classmethod
    def already_verified(cls, email: str) -> "Outcome":
        return cls(OutcomeKind.ALREADY_VERIFIED, email)

    @classmethod
    def expired(cls, email: str) -> "Outcome":
        return cls(OutcomeKind.EXPIRED, email)

    @classmethod
    def invalid_token(cls) -> "Outcome":
        return cls(OutcomeKind.INVALID_TOKEN)


@dataclass(frozen=True)
class VerificationRecord:
    """A single issued token and the address it verifies."""

    token: str
    email: str
    status: VerificationStatus
    created_at: datetime

    @property
    def is_verified(self) -> bool:
        return self.status == VerificationStatus.VERIFIED

    def mark_verified(self) -> "VerificationRecord":
        """Return a copy in VERIFIED state; created_at is preserved."""
        return replace(self, status=VerificationStatus.VERIFIED)


class TokenStore(Protocol):
    """Port interface for verification record persistence."""

    async def put(self, record: VerificationRecord) -> None:
        """
        Insert or fully overwrite the record at record.token.

        Must be durable before returning.

        Raises:
            StoreUnavailable: If the storage backend cannot be reached
        """
        ...

    async def get(self, token: str) -> VerificationRecord | None:
        """
        Point lookup by token.

        Returns:
            The stored record, or None for an unknown token
        """
        ...

    async def mark_verified(self, token: str) -> bool:
        """
        Atomically set VERIFIED only if the record is currently PENDING.

        Returns:
            True if this call performed the transition, False if the record
            was absent or already VERIFIED
        """
        ...

    async def ping(self) -> bool:
        """Return True if the backend answers a trivial query."""
        ...


class NotificationSender(Protocol):
    """Port interface for verification message delivery."""

    async def send(self, email: str, verification_url: str) -> None:
        """
        Deliver the verification link to the given address.

        Args:
            email: Recipient email address
            verification_url: Absolute link embedding the token

        Raises:
            SendFailure: If the message could not be dispatched
        """
        ...
