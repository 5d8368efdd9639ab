"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for the email verification
token lifecycle. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .exceptions import (
    BaseUrlMissing,
    InvalidEmail,
    SendFailure,
    StoreUnavailable,
    VerificationError,
)
from .ports import (
    NotificationSender,
    Outcome,
    OutcomeKind,
    TokenStore,
    VerificationRecord,
    VerificationStatus,
)
from .verification import VerificationService, build_verification_url, decide

__all__ = [
    "BaseUrlMissing",
    "InvalidEmail",
    "NotificationSender",
    "Outcome",
    "OutcomeKind",
    "SendFailure",
    "StoreUnavailable",
    "TokenStore",
    "VerificationError",
    "VerificationRecord",
    "VerificationService",
    "VerificationStatus",
    "build_verification_url",
    "decide",
]
