"""
Domain exceptions - Semantic error types for email verification.

This module defines domain-specific exceptions that communicate
failures of the system without leaking infrastructure details.

Expired, already-verified and unknown tokens are not exceptions; they
are ordinary Outcome values returned by the state machine.
"""


class VerificationError(Exception):
    """Base class for email verification domain errors."""

    pass


class InvalidEmail(VerificationError):
    """Submitted address is not a syntactically valid email."""

    def __init__(self, email: str, reason: str) -> None:
        super().__init__(f"Invalid email address {email!r}: {reason}")
        self.email = email
        self.reason = reason


class StoreUnavailable(VerificationError):
    """Persistence layer is unreachable or returned an error."""

    def __init__(self, operation: str, token: str | None = None) -> None:
        detail = f"Token store unavailable during {operation}"
        if token is not None:
            detail += f" (token {token[:8]}...)"
        super().__init__(detail)
        self.operation = operation
        self.token = token


class SendFailure(VerificationError):
    """
    Verification message could not be dispatched.

    retryable distinguishes transient transport problems (connection
    refused, timeout) from provider rejections (unverified sender,
    refused recipient) that will fail again on retry.
    """

    def __init__(self, email: str, reason: str, retryable: bool = False) -> None:
        super().__init__(f"Failed to send verification message to {email}: {reason}")
        self.email = email
        self.reason = reason
        self.retryable = retryable


class BaseUrlMissing(VerificationError):
    """No absolute base URL is available to build a verification link."""

    def __init__(self) -> None:
        super().__init__("No base URL configured and no request base URL supplied")
