"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, EmailStr, Field


class SubmitRequest(BaseModel):
    """Request model for email submission."""

    email: EmailStr = Field(..., description="Address to verify")


class SubmitResponse(BaseModel):
    """Response model for an accepted submission."""

    message: str
    email: str
    expires_in_seconds: int


class VerifyResponse(BaseModel):
    """Response model for a verification attempt."""

    status: str = Field(
        ..., description="One of: success, already-verified, expired, invalid"
    )
    message: str
    email: str | None = None


class HealthResponse(BaseModel):
    """Response model for the health endpoint."""

    status: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
