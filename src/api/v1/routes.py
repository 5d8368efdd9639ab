"""
API v1 routes.

Defines REST endpoints for the Email Verification API.
"""

from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse, Response

from src.api.dependencies import get_verification_service, resolve_request_base_url
from src.api.models import ErrorResponse, SubmitRequest, SubmitResponse, VerifyResponse
from src.config.settings import Settings, get_settings
from src.domain.exceptions import InvalidEmail, SendFailure, StoreUnavailable
from src.domain.ports import Outcome, OutcomeKind
from src.domain.verification import VerificationService

router = APIRouter(prefix="/verification", tags=["verification"])

OUTCOME_MESSAGES = {
    OutcomeKind.SUCCESS: "Your email has been successfully verified. Thank you!",
    OutcomeKind.ALREADY_VERIFIED: "This email has already been verified.",
    OutcomeKind.EXPIRED: "Verification token has expired. Please request a new verification email.",
    OutcomeKind.INVALID_TOKEN: "Invalid verification token. The token may have expired or does not exist.",
}


@router.post(
    "/submit",
    response_model=SubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        400: {"model": ErrorResponse, "description": "Email address rejected"},
        422: {"description": "Validation error"},
        502: {"model": ErrorResponse, "description": "Verification email could not be sent"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Submit an email address for verification",
    description="Issue a single-use verification token and email a link containing it "
    "to the submitted address.",
)
async def submit(
    request_data: SubmitRequest,
    request: Request,
    service: VerificationService = Depends(get_verification_service),
    settings: Settings = Depends(get_settings),
) -> SubmitResponse:
    """
    Submit an email address and send a verification link.

    - **email**: Valid email address to verify

    The token is only delivered inside the emailed link.
    """
    try:
        await service.submit(request_data.email, resolve_request_base_url(request))
    except InvalidEmail as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.reason,
        ) from None
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable",
        ) from None
    except SendFailure:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Verification email could not be sent",
        ) from None

    return SubmitResponse(
        message="Verification email sent successfully. Please check your inbox.",
        email=request_data.email,
        expires_in_seconds=settings.verification_window_seconds,
    )


@router.get(
    "/verify/{token}",
    response_model=VerifyResponse,
    responses={
        303: {"description": "Redirect to the configured result page"},
        503: {"model": ErrorResponse, "description": "Storage unavailable"},
    },
    summary="Verify an email address",
    description="Follow a verification link. Expired, unknown and already-used tokens "
    "are reported in the response body, not as server errors.",
)
async def verify(
    token: str,
    service: VerificationService = Depends(get_verification_service),
    settings: Settings = Depends(get_settings),
) -> Response | VerifyResponse:
    """
    Verify the email address bound to a token.

    Returns JSON, or a 303 redirect when RESULT_PAGE_URL is configured.
    """
    try:
        outcome = await service.verify(token)
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable",
        ) from None

    body = render_outcome(outcome)

    if settings.result_page_url:
        return RedirectResponse(
            build_result_page_url(settings.result_page_url, body, token),
            status_code=status.HTTP_303_SEE_OTHER,
        )
    return body


def render_outcome(outcome: Outcome) -> VerifyResponse:
    """Map a domain Outcome to its public representation."""
    return VerifyResponse(
        status=outcome.kind.value,
        message=OUTCOME_MESSAGES[outcome.kind],
        email=outcome.email,
    )


def build_result_page_url(result_page_url: str, body: VerifyResponse, token: str) -> str:
    """Append status, message, email (when known) and token as query parameters."""
    params = {"status": body.status, "message": body.message}
    if body.email is not None:
        params["email"] = body.email
    params["token"] = token
    separator = "&" if "?" in result_page_url else "?"
    return f"{result_page_url}{separator}{urlencode(params, quote_via=quote)}"
