"""Success-page endpoints.

Stripe redirects the customer here after checkout. The confirmation is
rendered from the live Checkout Session, not from the order record, so it
is correct even when the webhook has not arrived yet.

Provides:
- GET /checkout/success?session_id=cs_... (HTML)
- GET /api/checkout/sessions/{session_id} (JSON)
"""

import os

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette.status import HTTP_303_SEE_OTHER

from commerce.models.errors import CheckoutError
from commerce.services.checkout_service import DEFAULT_FRONTEND_URL
from commerce.services.success_verifier import SuccessVerifier
from commerce.utils.logging import get_logger
from commerce.utils.tickets import format_ticket_code
from commerce_api.dependencies import get_success_verifier
from commerce_api.exceptions import get_http_status_for_error
from commerce_api.models.checkout import ConfirmationResponse
from commerce_api.models.common import ErrorResponse
from commerce_api.templating import render_template

logger = get_logger(__name__)

# Served outside /api: this is where the Stripe success_url points
page_router = APIRouter(tags=["checkout"])
router = APIRouter(prefix="/checkout", tags=["checkout"])


def _frontend_url() -> str:
    return os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL).rstrip("/")


@page_router.get(
    "/checkout/success",
    summary="Checkout success page",
    response_class=HTMLResponse,
    responses={
        303: {"description": "No session id; redirected to the events page"},
        400: {"description": "Invalid or foreign session"},
        402: {"description": "Session not paid"},
    },
)
async def checkout_success_page(
    session_id: str | None = None,
    verifier: SuccessVerifier = Depends(get_success_verifier),
) -> Response:
    """Render the confirmation for a paid checkout session."""
    frontend_url = _frontend_url()
    if not session_id:
        return RedirectResponse(f"{frontend_url}/events", status_code=HTTP_303_SEE_OTHER)

    try:
        confirmation = verifier.verify(session_id)
    except CheckoutError as e:
        logger.info("Success page for %s rejected: %s", session_id, e.code.value)
        return render_template(
            "error.html",
            status_code=get_http_status_for_error(e.code),
            message=e.message,
            recovery=e.recovery,
            error_code=e.code.value,
            frontend_url=frontend_url,
        )

    return render_template(
        "success.html",
        c=confirmation,
        ticket_code=(
            format_ticket_code(confirmation.ticket_code) if confirmation.ticket_code else None
        ),
        frontend_url=frontend_url,
    )


@router.get(
    "/sessions/{session_id}",
    summary="Verify a checkout session",
    response_model=ConfirmationResponse,
    response_model_exclude_none=True,
    responses={
        400: {"description": "Invalid or foreign session", "model": ErrorResponse},
        402: {"description": "Session not paid", "model": ErrorResponse},
        502: {"description": "Stripe API error", "model": ErrorResponse},
    },
)
async def get_checkout_session(
    session_id: str,
    verifier: SuccessVerifier = Depends(get_success_verifier),
) -> ConfirmationResponse:
    """Return verified confirmation details for a paid checkout session."""
    return ConfirmationResponse.from_confirmation(verifier.verify(session_id))
