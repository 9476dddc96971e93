"""
Payment Routes — Payment links, payouts and gateway webhooks.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from opsdesk.database import get_db
from opsdesk.exceptions import ConfigurationError, ValidationError
from opsdesk.schemas.schemas import (
    PaymentLinkCreateRequest, PaymentLinkCreateResponse, PayoutCreateRequest,
    PayoutCreateResponse, PaymentLinkStatusResponse, WebhookAck, ErrorResponse,
)
from opsdesk.services.payment_service import PaymentService
from opsdesk.services.webhook_service import WebhookService

logger = logging.getLogger("opsdesk.payments.routes")

router = APIRouter(prefix="/api/payments", tags=["Payments"])

GENERIC_ERROR = "Oops! Something went wrong!"


def _server_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "message": GENERIC_ERROR})


@router.post(
    "/links",
    response_model=PaymentLinkCreateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": PaymentLinkCreateResponse}},
)
def create_payment_link(payload: PaymentLinkCreateRequest):
    """Create a payment link with the active gateway and notify the customer."""
    link_config = {
        "amount": payload.amount,
        "linkExpiryTime": payload.link_expiry_time,
        "linkPurpose": payload.link_purpose,
        "linkNotify": payload.link_notify,
    }

    try:
        result = PaymentService().create_payment_link(link_config, payload.contact_id, payload.link_type)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is False:
        return _server_error()

    return PaymentLinkCreateResponse(
        success=True,
        message="Payment link created successfully!",
        data=result.model_dump(by_alias=True),
    )


@router.post(
    "/payouts",
    response_model=PayoutCreateResponse,
    responses={400: {"model": ErrorResponse}},
)
def create_payout_link(payload: PayoutCreateRequest):
    """Disburse funds to a contact's UPI ID, bank account or card."""
    link_config = payload.model_dump(by_alias=True, exclude={"contact_id", "link_type"})

    try:
        result = PaymentService().create_payout_link(link_config, payload.contact_id, payload.link_type)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result is False:
        return _server_error()

    return PayoutCreateResponse(message="Payout created successfully!", data=result)


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(request: Request):
    """Gateway status callback. Always acknowledged with 200."""
    try:
        event = await request.json()
    except ValueError:
        logger.warning("Webhook body is not JSON: %r", (await request.body())[:500])
        return WebhookAck(message="Details logged successfully!")

    logger.info("Webhook received: %s", event)
    outcome = await run_in_threadpool(WebhookService().handle_webhook, event)
    logger.info("Webhook outcome: %s", outcome)
    return WebhookAck(message="Details logged successfully!")


@router.get("/types")
def get_payment_types():
    """Configured linkType → prefix map."""
    try:
        return PaymentService.get_payment_types()
    except ConfigurationError as e:
        logger.error("Error in getting payment types: %s", e)
        return _server_error()


@router.get("/links/{link_id_formatted}", response_model=PaymentLinkStatusResponse)
def get_payment_link(link_id_formatted: str, db: Session = Depends(get_db)):
    """Current state of a stored payment link."""
    link = PaymentService.get_payment_link(db, link_id_formatted)
    if not link:
        raise HTTPException(status_code=404, detail="Payment link not found")
    return link
