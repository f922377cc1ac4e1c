import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from app.api.dependencies import get_chapa_client
from app.core.config import settings
from app.core.exceptions import APIException, ErrorCode, SystemException, ValidationException
from app.core.security import verify_webhook_signature
from app.schemas.payment import (
    REQUIRED_PAYMENT_FIELDS,
    PaymentInitResponse,
    PaymentRequest,
    VerifyResponse,
    WebhookAck,
    WebhookPayload,
    is_blank,
)
from app.services.chapa import ChapaClient

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments"])

MISSING_FIELDS_MESSAGE = f"Missing required fields: {', '.join(REQUIRED_PAYMENT_FIELDS)}"


def _parse_json_object(body: bytes) -> Dict[str, Any]:
    """Decode a request body, treating anything but a JSON object as empty"""
    try:
        data = json.loads(body) if body else {}
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


@router.post("/payment", response_model=PaymentInitResponse)
async def initialize_payment(request: Request, chapa: ChapaClient = Depends(get_chapa_client)):
    """Initialize a Chapa checkout for the caller"""

    payment_request = PaymentRequest.model_validate(_parse_json_object(await request.body()))
    if payment_request.missing_fields():
        raise ValidationException(ErrorCode.MISSING_FIELDS, MISSING_FIELDS_MESSAGE)

    try:
        payment_data = await chapa.initialize_payment(payment_request.model_dump())
    except APIException as e:
        logger.error("Payment error: %s", e)
        raise
    except Exception as e:
        logger.error("Payment error: %s", e)
        raise SystemException(str(e) or "An error occurred while processing the payment") from e

    return PaymentInitResponse(data=payment_data)


@router.post("/webhook/chapa", response_model=WebhookAck)
async def chapa_webhook(request: Request, chapa: ChapaClient = Depends(get_chapa_client)):
    """Receive Chapa payment notifications.

    Always acknowledges so Chapa does not redeliver; verification failures
    are only logged.
    """

    try:
        raw_body = await request.body()
        payload = WebhookPayload.model_validate(_parse_json_object(raw_body))
        logger.info("Webhook received: %s", payload.model_dump())

        trusted = True
        if settings.CHAPA_WEBHOOK_SECRET:
            trusted = verify_webhook_signature(settings.CHAPA_WEBHOOK_SECRET, raw_body, request.headers)
            if not trusted:
                logger.warning("Invalid webhook signature for tx_ref %s, skipping verification", payload.tx_ref)

        if trusted and not is_blank(payload.tx_ref) and not is_blank(payload.status):
            tx_ref = str(payload.tx_ref)
            try:
                verification = await chapa.verify_payment(tx_ref)
                logger.info("Payment %s for transaction %s: %s", payload.status, tx_ref, verification)
                if payload.status == "success":
                    logger.info("Payment successful for transaction: %s", tx_ref)
            except Exception as e:
                logger.error("Webhook verification failed for %s: %s", tx_ref, e)
    except Exception as e:
        logger.exception("Webhook error")
        raise SystemException("An error occurred while processing the webhook") from e

    return WebhookAck()


@router.get("/verify/{tx_ref}", response_model=VerifyResponse)
@router.get("/verify/", response_model=VerifyResponse, include_in_schema=False)
async def verify_payment(tx_ref: str = "", chapa: ChapaClient = Depends(get_chapa_client)):
    """Check a transaction's status with Chapa"""

    if not tx_ref:
        raise ValidationException(ErrorCode.MISSING_TX_REF, "Transaction reference is required")

    try:
        verification = await chapa.verify_payment(tx_ref)
    except APIException as e:
        logger.error("Verification error: %s", e)
        raise
    except Exception as e:
        logger.error("Verification error: %s", e)
        raise SystemException(str(e) or "An error occurred while verifying the payment") from e

    return VerifyResponse(data=verification)
