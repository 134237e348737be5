"""
Payment verification endpoint.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api_gateway.dependencies import error_response, get_payment_client
from modules.payments.client import PaymentClient
from shared.config import settings
from shared.errors import PaymentVerificationError
from shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class VerifyPaymentRequest(BaseModel):
    reference: Optional[str] = None


@router.post("/verify-payment")
async def verify_payment(
    body: VerifyPaymentRequest,
    client: PaymentClient = Depends(get_payment_client)
):
    """Grant the download only for a successful payment of the exact expected amount."""
    if not client.configured:
        return error_response(500, "Paystack secret key not configured")

    if not body.reference:
        return error_response(400, "Missing payment reference")

    try:
        verification = await client.verify(body.reference)
    except PaymentVerificationError as e:
        return error_response(e.status_code, str(e))
    except Exception as e:
        logger.error(f"Verification error: {e}", exc_info=True, extra={"reference": body.reference})
        return error_response(500, "Payment verification failed")

    if not verification.matches(settings.payment_expected_amount):
        logger.warning(
            "Payment rejected",
            extra={
                "reference": body.reference,
                "status": verification.status,
                "amount": verification.amount,
                "expected_amount": settings.payment_expected_amount
            }
        )
        return error_response(400, "Invalid payment amount or status")

    return {"success": True}
