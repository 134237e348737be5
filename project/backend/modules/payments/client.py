"""
Payment verification via Paystack.
"""
from typing import Optional

import httpx

from shared.config import settings
from shared.errors import PaymentVerificationError
from shared.logging import get_logger
from shared.models.collaborators import PaymentVerification

logger = get_logger("payments.client")


class PaymentClient:
    """Looks up a transaction reference with the payment gateway."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 20.0
    ):
        self.secret_key = secret_key if secret_key is not None else settings.paystack_secret_key
        self.base_url = base_url or settings.paystack_base_url
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    async def verify(self, reference: str) -> PaymentVerification:
        """
        Fetch the status and amount of a transaction.

        Raises:
            PaymentVerificationError: Not configured (500) or gateway HTTP error
                (carries the gateway's status code)
        """
        if not self.configured:
            raise PaymentVerificationError("Paystack secret key not configured")

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.get(
                f"{self.base_url}/transaction/verify/{reference}",
                headers={
                    "Authorization": f"Bearer {self.secret_key}",
                    "Content-Type": "application/json",
                }
            )

        if response.is_error:
            logger.error(
                "Paystack API error",
                extra={"reference": reference, "status_code": response.status_code, "body": response.text}
            )
            raise PaymentVerificationError("Paystack verification failed", status_code=response.status_code)

        data = response.json().get("data") or {}
        verification = PaymentVerification(
            reference=reference,
            status=data.get("status"),
            amount=data.get("amount")
        )
        logger.info(
            f"Verified payment {reference}: {verification.status}",
            extra={"reference": reference, "status": verification.status, "amount": verification.amount}
        )
        return verification
