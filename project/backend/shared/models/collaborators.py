"""
Collaborator data models.

Shapes of the responses returned by the stock footage, transcription and
payment providers, reduced to the fields the service uses.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class StockVideoRendition(BaseModel):
    url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None


class StockVideoHit(BaseModel):
    """One search hit from the stock video provider."""

    id: int
    tags: str = ""
    videos: Dict[str, StockVideoRendition] = Field(default_factory=dict)

    def best_url(self, preference: List[str]) -> Optional[str]:
        """Return the first rendition URL in preference order."""
        for rendition in preference:
            candidate = self.videos.get(rendition)
            if candidate is not None and candidate.url:
                return candidate.url
        return None


class TranscriptStatus(BaseModel):
    """Polled state of a transcription job."""

    id: str
    status: str
    error: Optional[str] = None


class PaymentVerification(BaseModel):
    """Verification result for a payment reference."""

    reference: str
    status: Optional[str] = None
    amount: Optional[int] = Field(default=None, description="Amount in the smallest currency unit")

    def matches(self, expected_amount: int) -> bool:
        """True when the payment succeeded for exactly the expected amount."""
        return self.status == "success" and self.amount == expected_amount
