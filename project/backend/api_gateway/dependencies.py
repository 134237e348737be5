"""
FastAPI dependencies.

Collaborator client factories and the shared error response shape.
Tests swap clients via app.dependency_overrides.
"""

from fastapi.responses import JSONResponse

from modules.payments.client import PaymentClient
from modules.stock_footage.client import StockFootageClient
from modules.transcriber.client import TranscriptionClient


def get_stock_footage_client() -> StockFootageClient:
    return StockFootageClient()


def get_transcription_client() -> TranscriptionClient:
    return TranscriptionClient()


def get_payment_client() -> PaymentClient:
    return PaymentClient()


def error_response(status_code: int, message: str) -> JSONResponse:
    """Error payload returned by every route: {"error": message}."""
    return JSONResponse({"error": message}, status_code=status_code)
