"""
FastAPI application.

Wires routes, CORS, the body size limit and the {"error": ...} response shape.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api_gateway.dependencies import error_response
from api_gateway.middleware import BodySizeLimitMiddleware
from api_gateway.routes import mux, payments, stock, transcript
from modules.assembler.utils import check_ffmpeg_available
from shared.config import settings
from shared.logging import get_logger

logger = get_logger(__name__)


def create_app(max_request_bytes: Optional[int] = None) -> FastAPI:
    """
    Build the application.

    Args:
        max_request_bytes: Body size cap (defaults to settings.max_request_bytes)
    """
    app = FastAPI(title="Music Video Assembler", version="0.1.0")

    app.add_middleware(
        BodySizeLimitMiddleware,
        max_bytes=max_request_bytes or settings.max_request_bytes
    )
    if settings.frontend_url:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.frontend_url],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Invalid request", extra={"path": request.url.path, "errors": str(exc.errors())})
        return error_response(400, "Invalid request")

    @app.get("/health")
    async def health():
        return {"status": "ok", "ffmpeg_available": check_ffmpeg_available()}

    app.include_router(mux.router, prefix="/api", tags=["mux"])
    app.include_router(transcript.router, prefix="/api", tags=["transcript"])
    app.include_router(payments.router, prefix="/api", tags=["payments"])
    app.include_router(stock.router, prefix="/api", tags=["stock"])

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("api_gateway.main:app", host="0.0.0.0", port=8000)
