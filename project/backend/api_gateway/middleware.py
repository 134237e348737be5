"""
Request body size limit.

Rejects oversized uploads with 413, using the Content-Length header when
present and a running byte count otherwise.
"""

from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from api_gateway.dependencies import error_response
from shared.logging import get_logger

logger = get_logger(__name__)


class BodySizeLimitMiddleware:
    """Pure ASGI middleware capping the request body at `max_bytes`."""

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    def _limit_message(self) -> str:
        return f"Request body exceeds {self.max_bytes} byte limit"

    def _reject(self) -> JSONResponse:
        return error_response(413, self._limit_message())

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        content_length = headers.get(b"content-length")
        if content_length is not None and content_length.isdigit() and int(content_length) > self.max_bytes:
            logger.warning(
                "Rejected oversized request",
                extra={"path": scope.get("path"), "content_length": int(content_length)}
            )
            await self._reject()(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning(
                        "Rejected oversized streamed request",
                        extra={"path": scope.get("path"), "received": received}
                    )
                    # Rendered as 413 by the app's HTTPException handler
                    raise HTTPException(status_code=413, detail=self._limit_message())
            return message

        await self.app(scope, limited_receive, send)
