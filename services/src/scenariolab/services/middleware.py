"""Custom ASGI middleware components used by the service."""

from __future__ import annotations

import json

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .http import CORRELATION_ID_HEADER, build_error_payload, ensure_correlation_id
from .service_errors import HTTP_STATUS_PAYLOAD_TOO_LARGE


class BodySizeLimitMiddleware:
    """Reject requests whose bodies exceed a configured byte threshold."""

    def __init__(self, app: ASGIApp, *, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be greater than zero.")
        self.app = app
        self._limit = limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = {key.decode("latin-1"): value.decode("latin-1") for key, value in scope["headers"]}
        content_length_header = headers.get("content-length")
        if content_length_header:
            content_length = self._parse_content_length(content_length_header)
            if content_length is not None and content_length > self._limit:
                await self._reject(send)
                return

        consumed = 0

        async def limited_receive() -> Message:
            nonlocal consumed
            message = await receive()
            if message["type"] == "http.request":
                consumed += len(message.get("body", b""))
                if consumed > self._limit:
                    await self._reject(send)
                    return {"type": "http.disconnect"}
            return message

        await self.app(scope, limited_receive, send)

    async def _reject(self, send: Send) -> None:
        correlation_id = ensure_correlation_id()
        payload = build_error_payload(
            code="PAYLOAD_TOO_LARGE",
            correlation_id=correlation_id,
            details={"limitBytes": self._limit},
        )
        await _send_json_response(
            send,
            status_code=HTTP_STATUS_PAYLOAD_TOO_LARGE,
            content=payload.to_payload(),
            correlation_id=correlation_id,
        )

    @staticmethod
    def _parse_content_length(value: str) -> int | None:
        try:
            return int(value)
        except ValueError:
            return None


async def _send_json_response(
    send: Send,
    *,
    status_code: int,
    content: dict[str, object],
    correlation_id: str,
) -> None:
    """Send a minimal JSON response without creating a FastAPI response."""

    body = json.dumps(content, ensure_ascii=False).encode("utf-8")
    headers = [
        (b"content-type", b"application/json"),
        (b"content-length", str(len(body)).encode("latin-1")),
        (CORRELATION_ID_HEADER.encode("latin-1"), correlation_id.encode("latin-1")),
    ]
    await send({"type": "http.response.start", "status": status_code, "headers": headers})
    await send({"type": "http.response.body", "body": body, "more_body": False})


__all__ = ["BodySizeLimitMiddleware"]
