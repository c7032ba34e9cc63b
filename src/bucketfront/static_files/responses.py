"""HTTP responses produced by the static files middleware."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator

from starlette.responses import JSONResponse, StreamingResponse
from starlette.types import Receive, Scope, Send

from .models import FetchSuccess, format_rfc3339

CHUNK_SIZE = 64 * 1024


async def iter_body(body: Any, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    while True:
        chunk = await asyncio.to_thread(body.read, chunk_size)
        if not chunk:
            break
        yield chunk


class ObjectStreamResponse(StreamingResponse):
    """Stream an S3 object body, closing it however the response ends."""

    def __init__(self, body: Any, *, media_type: str | None, headers: dict[str, str], chunk_size: int = CHUNK_SIZE):
        super().__init__(iter_body(body, chunk_size), media_type=media_type, headers=headers)
        self._object_body = body
        self._body_closed = False

    def close_body(self) -> None:
        if not self._body_closed:
            self._body_closed = True
            self._object_body.close()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.close_body()


def object_response(result: FetchSuccess, cache_control: str) -> ObjectStreamResponse:
    headers = {"Cache-Control": cache_control}
    # Passed as a raw header so Starlette does not append a charset to text types.
    if result.info.content_type:
        headers["Content-Type"] = result.info.content_type
    # Diagnostic headers for troubleshooting.
    if result.info.etag:
        headers["ETag"] = result.info.etag
    if result.info.last_modified is not None:
        headers["Last-Modified"] = format_rfc3339(result.info.last_modified)
    return ObjectStreamResponse(result.body, media_type=None, headers=headers)


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse({"detail": detail}, status_code=status_code)


def invalid_method(method: str, path: str) -> JSONResponse:
    return _error(400, f"invalid request method: {method} path: {path}")


def not_found(path: str) -> JSONResponse:
    return _error(404, f"document not found: {path}")


def backend_failure() -> JSONResponse:
    return _error(500, "failed to process request")
