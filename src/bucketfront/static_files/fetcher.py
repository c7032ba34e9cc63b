"""Fetch candidate keys from the bucket and classify the result."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import structlog
from botocore.exceptions import ClientError
from opentelemetry import trace

from ..common.metrics import GLOBAL_REGISTRY, Histogram
from .models import FetchError, FetchNotFound, FetchOutcome, FetchSuccess, FileInfo, format_rfc3339
from .observers import SummaryObserver, notify_success
from .storage import ObjectStorageClient

LOGGER = structlog.get_logger("bucketfront.static_files.fetcher")
TRACER = trace.get_tracer("bucketfront.static_files")

FETCH_LATENCY_HISTOGRAM = GLOBAL_REGISTRY.register(
    Histogram(
        "bucketfront_s3_fetch_latency_seconds",
        buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
        description="Latency of successful S3 GetObject calls",
    )
)

MISSING_KEY_CODES = frozenset({"NoSuchKey"})


def humanize_latency(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.1f}µs"
    if seconds < 1.0:
        return f"{seconds * 1e3:.1f}ms"
    return f"{seconds:.3f}s"


def _call_get_object(
    client: ObjectStorageClient, bucket: str, key: str
) -> tuple[Optional[dict[str, Any]], Optional[Exception]]:
    # Executor futures rebuild TimeoutError on the way out; errors travel back as values.
    try:
        return client.get_object(Bucket=bucket, Key=key), None
    except Exception as exc:  # noqa: BLE001 - re-raised on the event loop
        return None, exc


def _release_abandoned(call: asyncio.Future) -> None:
    if call.cancelled() or call.exception() is not None:
        return
    response, _ = call.result()
    body = (response or {}).get("Body")
    if body is not None:
        body.close()
        LOGGER.debug("abandoned_s3_body_closed")


async def get_object(client: ObjectStorageClient, bucket: str, key: str) -> dict[str, Any]:
    """Run ``GetObject`` in a worker thread.

    Errors raised by the client reach the caller as the same exception
    object. Cancelling the caller abandons the call; if it still completes,
    the body it returns is closed as soon as it lands.
    """
    call = asyncio.ensure_future(asyncio.to_thread(_call_get_object, client, bucket, key))
    try:
        response, error = await asyncio.shield(call)
    except asyncio.CancelledError:
        call.add_done_callback(_release_abandoned)
        raise
    if error is not None:
        raise error
    return response


class ObjectFetcher:
    def __init__(self, client: ObjectStorageClient, summary: SummaryObserver, tracer: Optional[trace.Tracer] = None):
        self._client = client
        self._summary = summary
        self._tracer = tracer or TRACER

    def is_missing(self, exc: BaseException) -> bool:
        modelled = getattr(getattr(self._client, "exceptions", None), "NoSuchKey", None)
        if isinstance(modelled, type) and isinstance(exc, modelled):
            return True
        if isinstance(exc, ClientError):
            return exc.response.get("Error", {}).get("Code", "") in MISSING_KEY_CODES
        return False

    async def fetch(self, bucket: str, key: str, request_id: str) -> FetchOutcome:
        with self._tracer.start_as_current_span(
            "static_files.fetch",
            attributes={"bucketfront.bucket": bucket, "bucketfront.key": key},
        ) as span:
            start = time.perf_counter()
            try:
                response = await get_object(self._client, bucket, key)
            except Exception as exc:  # noqa: BLE001 - classified into an outcome
                if self.is_missing(exc):
                    span.set_attribute("bucketfront.outcome", "not_found")
                    return FetchNotFound(key)
                span.set_attribute("bucketfront.outcome", "error")
                span.record_exception(exc)
                return FetchError(key, exc)
            latency = time.perf_counter() - start
            span.set_attribute("bucketfront.outcome", "found")

        FETCH_LATENCY_HISTOGRAM.observe(latency)
        info = FileInfo(
            id=request_id,
            bucket=bucket,
            key=key,
            name=key,
            etag=response.get("ETag") or "",
            last_modified=response.get("LastModified"),
            content_length=int(response.get("ContentLength") or 0),
            content_type=response.get("ContentType"),
        )
        notify_success(
            self._summary,
            {
                "id": info.id,
                "bucket": info.bucket,
                "key": info.key,
                "etag": info.etag,
                "last_modified": format_rfc3339(info.last_modified),
                "content_length": info.content_length,
                "latency": latency,
                "latency_human": humanize_latency(latency),
            },
        )
        return FetchSuccess(info=info, body=response["Body"], latency=latency)
