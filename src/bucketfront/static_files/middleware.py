"""Starlette middleware serving static files out of an S3 bucket."""

from __future__ import annotations

from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from ..common.metrics import GLOBAL_REGISTRY, Counter
from .config import FilesConfig
from .fetcher import ObjectFetcher
from .models import FetchError, FetchNotFound, RequestContext, StaticFileError
from .observers import notify_error
from .paths import resolve_candidates
from .responses import backend_failure, invalid_method, not_found, object_response

LOGGER = structlog.get_logger("bucketfront.static_files")

REQUEST_COUNTER = GLOBAL_REGISTRY.register(
    Counter("bucketfront_static_requests_total", "Requests handled by the static files middleware"))
HIT_COUNTER = GLOBAL_REGISTRY.register(Counter("bucketfront_static_hits_total", "Requests served from the bucket"))
MISS_COUNTER = GLOBAL_REGISTRY.register(Counter("bucketfront_static_misses_total", "Candidate keys missing from the bucket"))
NOT_FOUND_COUNTER = GLOBAL_REGISTRY.register(
    Counter("bucketfront_static_not_found_total", "Requests answered with 404 after every candidate missed"))
ERROR_COUNTER = GLOBAL_REGISTRY.register(Counter("bucketfront_static_errors_total", "Requests failed by S3 errors"))
REJECTED_COUNTER = GLOBAL_REGISTRY.register(
    Counter("bucketfront_static_rejected_total", "Requests rejected for using a method other than GET"))


class S3StaticFilesMiddleware(BaseHTTPMiddleware):
    """Serve GET requests from ``bucket``; anything skipped goes to the wrapped app.

    Usage::

        app.add_middleware(S3StaticFilesMiddleware, bucket="site-assets", config=FilesConfig(spa=True))
    """

    def __init__(self, app: ASGIApp, bucket: str, config: Optional[FilesConfig] = None) -> None:
        super().__init__(app)
        self.bucket = bucket
        self.config = (config or FilesConfig()).finalize()
        self.fetcher = ObjectFetcher(self.config.s3_client, self.config.summary)

    def request_id(self, request: Request) -> str:
        request_id = request.headers.get(self.config.request_id_header)
        if not request_id:
            # Assigned by an upstream request id middleware, if any.
            request_id = getattr(request.state, "request_id", None)
        return request_id or ""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        config = self.config
        if config.skipper(request):
            return await call_next(request)

        context = RequestContext(
            request_id=self.request_id(request),
            method=request.method,
            path=request.url.path,
        )
        if context.method != "GET":
            REJECTED_COUNTER.inc()
            return invalid_method(context.method, context.path)

        REQUEST_COUNTER.inc()
        for key in resolve_candidates(context.path, config.spa, config.index):
            outcome = await self.fetcher.fetch(self.bucket, key, context.request_id)
            if isinstance(outcome, FetchNotFound):
                MISS_COUNTER.inc()
                continue
            if isinstance(outcome, FetchError):
                return self.fail(context, outcome.key, outcome.cause)
            try:
                cache_control = config.cache_headers.compute(outcome.info)
            except Exception as exc:  # noqa: BLE001 - reported like a backend failure
                outcome.body.close()
                return self.fail(context, outcome.info.key, exc)
            HIT_COUNTER.inc()
            return object_response(outcome, cache_control)

        NOT_FOUND_COUNTER.inc()
        LOGGER.debug("static_file_not_found", path=context.path, request_id=context.request_id)
        return not_found(context.path)

    def fail(self, context: RequestContext, key: str, cause: BaseException) -> Response:
        ERROR_COUNTER.inc()
        error = StaticFileError(cause, path=context.path, key=key, request_id=context.request_id)
        notify_error(self.config.on_error, error, context)
        return backend_failure()
