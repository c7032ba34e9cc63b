"""Middleware configuration and its construction-time defaults."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, Optional

from starlette.requests import Request

from .observers import ErrorObserver, NoopErrorObserver, NoopSummaryObserver, SummaryObserver
from .policies import CacheHeaderPolicy, CacheNothing
from .storage import ObjectStorageClient, build_s3_client

DEFAULT_REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_INDEX = "index.html"

Skipper = Callable[[Request], bool]


def never_skip(request: Request) -> bool:
    return False


def skip_prefixes(prefixes: Iterable[str]) -> Skipper:
    """Skip requests whose path equals a prefix or sits below it."""
    normalized = tuple(p.rstrip("/") for p in prefixes if p.strip("/"))

    def skipper(request: Request) -> bool:
        path = request.url.path
        return any(path == prefix or path.startswith(prefix + "/") for prefix in normalized)

    return skipper


@dataclass(frozen=True)
class FilesConfig:
    """Settings for serving a bucket through ``S3StaticFilesMiddleware``.

    Fields left unset are filled in by :meth:`finalize`, which the middleware
    calls once when it is constructed. ``region``, ``profile`` and
    ``endpoint_url`` are only used to build an S3 client when ``s3_client`` is
    not supplied.
    """

    skipper: Optional[Skipper] = None
    region: Optional[str] = None
    profile: Optional[str] = None
    endpoint_url: Optional[str] = None
    request_id_header: str = ""
    spa: bool = False
    index: str = ""
    cache_headers: Optional[CacheHeaderPolicy] = None
    summary: Optional[SummaryObserver] = None
    on_error: Optional[ErrorObserver] = None
    s3_client: Optional[ObjectStorageClient] = None

    def finalize(self) -> "FilesConfig":
        s3_client = self.s3_client
        if s3_client is None:
            s3_client = build_s3_client(self.region, self.profile, self.endpoint_url)
        return replace(
            self,
            skipper=self.skipper or never_skip,
            request_id_header=self.request_id_header or DEFAULT_REQUEST_ID_HEADER,
            index=self.index or DEFAULT_INDEX,
            cache_headers=self.cache_headers or CacheNothing(),
            summary=self.summary or NoopSummaryObserver(),
            on_error=self.on_error or NoopErrorObserver(),
            s3_client=s3_client,
        )
