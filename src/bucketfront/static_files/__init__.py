"""Serve static files from an S3 bucket through Starlette/FastAPI middleware.

Requests are mapped to candidate object keys (the path, then the index
document in single-page-app mode), fetched in order, and streamed back with
the stored content type and a configurable ``Cache-Control`` header.
"""

from .config import FilesConfig, never_skip, skip_prefixes
from .fetcher import ObjectFetcher
from .middleware import S3StaticFilesMiddleware
from .models import FetchError, FetchNotFound, FetchOutcome, FetchSuccess, FileInfo, RequestContext, StaticFileError
from .observers import (
    LoggingErrorObserver,
    LoggingSummaryObserver,
    NoopErrorObserver,
    NoopSummaryObserver,
)
from .paths import resolve_candidates
from .policies import NO_CACHE_DIRECTIVES, CacheNothing, MaxAgePolicy
from .storage import build_s3_client

__all__ = [
    "CacheNothing",
    "FetchError",
    "FetchNotFound",
    "FetchOutcome",
    "FetchSuccess",
    "FileInfo",
    "FilesConfig",
    "LoggingErrorObserver",
    "LoggingSummaryObserver",
    "MaxAgePolicy",
    "NO_CACHE_DIRECTIVES",
    "NoopErrorObserver",
    "NoopSummaryObserver",
    "ObjectFetcher",
    "RequestContext",
    "S3StaticFilesMiddleware",
    "StaticFileError",
    "build_s3_client",
    "never_skip",
    "resolve_candidates",
    "skip_prefixes",
]
