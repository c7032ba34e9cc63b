"""Static site service serving a single S3 bucket."""

from __future__ import annotations

import time
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import PlainTextResponse

from ..common.http_security import require_metrics_access
from ..common.metrics import GLOBAL_REGISTRY
from ..common.observability import configure_logging, configure_tracing, instrument_fastapi_app
from ..common.settings import StaticSiteSettings
from ..static_files import (
    CacheNothing,
    FilesConfig,
    LoggingErrorObserver,
    LoggingSummaryObserver,
    MaxAgePolicy,
    S3StaticFilesMiddleware,
    skip_prefixes,
)
from ..static_files.storage import ObjectStorageClient

SERVICE_NAME = "bucketfront.static_site"
SLOW_REQUEST_SECONDS = 1.0


def build_files_config(settings: StaticSiteSettings, s3_client: Optional[ObjectStorageClient] = None) -> FilesConfig:
    if settings.cache_max_age_seconds:
        cache_headers = MaxAgePolicy(settings.cache_max_age_seconds, index=settings.index)
    else:
        cache_headers = CacheNothing()
    logger = structlog.get_logger(SERVICE_NAME).bind(bucket=settings.bucket)
    return FilesConfig(
        skipper=skip_prefixes(settings.skip_prefixes),
        region=settings.region,
        profile=settings.profile,
        endpoint_url=settings.endpoint_url,
        request_id_header=settings.request_id_header,
        spa=settings.spa,
        index=settings.index,
        cache_headers=cache_headers,
        summary=LoggingSummaryObserver(logger),
        on_error=LoggingErrorObserver(logger),
        s3_client=s3_client,
    )


def get_settings(request: Request) -> StaticSiteSettings:
    return request.app.state.settings  # type: ignore[attr-defined]


def create_app(
    settings: Optional[StaticSiteSettings] = None,
    s3_client: Optional[ObjectStorageClient] = None,
) -> FastAPI:
    settings = settings or StaticSiteSettings()
    configure_logging(SERVICE_NAME, settings.log_level)
    configure_tracing(
        service_name=SERVICE_NAME,
        endpoint=settings.otel_exporter_endpoint,
        headers=settings.otel_exporter_headers,
        sampler_ratio=settings.otel_sampler_ratio,
    )
    logger = structlog.get_logger(SERVICE_NAME)

    app = FastAPI()
    app.state.settings = settings
    app.add_middleware(
        S3StaticFilesMiddleware,
        bucket=settings.bucket,
        config=build_files_config(settings, s3_client),
    )
    instrument_fastapi_app(app)

    @app.middleware("http")
    async def record_latency(request: Request, call_next):  # noqa: ANN001 - FastAPI middleware signature
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "http_request_error",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise

        duration = time.perf_counter() - start
        log_kwargs = {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        }
        if response.status_code >= 500:
            logger.error("http_request", **log_kwargs)
        elif duration >= SLOW_REQUEST_SECONDS:
            logger.warning("http_request", **log_kwargs)
        else:
            logger.info("http_request", **log_kwargs)
        return response

    @app.get("/healthz", status_code=status.HTTP_200_OK)
    async def health_check(settings: StaticSiteSettings = Depends(get_settings)) -> dict:
        """Health check for K8s readiness/liveness probes."""
        return {
            "status": "healthy",
            "bucket": settings.bucket,
            "spa": settings.spa,
            "index": settings.index,
        }

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics_endpoint(
        request: Request,
        settings: StaticSiteSettings = Depends(get_settings),
    ) -> PlainTextResponse:
        token = settings.metrics_token.get_secret_value() if settings.metrics_token else None
        require_metrics_access(request, token)
        return PlainTextResponse(GLOBAL_REGISTRY.render())

    return app
