"""Hooks notified when an object is served or the bucket call fails."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

import structlog

from .models import RequestContext, StaticFileError

LOGGER = structlog.get_logger("bucketfront.static_files.observers")


class SummaryObserver(Protocol):
    def on_success(self, event: Mapping[str, Any]) -> None:
        ...


class ErrorObserver(Protocol):
    def on_error(self, error: StaticFileError, context: RequestContext) -> None:
        ...


class NoopSummaryObserver:
    def on_success(self, event: Mapping[str, Any]) -> None:
        return None


class NoopErrorObserver:
    def on_error(self, error: StaticFileError, context: RequestContext) -> None:
        return None


class LoggingSummaryObserver:
    def __init__(self, logger: Optional[Any] = None) -> None:
        self._logger = logger or structlog.get_logger("bucketfront.static_files")

    def on_success(self, event: Mapping[str, Any]) -> None:
        self._logger.info("s3_object_served", **event)


class LoggingErrorObserver:
    def __init__(self, logger: Optional[Any] = None) -> None:
        self._logger = logger or structlog.get_logger("bucketfront.static_files")

    def on_error(self, error: StaticFileError, context: RequestContext) -> None:
        self._logger.error(
            "s3_request_failed",
            request_id=context.request_id,
            method=context.method,
            path=context.path,
            key=error.key,
            error=str(error.__cause__),
            exc_info=error,
        )


def notify_success(observer: SummaryObserver, event: Mapping[str, Any]) -> None:
    # Observers run inline on the request; their failures must not change the response.
    try:
        observer.on_success(event)
    except Exception:  # noqa: BLE001
        LOGGER.exception("summary_observer_failed", key=event.get("key"), request_id=event.get("id"))


def notify_error(observer: ErrorObserver, error: StaticFileError, context: RequestContext) -> None:
    try:
        observer.on_error(error, context)
    except Exception:  # noqa: BLE001
        LOGGER.exception("error_observer_failed", path=context.path, request_id=context.request_id)
