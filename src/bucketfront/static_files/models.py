"""Value types passed between the resolver, fetcher and response composer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union


class StaticFileError(RuntimeError):
    """A storage failure that was not a missing object."""

    def __init__(self, cause: BaseException, *, path: str, key: str, request_id: str):
        super().__init__(f"failed to process s3 request path: {path} key: {key} id: {request_id}")
        self.path = path
        self.key = key
        self.request_id = request_id
        self.__cause__ = cause


def format_rfc3339(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    rendered = value.replace(microsecond=0).isoformat()
    return rendered[:-6] + "Z" if rendered.endswith("+00:00") else rendered


@dataclass(slots=True, frozen=True)
class RequestContext:
    request_id: str
    method: str
    path: str


@dataclass(slots=True, frozen=True)
class FileInfo:
    """Metadata for an object found in the bucket, handed to cache policies."""

    id: str
    bucket: str
    key: str
    name: str
    etag: str
    last_modified: Optional[datetime]
    content_length: int
    content_type: Optional[str]


@dataclass(slots=True)
class FetchSuccess:
    info: FileInfo
    body: Any
    latency: float


@dataclass(slots=True, frozen=True)
class FetchNotFound:
    key: str


@dataclass(slots=True, frozen=True)
class FetchError:
    key: str
    cause: BaseException


FetchOutcome = Union[FetchSuccess, FetchNotFound, FetchError]
