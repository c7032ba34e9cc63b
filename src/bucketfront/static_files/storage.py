"""S3 client construction and the slice of the client the middleware relies on."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import boto3


class ObjectStorageClient(Protocol):
    """The part of a boto3 S3 client used to serve files.

    ``exceptions.NoSuchKey`` is optional; stubs may instead raise a
    ``botocore.exceptions.ClientError`` carrying the ``NoSuchKey`` code.
    """

    exceptions: Any

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:  # noqa: N803 - boto3 keyword names
        ...


def build_session_args(region: Optional[str] = None, profile: Optional[str] = None) -> dict[str, str]:
    session_args: dict[str, Optional[str]] = {
        "region_name": region,
        "profile_name": profile,
    }
    return {k: v for k, v in session_args.items() if v}


def build_s3_client(
    region: Optional[str] = None,
    profile: Optional[str] = None,
    endpoint_url: Optional[str] = None,
) -> ObjectStorageClient:
    session = boto3.session.Session(**build_session_args(region, profile))
    if endpoint_url:
        return session.client("s3", endpoint_url=endpoint_url)
    return session.client("s3")
