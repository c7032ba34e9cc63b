"""Access control for operational endpoints."""

from __future__ import annotations

import hmac
from ipaddress import ip_address
from typing import Optional

from fastapi import HTTPException, Request, status


def _is_loopback(host: Optional[str]) -> bool:
    if not host:
        return False
    try:
        return ip_address(host).is_loopback
    except ValueError:
        # Test transports report hostnames such as "testclient".
        return False


def require_metrics_access(request: Request, token: Optional[str]) -> None:
    """Allow ``/metrics`` with the configured bearer token, or from localhost when no token is set."""
    if token:
        supplied = request.headers.get("authorization") or ""
        if not hmac.compare_digest(supplied, f"Bearer {token}"):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid metrics token")
        return

    client_host = request.client.host if request.client else None
    if not _is_loopback(client_host):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Metrics access restricted to localhost")
