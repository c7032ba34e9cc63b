from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI, Request

from bucketfront.static_files import (
    NO_CACHE_DIRECTIVES,
    FilesConfig,
    MaxAgePolicy,
    S3StaticFilesMiddleware,
    StaticFileError,
    skip_prefixes,
)
from tests.utils.fake_s3 import client_error

BUCKET = "testbucket"


def build_app(fake_s3, **config) -> FastAPI:
    app = FastAPI()

    @app.get("/api/ping")
    async def ping() -> dict:
        return {"ok": True}

    app.add_middleware(S3StaticFilesMiddleware, bucket=BUCKET, config=FilesConfig(s3_client=fake_s3, **config))
    return app


async def _get(app: FastAPI, path: str, method: str = "GET", headers: dict[str, str] | None = None) -> httpx.Response:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        return await client.request(method, path, headers=headers)


@pytest.mark.anyio("asyncio")
async def test_serves_existing_object(fake_s3) -> None:
    fake_s3.put("/index.html", b"hello world")
    app = build_app(fake_s3)

    resp = await _get(app, "/index.html", headers={"X-Request-ID": "xglvVA0A9ONQCjJACsvY0rC1f7ypPi7g"})

    assert resp.status_code == 200
    assert resp.content == b"hello world"
    assert fake_s3.calls == [(BUCKET, "/index.html")]


@pytest.mark.anyio("asyncio")
async def test_success_headers_follow_stored_metadata(fake_s3) -> None:
    fake_s3.put("/styles/site.css", b"body{}", content_type="text/css", etag='"css-etag"')
    app = build_app(fake_s3)

    resp = await _get(app, "/styles/site.css")

    assert resp.status_code == 200
    assert resp.headers["etag"] == '"css-etag"'
    assert resp.headers["last-modified"] == "2024-01-02T03:04:05Z"
    assert resp.headers["cache-control"] == NO_CACHE_DIRECTIVES
    assert resp.headers["content-type"] == "text/css"


@pytest.mark.anyio("asyncio")
async def test_cache_policy_output_is_used(fake_s3) -> None:
    fake_s3.put("/app.js", b"1", content_type="application/javascript")
    app = build_app(fake_s3, cache_headers=MaxAgePolicy(600))

    resp = await _get(app, "/app.js")

    assert resp.headers["cache-control"] == "public, max-age=600"


@pytest.mark.anyio("asyncio")
async def test_large_body_is_streamed_and_closed(fake_s3) -> None:
    payload = bytes(range(256)) * 1024
    fake_s3.put("/video.bin", payload, content_type="application/octet-stream")
    app = build_app(fake_s3)

    resp = await _get(app, "/video.bin")

    assert resp.content == payload
    body = fake_s3.bodies[0]
    assert body.reads > 1
    assert body.closed


@pytest.mark.anyio("asyncio")
async def test_missing_object_is_404(fake_s3) -> None:
    app = build_app(fake_s3)

    resp = await _get(app, "/not.html")

    assert resp.status_code == 404
    assert resp.json() == {"detail": "document not found: /not.html"}
    assert fake_s3.calls == [(BUCKET, "/not.html")]


@pytest.mark.anyio("asyncio")
async def test_backend_error_is_500_and_reported_once(fake_s3, errors) -> None:
    cause = client_error("NoSuchBucket", "bucket testbucket is gone")
    fake_s3.fail("/not.html", cause)
    app = build_app(fake_s3, on_error=errors, spa=True)

    resp = await _get(app, "/not.html", headers={"X-Request-ID": "req-500"})

    assert resp.status_code == 500
    assert resp.json() == {"detail": "failed to process request"}
    assert "testbucket is gone" not in resp.text
    # No fallback to the index document after a backend failure.
    assert fake_s3.calls == [(BUCKET, "/not.html")]
    assert len(errors.calls) == 1
    error, context = errors.calls[0]
    assert isinstance(error, StaticFileError)
    assert "/not.html" in str(error)
    assert "req-500" in str(error)
    assert error.__cause__ is cause
    assert context.path == "/not.html"
    assert context.request_id == "req-500"
    assert context.method == "GET"


@pytest.mark.anyio("asyncio")
async def test_missing_object_does_not_reach_error_observer(fake_s3, errors) -> None:
    app = build_app(fake_s3, on_error=errors)

    await _get(app, "/not.html")

    assert errors.calls == []


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"])
async def test_non_get_is_rejected_without_fetch(fake_s3, errors, method) -> None:
    fake_s3.put("/index.html", b"hello world")
    app = build_app(fake_s3, on_error=errors)

    resp = await _get(app, "/index.html", method=method)

    assert resp.status_code == 400
    if method != "HEAD":
        assert resp.json() == {"detail": f"invalid request method: {method} path: /index.html"}
    assert fake_s3.calls == []
    assert errors.calls == []


@pytest.mark.anyio("asyncio")
async def test_skipped_requests_reach_next_handler(fake_s3) -> None:
    app = build_app(fake_s3, skipper=skip_prefixes(["/api"]))

    resp = await _get(app, "/api/ping")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert fake_s3.calls == []


@pytest.mark.anyio("asyncio")
async def test_root_fetches_index_once(fake_s3) -> None:
    fake_s3.put("/index.html", b"<h1>home</h1>")
    app = build_app(fake_s3, spa=True)

    resp = await _get(app, "/")

    assert resp.status_code == 200
    assert resp.content == b"<h1>home</h1>"
    assert fake_s3.calls == [(BUCKET, "/index.html")]


@pytest.mark.anyio("asyncio")
async def test_spa_falls_back_to_index(fake_s3, summary) -> None:
    fake_s3.put("/login.html", b"<form>login</form>")
    app = build_app(fake_s3, spa=True, index="login.html", summary=summary)

    resp = await _get(app, "/dashboard")

    assert resp.status_code == 200
    assert resp.content == b"<form>login</form>"
    assert fake_s3.calls == [(BUCKET, "/dashboard"), (BUCKET, "/login.html")]
    assert [event["key"] for event in summary.events] == ["/login.html"]


@pytest.mark.anyio("asyncio")
async def test_spa_prefers_existing_path(fake_s3) -> None:
    fake_s3.put("/dashboard", b"real")
    fake_s3.put("/index.html", b"shell")
    app = build_app(fake_s3, spa=True)

    resp = await _get(app, "/dashboard")

    assert resp.content == b"real"
    assert fake_s3.calls == [(BUCKET, "/dashboard")]


@pytest.mark.anyio("asyncio")
async def test_spa_404_when_index_missing_too(fake_s3) -> None:
    app = build_app(fake_s3, spa=True)

    resp = await _get(app, "/dashboard")

    assert resp.status_code == 404
    assert resp.json() == {"detail": "document not found: /dashboard"}
    assert fake_s3.calls == [(BUCKET, "/dashboard"), (BUCKET, "/index.html")]


@pytest.mark.anyio("asyncio")
async def test_spa_index_backend_error_is_500(fake_s3, errors) -> None:
    fake_s3.fail("/index.html", client_error("AccessDenied"))
    app = build_app(fake_s3, spa=True, on_error=errors)

    resp = await _get(app, "/dashboard")

    assert resp.status_code == 500
    assert len(errors.calls) == 1
    assert errors.calls[0][0].key == "/index.html"
    assert errors.calls[0][0].path == "/dashboard"


@pytest.mark.anyio("asyncio")
async def test_request_id_header_is_configurable(fake_s3, summary) -> None:
    fake_s3.put("/index.html", b"x")
    app = build_app(fake_s3, summary=summary, request_id_header="X-Correlation-ID")

    await _get(app, "/index.html", headers={"X-Correlation-ID": "corr-1", "X-Request-ID": "ignored"})

    assert summary.events[0]["id"] == "corr-1"


@pytest.mark.anyio("asyncio")
async def test_request_id_falls_back_to_upstream_assignment(fake_s3, summary) -> None:
    fake_s3.put("/index.html", b"x")
    app = build_app(fake_s3, summary=summary)

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):  # noqa: ANN001
        request.state.request_id = "assigned-upstream"
        return await call_next(request)

    await _get(app, "/index.html")

    assert summary.events[0]["id"] == "assigned-upstream"


@pytest.mark.anyio("asyncio")
async def test_request_id_empty_when_unknown(fake_s3, summary) -> None:
    fake_s3.put("/index.html", b"x")
    app = build_app(fake_s3, summary=summary)

    await _get(app, "/index.html")

    assert summary.events[0]["id"] == ""


@pytest.mark.anyio("asyncio")
async def test_failing_error_observer_keeps_500(fake_s3) -> None:
    class Exploding:
        def on_error(self, error, context) -> None:
            raise RuntimeError("pager down")

    fake_s3.fail("/not.html", client_error("InternalError"))
    app = build_app(fake_s3, on_error=Exploding())

    resp = await _get(app, "/not.html")

    assert resp.status_code == 500


@pytest.mark.anyio("asyncio")
async def test_failing_cache_policy_is_500_and_reported(fake_s3, errors) -> None:
    class Broken:
        def compute(self, info) -> str:
            raise ValueError("bad policy")

    fake_s3.put("/index.html", b"x")
    app = build_app(fake_s3, cache_headers=Broken(), on_error=errors)

    resp = await _get(app, "/index.html", headers={"X-Request-ID": "req-9"})

    assert resp.status_code == 500
    assert resp.json() == {"detail": "failed to process request"}
    assert fake_s3.bodies[0].closed
    assert len(errors.calls) == 1
    error, context = errors.calls[0]
    assert isinstance(error, StaticFileError)
    assert isinstance(error.__cause__, ValueError)
    assert error.key == "/index.html"
    assert context.request_id == "req-9"
