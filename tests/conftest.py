from __future__ import annotations

import os

import pytest

from tests.utils.fake_s3 import FakeS3Client, RecordingErrors, RecordingSummary


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def summary() -> RecordingSummary:
    return RecordingSummary()


@pytest.fixture
def errors() -> RecordingErrors:
    return RecordingErrors()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> pytest.MonkeyPatch:
    """Keep a developer's .env and BUCKETFRONT_* variables out of settings."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("BUCKETFRONT_"):
            monkeypatch.delenv(name)
    return monkeypatch
