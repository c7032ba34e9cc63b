"""Uvicorn entrypoint for the static site service."""

from __future__ import annotations

import uvicorn

from ..common.settings import StaticSiteSettings
from .app import create_app


def run() -> None:
    settings = StaticSiteSettings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
