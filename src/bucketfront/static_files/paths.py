"""Map request paths to the bucket keys tried for them, in order."""

from __future__ import annotations

import posixpath


def index_key(index: str) -> str:
    return posixpath.normpath("/" + index.lstrip("/"))


def resolve_candidates(path: str, spa: bool, index: str) -> list[str]:
    # A GetObject on "/" returns the bucket listing rather than a document.
    if path == "/":
        return [index_key(index)]

    candidates = [path]
    if spa:
        candidates.append(index_key(index))
    return candidates
