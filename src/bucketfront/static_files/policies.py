"""Cache-Control policies applied to objects served from the bucket."""

from __future__ import annotations

from typing import Protocol

from .models import FileInfo
from .paths import index_key

NO_CACHE_DIRECTIVES = "no-store, no-cache, must-revalidate, post-check=0, pre-check=0"


class CacheHeaderPolicy(Protocol):
    def compute(self, info: FileInfo) -> str:
        ...


class CacheNothing:
    """Force browsers to refetch every object."""

    def compute(self, info: FileInfo) -> str:
        return NO_CACHE_DIRECTIVES


class MaxAgePolicy:
    """Let browsers keep assets for ``max_age`` seconds.

    The index document is the entry point of a single-page app and points at
    the current asset names, so it gets ``index_max_age`` instead; zero means
    it is never cached.
    """

    def __init__(self, max_age: int, index: str = "index.html", index_max_age: int = 0):
        if max_age < 0 or index_max_age < 0:
            raise ValueError("max-age must be >= 0")
        self._max_age = max_age
        self._index_key = index_key(index)
        self._index_max_age = index_max_age

    def compute(self, info: FileInfo) -> str:
        max_age = self._index_max_age if info.key == self._index_key else self._max_age
        if max_age == 0:
            return NO_CACHE_DIRECTIVES
        return f"public, max-age={max_age}"
