"""Process-lifetime answer cache with time-based expiry.

Purpose of this abstraction:
    Avoid repeating retrieval and model calls for identical ask requests. The
    engine depends only on the `AnswerCache` protocol, so the in-memory store can
    be swapped for a shared external store.

Expiry model:
    - `get` returns a payload only while `now - inserted_at <= ttl_seconds`.
    - Expired entries are removed lazily on read; there is no background sweep.

Concurrency:
    Plain dict, no locking. Concurrent writers to one key resolve as
    last-write-wins; entries are deterministic recomputations of the same answer.

Scope:
    Not durable and not shared between processes. Cache hits are not guaranteed
    when the service runs as several instances.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol


logger = logging.getLogger(__name__)


class AnswerCache(Protocol):
    """Minimal cache interface consumed by `AskEngine`."""

    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, payload: Any) -> None:
        ...

    def evict(self, key: str) -> None:
        ...


@dataclass
class CacheEntry:
    payload: Any
    inserted_at: float


def make_cache_key(question: str, site_base_url: str, preset: str, model: str) -> str:
    """Deterministic key over every request-distinguishing field."""
    return json.dumps(
        {
            "question": question,
            "siteBaseUrl": site_base_url,
            "preset": preset,
            "model": model,
        },
        sort_keys=True,
        ensure_ascii=False,
    )


class InMemoryAnswerCache:
    """Dict-backed `AnswerCache` with a fixed TTL."""

    def __init__(self, ttl_seconds: float = 600.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.inserted_at > self.ttl_seconds:
            self._entries.pop(key, None)
            logger.debug("Cache entry expired: %s", key)
            return None

        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = CacheEntry(payload=payload, inserted_at=self._clock())

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
