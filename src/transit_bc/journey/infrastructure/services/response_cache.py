"""Cache for upstream transit responses.

Entries live in an aiocache memory backend, keyed by a request fingerprint,
and expire after a fixed staleness window. Only successful responses are
stored. Insertion order is tracked here so the cache stays bounded.
"""
import hashlib
import json
import time
import uuid
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, Optional

from aiocache import Cache


class ResponseCache:
    """Bounded TTL cache keyed by request fingerprint."""

    def __init__(
        self,
        ttl_seconds: float = 30,
        max_entries: int = 512,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._backend = Cache(Cache.MEMORY, namespace=f"transit-{uuid.uuid4().hex[:8]}")
        self._stored_at: "OrderedDict[str, float]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def fingerprint(url: str, params: Dict[str, Any], exclude: Iterable[str] = ()) -> str:
        """Stable key for a request; credentials are left out of the key."""
        excluded = set(exclude)
        relevant = sorted((k, str(v)) for k, v in params.items() if k not in excluded)
        raw = json.dumps([url, relevant], ensure_ascii=False)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    async def get(self, key: str) -> Optional[Any]:
        if self.ttl_seconds <= 0:
            return None
        stored_at = self._stored_at.get(key)
        if stored_at is not None and self._clock() - stored_at > self.ttl_seconds:
            await self._evict(key)
            stored_at = None
        value = await self._backend.get(key) if stored_at is not None else None
        if value is None:
            self._stored_at.pop(key, None)
            self.misses += 1
            return None
        self.hits += 1
        return value

    async def set(self, key: str, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        await self._backend.set(key, value, ttl=self.ttl_seconds)
        self._stored_at[key] = self._clock()
        self._stored_at.move_to_end(key)
        while len(self._stored_at) > self.max_entries:
            oldest = next(iter(self._stored_at))
            await self._evict(oldest)

    async def _evict(self, key: str) -> None:
        self._stored_at.pop(key, None)
        await self._backend.delete(key)

    async def clear(self) -> None:
        self._stored_at.clear()
        await self._backend.clear()

    def __len__(self) -> int:
        return len(self._stored_at)

    @property
    def stats(self) -> dict:
        return {
            "entries": len(self._stored_at),
            "hits": self.hits,
            "misses": self.misses,
            "ttl_seconds": self.ttl_seconds,
        }
