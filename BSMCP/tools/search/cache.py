"""Cache-aside result cache with an in-process tier and an optional Redis tier.

Tier 1 is a bounded map with expiry timestamps; when full, the oldest
inserted entry is evicted (insertion order, not access order). Tier 2 is a
Redis instance reached through redis-py; the first failure disables it for
the remainder of the process.
"""

import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import redis
from pydantic_core import to_jsonable_python

from BSMCP.services.shared.errors import CacheError
from BSMCP.services.shared.logger import SearchLogger
from BSMCP.services.shared.settings import CacheConfig

Clock = Callable[[], float]

_MISS = object()


@dataclass
class CacheEntry:
    key: str
    data: Any
    expiry: float
    ttl: int

    def is_live(self, now: float) -> bool:
        return now < self.expiry


class MemoryCache:
    """Fixed-capacity in-process tier. Thread-safe."""

    def __init__(self, max_entries: int = 1000, clock: Clock = time.time):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_live(self.clock()):
                # Lazy purge
                del self._entries[key]
                return None
            return entry

    def set(self, key: str, data: Any, ttl: int) -> CacheEntry:
        with self._lock:
            if key in self._entries:
                # Refresh counts as a new insertion
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)

            entry = CacheEntry(key=key, data=data, expiry=self.clock() + ttl, ttl=ttl)
            self._entries[key] = entry
            return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class RedisCache:
    """Remote tier. Values are stored as JSON with a server-side TTL."""

    def __init__(self, client: "redis.Redis"):
        self.client = client

    @classmethod
    def from_url(cls, url: str, timeout_seconds: float = 2.0) -> "RedisCache":
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
            decode_responses=True,
        )
        return cls(client)

    def get(self, key: str) -> Optional[Tuple[Any, Optional[int]]]:
        """Return ``(value, remaining_ttl_seconds)`` or None on a miss."""
        try:
            pipe = self.client.pipeline()
            pipe.get(key)
            pipe.ttl(key)
            raw, remaining = pipe.execute()
        except redis.RedisError as e:
            raise CacheError(f"Redis get failed: {e}", metadata={"key": key}) from e

        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CacheError("Redis returned a value that is not valid JSON", metadata={"key": key}) from e

        remaining_ttl = remaining if isinstance(remaining, int) and remaining > 0 else None
        return value, remaining_ttl

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.client.setex(key, ttl, json.dumps(to_jsonable_python(value)))
        except redis.RedisError as e:
            raise CacheError(f"Redis set failed: {e}", metadata={"key": key}) from e


class CacheLayer:
    """Two-tier cache-aside lookup used by every search tool."""

    def __init__(
        self,
        config: CacheConfig,
        clock: Clock = time.time,
        remote: Optional[RedisCache] = None,
    ):
        self.config = config
        self.enabled = config.enabled
        self.memory = MemoryCache(max_entries=config.max_entries, clock=clock)
        self.logger = SearchLogger("cache")

        if remote is None and self.enabled and config.redis_url:
            try:
                remote = RedisCache.from_url(config.redis_url)
            except (ValueError, redis.RedisError) as e:
                self.logger.warning("remote_cache_disabled", {"error": str(e)})
        self.remote: Optional[RedisCache] = remote

    @staticmethod
    def make_key(search_type: str, args: Dict[str, Any]) -> str:
        """Deterministic key: argument order never changes the result."""
        serialized = json.dumps(
            to_jsonable_python(args), sort_keys=True, separators=(",", ":")
        )
        return f"{search_type}:{serialized}"

    @property
    def remote_available(self) -> bool:
        return self.remote is not None

    def _disable_remote(self, error: Exception, key: str) -> None:
        self.remote = None
        self.logger.warning("remote_cache_disabled", {"key": key, "error": str(error)})

    def _lookup(self, key: str, decode: Callable[[Any], Any]) -> Any:
        entry = self.memory.get(key)
        if entry is not None:
            self.logger.log("cache_hit", {"key": key, "tier": "memory"})
            return entry.data

        if self.remote is not None:
            try:
                found = self.remote.get(key)
            except CacheError as e:
                self._disable_remote(e, key)
                found = None

            if found is not None:
                raw, remaining_ttl = found
                try:
                    value = decode(raw)
                except (TypeError, ValueError) as e:
                    # Stale or foreign schema; same treatment as a remote failure
                    self._disable_remote(e, key)
                    found = None

            if found is not None:
                self.memory.set(key, value, remaining_ttl or self.config.ttl_seconds)
                self.logger.log("cache_hit", {"key": key, "tier": "remote"})
                return value

        self.logger.log("cache_miss", {"key": key})
        return _MISS

    def _store(self, key: str, value: Any, ttl: int) -> None:
        self.memory.set(key, value, ttl)
        if self.remote is not None:
            try:
                self.remote.set(key, value, ttl)
            except CacheError as e:
                self._disable_remote(e, key)

    def get_or_compute(
        self,
        key: str,
        ttl_seconds: Optional[int],
        compute: Callable[[], Any],
        cacheable: Callable[[Any], bool] = lambda value: True,
        decode: Callable[[Any], Any] = lambda raw: raw,
    ) -> Any:
        """Return the cached value for ``key`` or compute, store and return it.

        Args:
            key: Cache key, usually from make_key().
            ttl_seconds: Entry lifetime; None uses the configured default.
            compute: Produces a fresh value. Its exceptions propagate.
            cacheable: Predicate deciding whether a fresh value is stored.
            decode: Rebuilds a value read back from the remote tier's JSON.
        """
        if not self.enabled:
            return compute()

        ttl = ttl_seconds or self.config.ttl_seconds

        try:
            cached = self._lookup(key, decode)
        except Exception as e:
            self.logger.error("cache_operation_failed", {"key": key, "stage": "lookup", "error": str(e)})
            return compute()

        if cached is not _MISS:
            return cached

        value = compute()
        if cacheable(value):
            try:
                self._store(key, value, ttl)
            except Exception as e:
                self.logger.error("cache_operation_failed", {"key": key, "stage": "store", "error": str(e)})
        return value
