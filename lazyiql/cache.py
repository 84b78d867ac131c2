# lazyiql/cache.py
from __future__ import annotations

import functools
import json
import numbers
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from lazyiql.metrics import metrics
from lazyiql.slog import log_event
from lazyiql.store import CacheStore, MemoryStore

T = TypeVar("T")

DEFAULT_LIMIT = 1000
DEFAULT_EXPIRE_MS = 1000 * 60 * 60 * 24  # 24 hours

_MISSING = object()


def now_ms() -> float:
    return time.time() * 1000


def make_key(args: Sequence[Any]) -> str:
    """
    JSON encoding of the positional argument list.
    Order- and type-sensitive; dict keys are NOT sorted, so {"a":1,"b":2}
    and {"b":2,"a":1} are different keys.
    """
    return json.dumps(list(args))


def _check_number(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    inserted_at: float  # epoch ms


class ExpiringCache(Generic[T]):
    """
    Size-bounded cache with absolute-age expiry, persisted through a CacheStore.

    State is reloaded from the store on every lookup and written back after
    every insertion or removal, so several processes (or script runs) can
    share one store. There is no locking: concurrent writers may lose updates.

    Eviction is lazy: on insert, entries are dropped from the oldest end while
    the cache is full or the oldest entry has expired, stopping at the first
    entry that is neither. Expired entries further in are left until they are
    looked up or reach the front.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        limit: float = DEFAULT_LIMIT,
        expire_ms: float = DEFAULT_EXPIRE_MS,
        clock: Callable[[], float] = now_ms,
        name: str = "cache",
    ):
        _check_number("limit", limit)
        _check_number("expire", expire_ms)
        self.store: CacheStore = store if store is not None else MemoryStore()
        self.name = name
        self._limit = limit
        self._expire = expire_ms
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()

    # ----------------------------- configuration -----------------------------

    @property
    def max_entries(self) -> float:
        return self._limit

    @property
    def ttl_ms(self) -> float:
        return self._expire

    def limit(self, limit: float) -> "ExpiringCache[T]":
        _check_number("limit", limit)
        self._limit = limit
        return self

    def expire(self, ms: float) -> "ExpiringCache[T]":
        """Set the TTL in ms. Applies to existing entries too."""
        _check_number("expire", ms)
        self._expire = ms
        return self

    def flush(self) -> "ExpiringCache[T]":
        self._entries.clear()
        self._save()
        log_event("cache.flush", cache=self.name)
        return self

    # ----------------------------- lookup -----------------------------

    def get_or_compute(self, args: Sequence[Any], compute: Callable[..., T]) -> T:
        key = make_key(args)
        self._load()

        value = self._get(key)
        if value is not _MISSING:
            return value

        metrics.inc("cache.miss")
        value = compute(*args)
        return self._set(key, value)

    def __len__(self) -> int:
        self._load()
        return len(self._entries)

    # ----------------------------- internals -----------------------------

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.inserted_at >= self._expire

    def _get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        if not self._expired(entry, self._clock()):
            metrics.inc("cache.hit")
            log_event("cache.hit", cache=self.name, key=key)
            return entry.value
        self._remove(key)
        return _MISSING

    def _set(self, key: str, value: T) -> T:
        now = self._clock()
        while self._entries:
            oldest_key, oldest = next(iter(self._entries.items()))
            if len(self._entries) >= self._limit or self._expired(oldest, now):
                self._remove(oldest_key)
            else:
                break
        self._entries[key] = CacheEntry(value=value, inserted_at=now)
        self._save()
        return value

    def _remove(self, key: str) -> None:
        self._entries.pop(key, None)
        metrics.inc("cache.evict")
        log_event("cache.evict", cache=self.name, key=key)
        self._save()

    def _load(self) -> None:
        blob = self.store.load()
        entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()
        if blob:
            for key, raw in json.loads(blob):
                entries[key] = CacheEntry(value=raw["value"], inserted_at=raw["inserted_at"])
        self._entries = entries

    def _save(self) -> None:
        blob = json.dumps(
            [[k, {"value": e.value, "inserted_at": e.inserted_at}] for k, e in self._entries.items()]
        )
        self.store.save(blob)


def memoize(fn: Callable[..., T], cache: Optional[ExpiringCache[T]] = None) -> Callable[..., T]:
    """
    Wrap fn so calls go through cache.get_or_compute. The wrapper carries
    limit(), expire() and flush(), each returning the wrapper for chaining,
    and the cache itself as .cache.
    """
    if not callable(fn):
        raise TypeError(f"memoize() needs a callable, got {type(fn).__name__}")
    if cache is None:
        cache = ExpiringCache(name=getattr(fn, "__name__", "cache"))

    @functools.wraps(fn)
    def memoized(*args):
        return cache.get_or_compute(args, fn)

    def limit(n):
        cache.limit(n)
        return memoized

    def expire(ms):
        cache.expire(ms)
        return memoized

    def flush():
        cache.flush()
        return memoized

    memoized.limit = limit
    memoized.expire = expire
    memoized.flush = flush
    memoized.cache = cache
    return memoized
