"""
Result Cache: bounded key/value store with per-entry TTL.

Behavioral Contract:
- At capacity the oldest-inserted entry is evicted (insertion order, not recency)
- Expiry is checked lazily on get(); an expired hit is a miss and is removed
- Hit/miss counters only ever increase (until clear(reset_stats=True))
"""

import hashlib
import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from pilot_engine.utils.logging import get_logger

log = get_logger(__name__)


class CacheEntry(BaseModel):
    key: str
    value: Any
    inserted_at: float
    ttl: Optional[float] = None             # Seconds; None = never expires

    def is_expired(self, now: float) -> bool:
        return self.ttl is not None and now - self.inserted_at >= self.ttl


def make_cache_key(
    analysis_type: str,
    input_data: Dict[str, Any],
    context: Dict[str, Any],
    options: Dict[str, Any],
) -> str:
    """
    Deterministic key for a request.

    Only options that change the produced decision participate; priority,
    timeout and the caching flag do not.
    """
    providers = options.get("providers")
    key_data = {
        "type": analysis_type,
        "input": input_data,
        "context": context,
        "options": {
            "providers": sorted(providers) if providers else None,
            "fallback_strategy": options.get("fallback_strategy"),
        },
    }
    canonical = json.dumps(key_data, sort_keys=True, default=str, separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode()).hexdigest()
    return f"analysis:{analysis_type}:{digest[:32]}"


class ResultCache:
    """Thread-safe bounded TTL cache."""

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                log.debug("cache_entry_expired", key=key)
                return None
            self._hits += 1
            return entry.value

    def peek(self, key: str) -> Optional[Any]:
        """Like get() but leaves counters and expired entries alone."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(self._clock()):
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        if self.max_size <= 0:
            return
        entry = CacheEntry(
            key=key,
            value=value,
            inserted_at=self._clock(),
            ttl=ttl if ttl is not None else self.default_ttl,
        )
        with self._lock:
            if key in self._entries:
                # Re-insertion counts as a fresh insertion for eviction order
                del self._entries[key]
            while len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("cache_entry_evicted", key=evicted)
            self._entries[key] = entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self, reset_stats: bool = False) -> None:
        with self._lock:
            self._entries.clear()
            if reset_stats:
                self._hits = 0
                self._misses = 0

    def stats(self) -> dict:
        with self._lock:
            return {
                "keys": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.peek(key) is not None
