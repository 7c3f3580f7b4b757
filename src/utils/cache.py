"""In-process memoization of idempotent remote-call results.

Keyword translations and video searches are cached per run so an identical
request never reaches the remote API twice:

    cache = ResponseCache("keywords")

    keywords = await cache.get_or_compute(
        normalize_key(sentence),
        lambda: executor.execute_with_retry(lambda: translate(sentence)),
    )

Entries live as long as the cache object. There is no eviction; the
number of distinct requests per run is small.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

# ASCII unit separator: never produced by keyword translation or search input
KEY_SEPARATOR = "\x1f"


@dataclass
class CacheEntry:
    """A memoized result."""

    key: str
    value: Any
    created_at: float = field(default_factory=time.time)


def normalize_key(text: str) -> str:
    """Normalize free text into a cache key."""
    return text.strip()


def composite_key(*fields: Any) -> str:
    """Join several fields into one unambiguous cache key.

    Raises:
        ValueError: If a field contains the separator
    """
    parts = []
    for value in fields:
        part = str(value)
        if KEY_SEPARATOR in part:
            raise ValueError(f"Cache key field contains reserved separator: {part!r}")
        parts.append(part)
    return KEY_SEPARATOR.join(parts)


class ResponseCache:
    """Memoizing cache for remote responses, scoped to one object lifetime.

    Only successful computations are stored. Concurrent callers asking for
    the same missing key share a single in-flight computation.
    """

    def __init__(self, name: str = "responses"):
        """Initialize an empty cache.

        Args:
            name: Label used in log messages
        """
        self.name = name
        self._entries: dict[str, CacheEntry] = {}
        self._pending: dict[str, asyncio.Future] = {}

        # Statistics tracking
        self.hits = 0
        self.misses = 0

    async def get_or_compute(
        self, key: str, compute_fn: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Return the cached value for key, computing and storing it on a miss.

        Args:
            key: Normalized cache key (see normalize_key / composite_key)
            compute_fn: Zero-argument coroutine factory producing the value

        Returns:
            Cached or freshly computed value

        Raises:
            Whatever compute_fn raises; failures are never cached
        """
        while True:
            entry = self._entries.get(key)
            if entry is not None:
                self.hits += 1
                logger.debug(f"[{self.name}] Cache HIT: {key!r}")
                return entry.value

            pending = self._pending.get(key)
            if pending is None:
                break
            logger.debug(f"[{self.name}] Joining in-flight request: {key!r}")
            try:
                value = await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                # The computing caller was cancelled, not this one
                logger.debug(f"[{self.name}] In-flight request cancelled, retrying: {key!r}")
                continue
            self.hits += 1
            return value

        self.misses += 1
        logger.debug(f"[{self.name}] Cache MISS: {key!r}")

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            value = await compute_fn()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unobserved failure is not logged by asyncio
            future.exception()
            raise
        else:
            self._entries[key] = CacheEntry(key=key, value=value)
            future.set_result(value)
            return value
        finally:
            self._pending.pop(key, None)

    def get(self, key: str, default: Any = None) -> Any:
        """Peek at a cached value without computing it."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else default

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> int:
        """Clear all cached entries.

        Returns:
            Number of entries that were cleared
        """
        count = len(self._entries)
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        logger.info(f"[{self.name}] Cache cleared ({count} entries removed)")
        return count

    @property
    def hit_rate(self) -> float:
        """Hit rate as a float between 0.0 and 1.0."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def get_stats(self) -> dict:
        """Get cache statistics."""
        return {
            "name": self.name,
            "total_requests": self.hits + self.misses,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "entry_count": len(self._entries),
        }

    def log_stats(self) -> None:
        """Log cache statistics."""
        stats = self.get_stats()
        logger.info(
            f"Cache Stats [{self.name}] - Requests: {stats['total_requests']}, "
            f"Hit Rate: {stats['hit_rate']:.1%}, "
            f"Entries: {stats['entry_count']}"
        )
