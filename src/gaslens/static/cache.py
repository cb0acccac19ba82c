"""In-memory cache of analysis results keyed by content fingerprint.

Keys produced by :func:`make_key` have the form ``"<document>:<sha256>"`` so
that any textual change yields a new key while the document part still lets
callers drop every entry belonging to one document.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional

from gaslens.constants import DEFAULT_CACHE_TTL_SECONDS
from gaslens.models.report import AnalysisResult

logger = logging.getLogger(__name__)

_FINGERPRINT = re.compile(r"^[0-9a-f]{64}$")


def fingerprint(source: str) -> str:
    """SHA-256 hex digest of the exact source text."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


def make_key(document: str, source: str) -> str:
    """Build a cache key for a document's current content.

    Args:
        document: Caller-chosen document identifier (e.g., a file path)
        source: Exact source text being analyzed

    Returns:
        Key of the form ``"<document>:<sha256>"``
    """
    return f"{document}:{fingerprint(source)}"


def _document_of(key: str) -> Optional[str]:
    document, sep, digest = key.rpartition(":")
    if sep and _FINGERPRINT.match(digest):
        return document
    return None


@dataclass
class CacheEntry:
    """A cached result and its lifetime.

    Attributes:
        key: Cache key
        result: Cached analysis result
        computed_at: Clock reading when the result was stored
        ttl: Lifetime in seconds
    """

    key: str
    result: AnalysisResult
    computed_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.computed_at >= self.ttl


class ResultCache:
    """Thread-safe result cache with TTL expiry and request coalescing.

    Expired entries are treated as absent and evicted lazily on lookup;
    :meth:`sweep` evicts them eagerly. :meth:`get_or_compute` guarantees at
    most one computation in flight per key: concurrent callers for the same
    key wait for the first caller's result (or exception). Computations for
    different keys never wait on each other.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl: Default lifetime of entries in seconds
            clock: Monotonic time source, injectable for tests
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._pending: dict[str, Future] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[AnalysisResult]:
        """Return the cached result for ``key``, or None if absent or expired."""
        with self._lock:
            entry = self._lookup(key)
            return entry.result if entry else None

    def set(self, key: str, result: AnalysisResult, ttl: Optional[float] = None) -> None:
        """Store a result.

        Storing a new fingerprint for a document evicts that document's
        older entries.

        Args:
            key: Cache key
            result: Result to store
            ttl: Lifetime in seconds, defaults to the cache's ttl
        """
        with self._lock:
            self._store(key, result, ttl)

    def invalidate(self, key: str) -> int:
        """Drop ``key`` and every entry of the document named ``key``.

        Args:
            key: Full cache key or a document identifier

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [k for k in self._entries if k == key or _document_of(k) == key]
            for k in doomed:
                del self._entries[k]
        if doomed:
            logger.debug("Invalidated %d cache entries for %s", len(doomed), key)
        return len(doomed)

    def clear(self) -> None:
        """Drop every entry. Computations in flight still complete and are stored."""
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Evict all expired entries.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for k in expired:
                del self._entries[k]
        return len(expired)

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], AnalysisResult],
        ttl: Optional[float] = None,
    ) -> AnalysisResult:
        """Return the cached result for ``key``, computing it at most once.

        Args:
            key: Cache key
            compute: Produces the result on a miss
            ttl: Lifetime for a newly computed entry

        Returns:
            Cached or freshly computed result

        Raises:
            Exception: Whatever ``compute`` raised, re-raised in every waiter
        """
        with self._lock:
            entry = self._lookup(key)
            if entry is not None:
                return entry.result
            future = self._pending.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._pending[key] = future

        if not owner:
            logger.debug("Waiting for in-flight analysis of %s", key)
            return future.result()

        try:
            result = compute()
        except BaseException as e:
            with self._lock:
                self._pending.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._store(key, result, ttl)
            self._pending.pop(key, None)
        future.set_result(result)
        return result

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def _store(self, key: str, result: AnalysisResult, ttl: Optional[float]) -> None:
        document = _document_of(key)
        if document is not None:
            for other in [k for k in self._entries if k != key and _document_of(k) == document]:
                del self._entries[other]
        self._entries[key] = CacheEntry(
            key=key,
            result=result,
            computed_at=self._clock(),
            ttl=self.ttl if ttl is None else ttl,
        )
