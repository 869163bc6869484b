"""
=============================================================================
SHADOW WRITER POOL
=============================================================================

Reusable ShadowWriter instances, shared by all request threads.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        WRITER POOL                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Worker-0 ──acquire──►  ┌───────────────────┐  ◄──release── Worker-2│
    │   Worker-1 ──acquire──►  │ idle: [sw, sw, sw]│                      │
    │                          └───────────────────┘                      │
    │                             lock held only for                      │
    │                             one pop() / append()                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

RULES
─────
1. An acquired instance belongs to exactly one request until released.
2. release() resets it first (no wrapped writer, no status), so a stale
   client writer can never leak into the next request.
3. acquire() of something that is already a ShadowWriter returns it as-is.
   A try-files handler nested inside another one must not wrap twice.
4. borrow() is the context-manager form and the one handlers should use:
   it releases on every exit path, but only what it actually bound.

Tests that want no sharing at all can pass UnpooledWriterPool instead.

=============================================================================
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ..http.response import ResponseWriter
from .shadow import ShadowWriter


logger = logging.getLogger(__name__)


class WriterPool:
    """
    Thread-safe pool of ShadowWriter instances.

    Usage:
        pool = WriterPool()
        pool.warm_up(64)

        with pool.borrow(writer) as shadow:
            file_server(shadow, request)
    """

    def __init__(self, max_idle: Optional[int] = None):
        """
        Args:
            max_idle: Keep at most this many idle instances (None = no
                      limit). Extra released instances are dropped.
        """
        self.max_idle = max_idle
        self._idle: List[ShadowWriter] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Number of idle instances."""
        return len(self._idle)

    def _new(self) -> ShadowWriter:
        return ShadowWriter()

    def acquire(self, writer: ResponseWriter) -> ShadowWriter:
        """Get a ShadowWriter bound to `writer`."""
        if isinstance(writer, ShadowWriter):
            return writer

        with self._lock:
            shadow = self._idle.pop() if self._idle else None
        if shadow is None:
            shadow = self._new()

        shadow.writer = writer
        return shadow

    def release(self, shadow: ShadowWriter) -> None:
        """Reset `shadow` and make it available again."""
        shadow.reset()
        with self._lock:
            if self.max_idle is None or len(self._idle) < self.max_idle:
                self._idle.append(shadow)

    @contextmanager
    def borrow(self, writer: ResponseWriter) -> Iterator[ShadowWriter]:
        """
        Scoped acquire/release.

        If `writer` is already a ShadowWriter it is yielded unchanged and NOT
        released here; its owner releases it.
        """
        shadow = self.acquire(writer)
        owned = shadow is not writer
        try:
            yield shadow
        finally:
            if owned:
                self.release(shadow)

    def warm_up(self, count: int) -> None:
        """Pre-allocate `count` idle instances."""
        fresh = [self._new() for _ in range(count)]
        with self._lock:
            for shadow in fresh:
                if self.max_idle is not None and len(self._idle) >= self.max_idle:
                    break
                self._idle.append(shadow)
        logger.debug(f"Writer pool warmed up, {len(self._idle)} idle instances")


class UnpooledWriterPool(WriterPool):
    """
    Same interface, no reuse: every acquire allocates, every release
    discards. Deterministic for tests.
    """

    def release(self, shadow: ShadowWriter) -> None:
        shadow.reset()

    def warm_up(self, count: int) -> None:
        """Nothing to pre-allocate: every acquire builds a fresh instance."""


# Process-wide pool used by TryFilesHandler unless another one is injected.
default_pool = WriterPool()


def init_pool(count: int) -> None:
    """Warm up the default pool with `count` instances."""
    default_pool.warm_up(count)
