"""
Concurrency control for running several queries at once.

Each Query execution is an independent request; scan_many() runs a batch of
them under one semaphore so the scanner is not flooded.

Features:
- Bounded concurrency (settings.SCANNER_MAX_CONCURRENT)
- Optional timeout for acquiring a slot
- Statistics on active/queued requests and wait times
- Results returned in input order; the first failure propagates

Usage:
    from tv_screener import Query, col
    from tv_screener.concurrency import scan_many

    base = Query().select("close", "volume")
    queries = [base.copy().set_markets(market) for market in ("america", "uk", "japan")]
    results = await scan_many(queries)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from tv_screener.config import settings

if TYPE_CHECKING:
    from tv_screener.query import Query

logger = logging.getLogger(__name__)


@dataclass
class ConcurrencyStats:
    """Tracks active requests, queued requests, and historical metrics."""

    limit: int
    active: int = 0
    queued: int = 0
    total_acquired: int = 0
    total_released: int = 0
    total_timeouts: int = 0
    total_wait_time_ms: float = 0.0
    max_wait_time_ms: float = 0.0
    last_updated: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "limit": self.limit,
            "active": self.active,
            "queued": self.queued,
            "utilization": self.active / self.limit if self.limit > 0 else 0.0,
            "total_acquired": self.total_acquired,
            "total_released": self.total_released,
            "total_timeouts": self.total_timeouts,
            "avg_wait_time_ms": (
                self.total_wait_time_ms / self.total_acquired
                if self.total_acquired > 0
                else 0.0
            ),
            "max_wait_time_ms": self.max_wait_time_ms,
            "last_updated": self.last_updated.isoformat(),
        }


class ScanConcurrencyManager:
    """
    Limits concurrent scanner requests with one asyncio.Semaphore.

    The semaphore is created lazily inside the running event loop and
    rebuilt when a later loop (e.g. a second ``asyncio.run()``) uses the
    manager, since asyncio primitives are bound to one loop.
    """

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit or settings.SCANNER_MAX_CONCURRENT
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.stats = ConcurrencyStats(limit=self.limit)

    @property
    def semaphore(self) -> asyncio.Semaphore:
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._loop is not loop:
            self._semaphore = asyncio.Semaphore(self.limit)
            self._loop = loop
        return self._semaphore

    async def acquire(self, timeout: Optional[float] = None) -> "ConcurrencyToken":
        """
        Acquire a request slot.

        Args:
            timeout: Optional timeout in seconds

        Returns:
            ConcurrencyToken context manager

        Raises:
            asyncio.TimeoutError: If timeout exceeded
        """
        stats = self.stats
        stats.queued += 1
        start_time = time.perf_counter()

        try:
            if timeout:
                await asyncio.wait_for(self.semaphore.acquire(), timeout=timeout)
            else:
                await self.semaphore.acquire()
        except asyncio.TimeoutError:
            stats.queued -= 1
            stats.total_timeouts += 1
            stats.last_updated = datetime.now()
            logger.warning(
                f"Concurrency timeout: queued={stats.queued}, timeout={timeout}s"
            )
            raise

        wait_time_ms = (time.perf_counter() - start_time) * 1000
        stats.queued -= 1
        stats.active += 1
        stats.total_acquired += 1
        stats.total_wait_time_ms += wait_time_ms
        stats.max_wait_time_ms = max(stats.max_wait_time_ms, wait_time_ms)
        stats.last_updated = datetime.now()

        logger.debug(
            f"Concurrency acquired: active={stats.active}/{stats.limit}, "
            f"wait={wait_time_ms:.1f}ms"
        )
        return ConcurrencyToken(self)

    def release(self) -> None:
        """Release a request slot."""
        self.semaphore.release()

        stats = self.stats
        stats.active -= 1
        stats.total_released += 1
        stats.last_updated = datetime.now()


@dataclass
class ConcurrencyToken:
    """Acquired slot; use as an async context manager to release it."""

    manager: ScanConcurrencyManager

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.manager.release()


# Global concurrency manager instance
_concurrency_manager: Optional[ScanConcurrencyManager] = None


def get_concurrency_manager() -> ScanConcurrencyManager:
    """Get the global concurrency manager (singleton)."""
    global _concurrency_manager
    if _concurrency_manager is None:
        _concurrency_manager = ScanConcurrencyManager()
    return _concurrency_manager


def get_concurrency_stats() -> Dict[str, Any]:
    """Statistics of the global concurrency manager."""
    return get_concurrency_manager().stats.to_dict()


async def scan_many(
    queries: Sequence["Query"],
    raw: bool = False,
    max_concurrent: Optional[int] = None,
    acquire_timeout: Optional[float] = None,
    **request_kwargs,
) -> List[Any]:
    """
    Execute independent queries concurrently.

    Queries must not share mutable state; build variations with copy().

    Args:
        queries: Queries to execute
        raw: Return raw envelopes instead of ScreenerResult objects
        max_concurrent: Per-call limit; defaults to the global manager
        acquire_timeout: Optional timeout for acquiring a slot
        **request_kwargs: headers/timeout/cookies passed to each request

    Returns:
        One result per query, in input order

    Raises:
        The first error raised by any query
    """
    manager = (
        ScanConcurrencyManager(max_concurrent)
        if max_concurrent
        else get_concurrency_manager()
    )

    async def run(query: "Query") -> Any:
        async with await manager.acquire(timeout=acquire_timeout):
            if raw:
                return await query.get_scanner_data_raw(**request_kwargs)
            return await query.get_scanner_data(**request_kwargs)

    logger.info(f"Running {len(queries)} scans (limit={manager.limit})")
    return list(await asyncio.gather(*(run(query) for query in queries)))


__all__ = [
    "ConcurrencyStats",
    "ScanConcurrencyManager",
    "get_concurrency_manager",
    "get_concurrency_stats",
    "scan_many",
]
