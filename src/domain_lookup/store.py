"""
In-process state shared by concurrent requests.

The MemoryStore owns the quota windows and the cached suffix list. It is
created once per process (or once per test) and handed to the components
that need it, so no module keeps ambient global state.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .models import QuotaWindow, SuffixEntry


@dataclass
class CachedSuffixList:
    """Suffix list fetched from the registry and the time it was fetched."""

    entries: list[SuffixEntry]
    fetched_at: float
    source: str


class MemoryStore:
    """
    Quota windows and cached lookups, guarded by a single lock.

    Windows are keyed by (scope, caller_key) so every call site counts
    independently. Nothing is persisted across restarts.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 300.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.Lock()
        self._windows: dict[tuple[str, str], QuotaWindow] = {}
        self._suffix_list: Optional[CachedSuffixList] = None
        self._sweeper: Optional[asyncio.Task] = None

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def now(self) -> float:
        return self._clock()

    @property
    def windows(self) -> dict[tuple[str, str], QuotaWindow]:
        """Live window table. Callers must hold ``lock`` while mutating it."""
        return self._windows

    def window_count(self) -> int:
        with self._lock:
            return len(self._windows)

    def sweep(self) -> int:
        """
        Remove windows whose reset time has passed.

        Returns:
            Number of windows removed
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, window in self._windows.items() if now > window.reset_at]
            for key in expired:
                del self._windows[key]
        return len(expired)

    def get_suffix_list(self, max_age_seconds: float) -> Optional[CachedSuffixList]:
        """Return the cached suffix list if it is younger than max_age_seconds."""
        with self._lock:
            cached = self._suffix_list
        if cached is None or self._clock() - cached.fetched_at >= max_age_seconds:
            return None
        return cached

    def put_suffix_list(self, entries: list[SuffixEntry], source: str) -> CachedSuffixList:
        cached = CachedSuffixList(entries=list(entries), fetched_at=self._clock(), source=source)
        with self._lock:
            self._suffix_list = cached
        return cached

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def close(self) -> None:
        """Stop the sweep and drop all state."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        with self._lock:
            self._windows.clear()
            self._suffix_list = None
