#!/usr/bin/env python3
"""
Cyclic Sampler

Keeps a bounded, continuously refreshed window of the latest N samples and
independently cycles which sample is "focused" for single-value widgets such
as gauges, while the whole window stays visible in the trend chart.

Two independent periodic tasks drive it:
- refresh (default every 5s): fetch the latest N samples and replace the
  buffer atomically
- advance (default every 3s): move the focus index forward, wrapping

The timers are not synchronized. A refresh can shrink the buffer under the
focus index, so the index is clamped right after every refresh and wraps with
modulo on every advance; a read never goes out of range.

Responses are sequenced by request order. A response older than the last
applied one is dropped, success or failure, so a slow request can never
clobber newer data or flip the connection state back.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, Generic, Optional, Sequence, Tuple, TypeVar

from periodic_task import PeriodicTask
from power_api_client import PowerApiError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CyclicSampler(Generic[T]):
    """Bounded sample buffer with an auto-advancing focus index"""

    def __init__(self, fetch: Callable[[], Awaitable[Sequence[T]]], capacity: int = 7,
                 refresh_interval_seconds: float = 5.0, advance_interval_seconds: float = 3.0,
                 name: str = 'sampler'):
        """
        Args:
            fetch: Coroutine function returning the latest samples, newest
                window first; raises PowerApiError on failure
            capacity: Maximum number of samples kept (N)
            refresh_interval_seconds: Period of the refresh timer (Tr)
            advance_interval_seconds: Period of the focus timer (Ta)
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._fetch = fetch
        self.capacity = capacity
        self.name = name

        self.buffer: Tuple[T, ...] = ()
        self.focus_index = 0
        self.connected = False
        self.has_loaded = False
        self.consecutive_failures = 0
        self.last_refresh: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._issued_seq = 0
        self._applied_seq = 0

        self._refresh_task = PeriodicTask(f"{name}-refresh", refresh_interval_seconds,
                                          self.refresh, run_immediately=True)
        self._advance_task = PeriodicTask(f"{name}-advance", advance_interval_seconds,
                                          self.advance_focus, run_immediately=False)

    @property
    def focused(self) -> Optional[T]:
        """The sample currently shown in single-value widgets."""
        if not self.buffer:
            return None
        return self.buffer[self.focus_index]

    @property
    def is_running(self) -> bool:
        return self._refresh_task.is_running or self._advance_task.is_running

    async def refresh(self) -> bool:
        """
        Fetch the latest samples and replace the buffer.

        Returns:
            True if the buffer was replaced, False on failure, empty data or a
            stale response
        """
        self._issued_seq += 1
        seq = self._issued_seq

        try:
            samples = list(await self._fetch())
        except PowerApiError as e:
            if self._is_stale(seq):
                return False
            self._applied_seq = seq
            self._mark_failure(str(e))
            logger.warning(f"[{self.name}] Refresh failed, keeping last {len(self.buffer)} samples: {e}")
            return False

        if self._is_stale(seq):
            return False
        self._applied_seq = seq

        if not samples:
            self._mark_failure('empty data')
            logger.warning(f"[{self.name}] No data received, keeping last {len(self.buffer)} samples")
            return False

        first_load = not self.has_loaded
        self.buffer = tuple(samples[:self.capacity])
        self.has_loaded = True
        self.connected = True
        self.consecutive_failures = 0
        self.last_error = None
        self.last_refresh = datetime.now()

        if first_load:
            self.focus_index = 0
        else:
            self._clamp_focus()

        logger.debug(f"[{self.name}] Buffer replaced with {len(self.buffer)} samples")
        return True

    def advance_focus(self) -> int:
        """Move focus to the next sample, wrapping; no-op on an empty buffer."""
        if not self.buffer:
            return self.focus_index
        self.focus_index = (self.focus_index + 1) % len(self.buffer)
        return self.focus_index

    def start(self) -> 'CyclicSampler[T]':
        self._refresh_task.start()
        self._advance_task.start()
        logger.info(f"[{self.name}] Sampler started (capacity={self.capacity}, "
                    f"refresh={self._refresh_task.interval_seconds}s, "
                    f"advance={self._advance_task.interval_seconds}s)")
        return self

    async def stop(self):
        await self._refresh_task.stop()
        await self._advance_task.stop()
        logger.info(f"[{self.name}] Sampler stopped")

    async def __aenter__(self) -> 'CyclicSampler[T]':
        return self.start()

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    def _is_stale(self, seq: int) -> bool:
        if seq < self._applied_seq:
            logger.debug(f"[{self.name}] Dropping stale response #{seq} (applied #{self._applied_seq})")
            return True
        return False

    def _mark_failure(self, reason: str):
        self.connected = False
        self.consecutive_failures += 1
        self.last_error = reason

    def _clamp_focus(self):
        if self.buffer and self.focus_index >= len(self.buffer):
            self.focus_index %= len(self.buffer)
