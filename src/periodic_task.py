#!/usr/bin/env python3
"""
Periodic Task

A cancellable fixed-interval asyncio task. The owner starts it, keeps the
handle and stops it on teardown; callback errors are logged and the loop keeps
running, so a failing poll never stops the next one.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[None, Awaitable[Any]]]


class PeriodicTask:
    """Run ``callback`` every ``interval_seconds`` until stopped"""

    def __init__(self, name: str, interval_seconds: float, callback: Callback,
                 run_immediately: bool = True, max_runs: Optional[int] = None):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.name = name
        self.interval_seconds = float(interval_seconds)
        self.callback = callback
        self.run_immediately = run_immediately
        self.max_runs = max_runs

        self.run_count = 0
        self.error_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> 'PeriodicTask':
        """Schedule the loop on the running event loop and return self."""
        if self.is_running:
            raise RuntimeError(f"Periodic task '{self.name}' is already running")
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"periodic:{self.name}")
        logger.debug(f"Started periodic task '{self.name}' every {self.interval_seconds}s")
        return self

    async def stop(self):
        """Cancel the loop and wait for it to finish. Safe to call twice."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"Stopped periodic task '{self.name}' after {self.run_count} runs")

    async def run_once(self):
        """Invoke the callback once, logging instead of raising."""
        self.run_count += 1
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.error_count += 1
            logger.error(f"Error in periodic task '{self.name}': {e}")

    def _exhausted(self) -> bool:
        return self.max_runs is not None and self.run_count >= self.max_runs

    async def _run(self):
        if self.run_immediately:
            await self.run_once()
        while not self._exhausted():
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()

    async def __aenter__(self) -> 'PeriodicTask':
        return self.start()

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
