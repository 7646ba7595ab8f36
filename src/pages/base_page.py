#!/usr/bin/env python3
"""
Common lifecycle for dashboard pages.

A page owns its state and its periodic tasks. ``start()`` begins polling,
``stop()`` cancels every task the page started; nothing is shared between
pages.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from periodic_task import PeriodicTask
from power_api_client import PowerApiClient

logger = logging.getLogger(__name__)


class DashboardPage(ABC):
    """Base class for a polled dashboard page"""

    name = 'page'

    def __init__(self, api_client: PowerApiClient, config: Dict[str, Any]):
        self.api = api_client
        self.config = config
        self._tasks: List[PeriodicTask] = []

    @property
    def is_running(self) -> bool:
        return any(task.is_running for task in self._tasks)

    @abstractmethod
    async def load(self):
        """Fetch everything the page shows, once."""

    async def refresh(self):
        """Manual refresh; reloads everything by default."""
        await self.load()

    @abstractmethod
    def render(self) -> List[str]:
        """Text lines describing the current page state."""

    def _build_tasks(self) -> List[PeriodicTask]:
        """Periodic tasks started by start(); default is none."""
        return []

    def start(self) -> 'DashboardPage':
        if self.is_running:
            raise RuntimeError(f"Page '{self.name}' is already running")
        self._tasks = self._build_tasks()
        for task in self._tasks:
            task.start()
        logger.info(f"Page '{self.name}' started with {len(self._tasks)} periodic task(s)")
        return self

    async def stop(self):
        for task in self._tasks:
            await task.stop()
        self._tasks = []
        logger.info(f"Page '{self.name}' stopped")

    async def __aenter__(self) -> 'DashboardPage':
        return self.start()

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
