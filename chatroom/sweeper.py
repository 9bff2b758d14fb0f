"""Presence sweeper.

Every ``interval`` seconds, participants whose ``lastStatus`` is older than
``stale_after`` seconds are deleted in one batch and a departure status
message is recorded for each of them. A failed tick is logged and dropped;
the same participants are still stale on the next tick, so it retries itself.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from .models import LEAVE_TEXT, now_ms, status_message
from .store import ChatStore

logger = logging.getLogger(__name__)


class PresenceSweeper:
    def __init__(
        self,
        store: ChatStore,
        interval: float = 15.0,
        stale_after: float = 10.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.interval = interval
        self.stale_after = stale_after
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    async def sweep_once(self) -> List[str]:
        cutoff = self.clock() - int(self.stale_after * 1000)
        stale = await self.store.find_stale_participants(cutoff)
        if not stale:
            return []
        names = await self.store.delete_participants([p['name'] for p in stale], cutoff)
        if not names:
            return []
        await self.store.insert_messages([status_message(n, LEAVE_TEXT).to_document() for n in names])
        logger.info('[SWEEPER] evicted %s', ', '.join(names))
        return names

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.warning('[SWEEPER] sweep failed: %s', e)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
