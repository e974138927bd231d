"""
Polling scheduler: drives the snapshot fetcher for one room.

Polls once on activation and then every `interval_s` seconds, whether or not
the event stream looks healthy. Every poll carries the generation it was
started in. Deactivation bumps the generation, so a fetch that completes
afterwards is dropped instead of reaching the reconciler.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from roomchat.errors import TransientFetchError
from roomchat.fetcher import SnapshotFetcher
from roomchat.reconciler import Reconciler

DEFAULT_POLL_INTERVAL_S = 2.0

logger = logging.getLogger(__name__)


class PollingScheduler:
    def __init__(
        self,
        fetcher: SnapshotFetcher,
        reconciler: Reconciler,
        interval_s: float = DEFAULT_POLL_INTERVAL_S,
    ):
        self._fetcher = fetcher
        self._reconciler = reconciler
        self._interval_s = interval_s
        self._generation = 0
        self._task: Optional[asyncio.Task[None]] = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def active(self) -> bool:
        return self._task is not None

    def activate(self) -> None:
        """Start polling: one immediate fetch, then one per interval."""
        if self._task is not None:
            self.deactivate()
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(self._run(self._generation))

    def deactivate(self) -> None:
        """Stop polling. Results of fetches already in flight are discarded."""
        self._generation += 1
        tasks = [t for t in (self._task, *self._inflight) if t is not None]
        self._task = None
        self._inflight.clear()
        for task in tasks:
            task.cancel()

    def refresh(self) -> Optional[asyncio.Task[None]]:
        """Poll now, outside the cadence (e.g. when the app returns to the foreground)."""
        if self._task is None:
            return None
        task = asyncio.get_running_loop().create_task(self.poll_once(self._generation))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        task.add_done_callback(self._log_failure)
        return task

    def _log_failure(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error("Refresh of room %s failed", self._reconciler.room_id, exc_info=task.exception())

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            try:
                await self.poll_once(generation)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Poll of room %s failed", self._reconciler.room_id)
            await asyncio.sleep(self._interval_s)

    async def poll_once(self, generation: int) -> None:
        """Fetch messages and members once; apply them only if `generation` is still current.

        The two fetches are independent: a failure of one does not skip the other.
        """
        room_id = self._reconciler.room_id
        if generation != self._generation:
            return

        try:
            messages = await self._fetcher.fetch_messages(room_id)
        except TransientFetchError as e:
            logger.debug("No message update this cycle: %s", e)
        else:
            if generation == self._generation:
                self._reconciler.apply_snapshot(messages)
            else:
                logger.debug("Discarding stale message snapshot for room %s", room_id)

        if generation != self._generation:
            return

        try:
            members = await self._fetcher.fetch_members(room_id)
        except TransientFetchError as e:
            logger.debug("No member update this cycle: %s", e)
        else:
            if generation == self._generation:
                self._reconciler.apply_member_snapshot(members)
            else:
                logger.debug("Discarding stale member snapshot for room %s", room_id)
