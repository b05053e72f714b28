"""Periodic standings refresh for views that stay open on a pool."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable

from pysurvivor.config import settings
from pysurvivor.engine.standings import Standings


logger = logging.getLogger(__name__)


class StandingsPoller:
    """Recompute standings every ``interval`` seconds until stopped.

    Iterate ``updates()`` from the consuming view. The loop ends when
    ``stop()`` is called, when the consuming task is cancelled, or when the
    consumer stops iterating; no periodic work outlives it.
    """

    def __init__(self, fetch: Callable[[], Standings], *, interval: float | None = None):
        self._fetch = fetch
        self.interval = interval if interval is not None else settings.poll_interval_seconds()
        self._stopped = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()

    async def updates(self) -> AsyncIterator[Standings]:
        try:
            while not self._stopped.is_set():
                try:
                    standings = await asyncio.to_thread(self._fetch)
                except Exception:
                    logger.exception("Standings refresh failed; retrying in %.1fs", self.interval)
                else:
                    yield standings
                if self._stopped.is_set():
                    break
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._stopped.set()
