from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

Query = Callable[[], T]
Callback = Callable[[T], Awaitable[None] | None]


class Subscription(Generic[T]):
    '''Poll ``query`` and hand every changed result set to ``callback``.

    Each delivery is the full current result (a snapshot, never a diff). The
    first poll always delivers, so a consumer starts from a complete view.
    ``query`` runs in a worker thread since the DB layer is blocking.
    '''

    def __init__(self, query: Query[T], callback: Callback[T], interval: float):
        if interval <= 0:
            raise ValueError('interval must be positive')
        self.query = query
        self.callback = callback
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._last: Any = _UNSET
        self.deliveries = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def poll_once(self) -> bool:
        '''Run one poll; returns True when a snapshot was delivered.'''
        try:
            snapshot = await asyncio.to_thread(self.query)
        except Exception:
            logger.warning('Subscription query failed; retrying next poll', exc_info=True)
            return False
        if snapshot == self._last:
            return False
        result = self.callback(snapshot)
        if inspect.isawaitable(result):
            await result
        # only a delivered snapshot counts as seen; a failed callback gets it again
        self._last = snapshot
        self.deliveries += 1
        return True

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error('Subscription callback failed', exc_info=True)
            await asyncio.sleep(self.interval)


class _Unset:
    def __eq__(self, other: object) -> bool:
        return False

    __hash__ = None  # type: ignore[assignment]


_UNSET = _Unset()
