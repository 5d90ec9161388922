"""
Best-effort background persistence.

Writes are scheduled as asyncio tasks and never block the caller. Writes
that share a key run one after another in submission order; a failed write
is logged and dropped (at most once, no retry).
"""

import asyncio
from typing import Awaitable, Callable, Hashable, Optional

from prompt_tester.core.logger import setup_logger

logger = setup_logger(__name__)

WriteFactory = Callable[[], Awaitable[object]]


class PersistenceWriter:
    def __init__(self) -> None:
        self._tails: dict[Hashable, asyncio.Task] = {}
        self._pending: set[asyncio.Task] = set()

    def submit(self, key: Hashable, factory: WriteFactory, label: str = "write") -> asyncio.Task:
        """Schedule ``factory()`` after the previous write with the same key."""
        previous = self._tails.get(key)
        task = asyncio.create_task(self._run(previous, factory, label))
        self._tails[key] = task
        self._pending.add(task)
        task.add_done_callback(lambda t, k=key: self._forget(k, t))
        return task

    async def _run(self, previous: Optional[asyncio.Task], factory: WriteFactory, label: str) -> None:
        if previous is not None:
            # _run never raises, so waiting here cannot fail
            await asyncio.wait([previous])
        try:
            await factory()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Best-effort {label} failed: {e}")

    def _forget(self, key: Hashable, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if self._tails.get(key) is task:
            del self._tails[key]

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every outstanding write."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
