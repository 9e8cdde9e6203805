"""Readers-writer critical section around nested-set mutations.

Interval shifts are read-modify-write sequences over shared lft/rgt
columns, and every task shares one connection, so a read interleaved with
a mutation could observe a half-shifted tree. The guard admits either any
number of readers or exactly one mutation. Waiting mutations block new
readers so a steady stream of reads cannot starve writers. A task that
already holds a section and asks for another one is rejected instead of
waiting on itself.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from treestore.errors import ConcurrencyViolation, StorageError

logger = logging.getLogger(__name__)


class GuardState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    LOCKED = "locked"


class MutationGuard:
    """Exclusive mutations, shared reads, optional lock-wait timeout."""

    def __init__(self, lock_timeout: float | None = None) -> None:
        self._cond = asyncio.Condition()
        self._reader_tasks: set[asyncio.Task] = set()
        self._waiting_writers = 0
        self._writer: asyncio.Task | None = None
        self._lock_timeout = lock_timeout

    @property
    def state(self) -> GuardState:
        if self._writer is not None:
            return GuardState.LOCKED
        if self._reader_tasks:
            return GuardState.READING
        return GuardState.IDLE

    def _check_reentry(self, what: str) -> None:
        current = asyncio.current_task()
        if self._writer is not None and self._writer is current:
            raise ConcurrencyViolation(
                f"{what} requested by the task that holds the mutation lock"
            )
        if current in self._reader_tasks:
            raise ConcurrencyViolation(
                f"{what} requested by a task that already holds a read section"
            )

    async def _wait(self, predicate) -> None:
        try:
            async with asyncio.timeout(self._lock_timeout):
                await self._cond.wait_for(predicate)
        except TimeoutError as e:
            logger.warning("Tree lock wait timed out (state=%s)", self.state.value)
            raise StorageError(
                f"Timed out after {self._lock_timeout}s waiting for the tree lock"
            ) from e

    @asynccontextmanager
    async def mutation(self) -> AsyncIterator[None]:
        """Hold the exclusive section for one insert or delete."""
        self._check_reentry("Mutation")
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._wait(lambda: self._writer is None and not self._reader_tasks)
            finally:
                self._waiting_writers -= 1
                # A timed-out writer may have been the only thing holding readers back
                self._cond.notify_all()
            self._writer = asyncio.current_task()
        try:
            yield
        finally:
            async with self._cond:
                self._writer = None
                self._cond.notify_all()

    @asynccontextmanager
    async def reading(self) -> AsyncIterator[None]:
        """Hold a shared section for a multi-query read such as tree assembly."""
        self._check_reentry("Read")
        async with self._cond:
            await self._wait(
                lambda: self._writer is None and self._waiting_writers == 0
            )
            self._reader_tasks.add(asyncio.current_task())
        try:
            yield
        finally:
            async with self._cond:
                self._reader_tasks.discard(asyncio.current_task())
                if not self._reader_tasks:
                    self._cond.notify_all()
