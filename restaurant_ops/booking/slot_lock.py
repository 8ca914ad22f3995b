"""Per-slot mutual exclusion for check-then-write booking sequences."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import NamedTuple

from restaurant_ops.booking.errors import SlotBusyError

logger = logging.getLogger(__name__)


class SlotKey(NamedTuple):
    restaurant_id: str
    date: str
    time: str

    def __str__(self) -> str:
        return f"{self.restaurant_id}@{self.date} {self.time}"


class SlotLockRegistry:
    """Hands out one ``asyncio.Lock`` per (restaurant, date, time) slot.

    Locks for different slots never contend with each other. Entries are
    dropped once no coroutine holds or waits on them, so the registry only
    grows with the number of slots being booked concurrently.

    Args:
        timeout: Default seconds to wait for a slot before giving up.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._locks: dict[SlotKey, asyncio.Lock] = {}
        self._users: dict[SlotKey, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: SlotKey) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def _checkout(self, key: SlotKey) -> asyncio.Lock:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: SlotKey) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: SlotKey, timeout: float | None = None) -> AsyncIterator[None]:
        """Hold the locks for every slot in *keys* for the duration of the block.

        Locks are taken in sorted key order so two operations that need the
        same pair of slots (e.g. moving reservations in opposite directions)
        cannot deadlock.

        Raises:
            SlotBusyError: If any lock is not acquired within *timeout* seconds.
        """
        wait = self.timeout if timeout is None else timeout
        ordered = sorted(set(keys))
        acquired: list[SlotKey] = []
        checked_out: list[SlotKey] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                checked_out.append(key)
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=wait)
                except TimeoutError:
                    logger.warning("Timed out waiting %.1fs for slot %s", wait, key)
                    raise SlotBusyError(
                        f"Slot {key} is busy, please try again"
                    ) from None
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            for key in checked_out:
                self._checkin(key)
