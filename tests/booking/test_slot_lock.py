import asyncio

import pytest

from restaurant_ops.booking.errors import SlotBusyError
from restaurant_ops.booking.slot_lock import SlotKey, SlotLockRegistry

SLOT_A = SlotKey("r1", "2025-11-22", "19:00")
SLOT_B = SlotKey("r1", "2025-11-22", "20:00")


class TestSlotKey:
    def test_str(self):
        assert str(SLOT_A) == "r1@2025-11-22 19:00"

    def test_sort_order(self):
        assert sorted([SLOT_B, SLOT_A]) == [SLOT_A, SLOT_B]


class TestSlotLockRegistry:
    async def test_hold_locks_and_releases(self):
        locks = SlotLockRegistry()
        async with locks.hold(SLOT_A):
            assert locks.is_locked(SLOT_A)
            assert not locks.is_locked(SLOT_B)
        assert not locks.is_locked(SLOT_A)

    async def test_idle_entries_are_dropped(self):
        locks = SlotLockRegistry()
        async with locks.hold(SLOT_A, SLOT_B):
            assert len(locks) == 2
        assert len(locks) == 0

    async def test_released_on_exception(self):
        locks = SlotLockRegistry()
        with pytest.raises(RuntimeError):
            async with locks.hold(SLOT_A):
                raise RuntimeError("boom")
        assert len(locks) == 0

    async def test_duplicate_keys_locked_once(self):
        locks = SlotLockRegistry()
        async with locks.hold(SLOT_A, SLOT_A):
            assert locks.is_locked(SLOT_A)
        assert len(locks) == 0

    async def test_same_slot_is_mutually_exclusive(self):
        locks = SlotLockRegistry()
        inside = 0
        peak = 0

        async def worker() -> None:
            nonlocal inside, peak
            async with locks.hold(SLOT_A):
                inside += 1
                peak = max(peak, inside)
                await asyncio.sleep(0.01)
                inside -= 1

        await asyncio.gather(*(worker() for _ in range(5)))
        assert peak == 1

    async def test_different_slots_do_not_block(self):
        locks = SlotLockRegistry(timeout=0.5)
        async with locks.hold(SLOT_A):
            async with locks.hold(SLOT_B):
                assert locks.is_locked(SLOT_A)
                assert locks.is_locked(SLOT_B)

    async def test_timeout_raises_slot_busy(self):
        locks = SlotLockRegistry()
        async with locks.hold(SLOT_A):
            with pytest.raises(SlotBusyError):
                async with locks.hold(SLOT_A, timeout=0.05):
                    pass
        assert len(locks) == 0

    async def test_timeout_releases_partially_acquired(self):
        locks = SlotLockRegistry()
        async with locks.hold(SLOT_B):
            with pytest.raises(SlotBusyError):
                # SLOT_A sorts first and is acquired before SLOT_B times out
                async with locks.hold(SLOT_B, SLOT_A, timeout=0.05):
                    pass
            assert not locks.is_locked(SLOT_A)
        assert len(locks) == 0

    async def test_opposite_order_moves_do_not_deadlock(self):
        locks = SlotLockRegistry(timeout=1.0)

        async def move(first: SlotKey, second: SlotKey) -> None:
            async with locks.hold(first, second):
                await asyncio.sleep(0.01)

        await asyncio.gather(move(SLOT_A, SLOT_B), move(SLOT_B, SLOT_A))
        assert len(locks) == 0
