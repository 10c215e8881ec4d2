"""
Tests for the per-entity lock registry.
"""
import asyncio

from leadscout.core.locks import EntityLocks


class TestEntityLocks:
    async def test_idle_locks_are_dropped(self):
        locks = EntityLocks()
        async with locks.hold(("lead", 1), ("company", 2)):
            assert len(locks) == 2
        assert len(locks) == 0

    async def test_same_key_is_serialized(self):
        locks = EntityLocks()
        order = []

        async def worker(name):
            async with locks.hold(("company", 1)):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"), worker("c"))

        assert order == ["a-in", "a-out", "b-in", "b-out", "c-in", "c-out"]
        assert len(locks) == 0

    async def test_lock_kept_while_someone_waits(self):
        locks = EntityLocks()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def first():
            async with locks.hold("k"):
                entered.set()
                await release.wait()

        async def second():
            async with locks.hold("k"):
                return len(locks)

        holder = asyncio.create_task(first())
        await entered.wait()
        waiter = asyncio.create_task(second())
        await asyncio.sleep(0)
        release.set()

        await holder
        assert await waiter == 1
        assert len(locks) == 0

    async def test_cancelled_waiter_releases_its_slot(self):
        locks = EntityLocks()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def first():
            async with locks.hold("k"):
                entered.set()
                await release.wait()

        async def second():
            async with locks.hold("k"):
                pass

        holder = asyncio.create_task(first())
        await entered.wait()
        waiter = asyncio.create_task(second())
        await asyncio.sleep(0)
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)
        release.set()
        await holder

        assert len(locks) == 0
