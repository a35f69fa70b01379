"""Unit tests for KeyedLock."""

import asyncio

import pytest

from rolegate.core.locks import KeyedLock


class TestKeyedLock:
    """Tests for KeyedLock."""

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        lock = KeyedLock()
        events = []

        async def worker(name):
            async with lock.hold("k"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])

    @pytest.mark.asyncio
    async def test_different_keys_run_concurrently(self):
        lock = KeyedLock()
        other_entered = asyncio.Event()

        async with lock.hold("a"):
            async def other():
                async with lock.hold("b"):
                    other_entered.set()

            await asyncio.wait_for(other(), timeout=1)

        assert other_entered.is_set()

    @pytest.mark.asyncio
    async def test_entries_are_released(self):
        lock = KeyedLock()

        async with lock.hold("k"):
            assert lock.is_locked("k")
            assert lock.size() == 1

        assert lock.is_locked("k") is False
        assert lock.size() == 0

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        lock = KeyedLock()

        with pytest.raises(RuntimeError):
            async with lock.hold("k"):
                raise RuntimeError("boom")

        assert lock.size() == 0
