from __future__ import annotations

import asyncio

import pytest

from styleweave.cache import DeferredEntry, EntryAlreadySettledError, EntryState


def run_async(coro):
    return asyncio.run(coro)


def test_settled_entry_returns_value_to_every_waiter():
    async def scenario() -> None:
        entry = DeferredEntry("/src/a.ts.css")
        waiters = [asyncio.create_task(entry.wait()) for _ in range(3)]
        await asyncio.sleep(0)
        assert entry.state is EntryState.PENDING
        assert not any(task.done() for task in waiters)

        entry.settle(".a { color: red; }")
        results = await asyncio.gather(*waiters)
        assert results == [".a { color: red; }"] * 3
        assert entry.state is EntryState.RESOLVED
        assert entry.value == ".a { color: red; }"

    run_async(scenario())


def test_failed_entry_raises_stored_error():
    async def scenario() -> None:
        entry = DeferredEntry("/src/a.ts.css")
        entry.fail(ValueError("boom"))
        assert entry.state is EntryState.REJECTED
        with pytest.raises(ValueError, match="boom"):
            await entry.wait()
        assert isinstance(entry.error, ValueError)

    run_async(scenario())


def test_entry_settles_exactly_once():
    async def scenario() -> None:
        entry = DeferredEntry("k")
        entry.settle("first")
        with pytest.raises(EntryAlreadySettledError, match="already resolved"):
            entry.settle("second")
        with pytest.raises(EntryAlreadySettledError):
            entry.fail(RuntimeError("late"))
        assert await entry.wait() == "first"

    run_async(scenario())


def test_pending_value_access_raises():
    async def scenario() -> None:
        entry = DeferredEntry("k")
        assert not entry.done
        with pytest.raises(RuntimeError, match="still pending"):
            _ = entry.value

    run_async(scenario())


def test_waiting_suspends_only_the_calling_task():
    async def scenario() -> None:
        entry = DeferredEntry("k")
        progress: list[str] = []

        async def reader() -> str:
            value = await entry.wait()
            progress.append("reader")
            return value

        async def unrelated() -> None:
            for index in range(3):
                progress.append(f"work-{index}")
                await asyncio.sleep(0)

        reader_task = asyncio.create_task(reader())
        await unrelated()
        assert progress == ["work-0", "work-1", "work-2"]

        entry.settle("css")
        assert await reader_task == "css"
        assert progress[-1] == "reader"

    run_async(scenario())


def test_cancelled_waiter_leaves_entry_usable():
    async def scenario() -> None:
        entry = DeferredEntry("k")
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(entry.wait(), timeout=0.01)
        assert entry.state is EntryState.PENDING

        entry.settle("late")
        assert await entry.wait() == "late"

    run_async(scenario())
