"""
Tests for in-flight coalescing and the invalidation bus.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from kidvocab.core.dedup import InFlightRegistry, fingerprint
from kidvocab.core.signals import InvalidationBus


def test_fingerprint_joins_parts():
    assert fingerprint("mark-seen", "child-1", "word-7") == "mark-seen:child-1:word-7"
    assert fingerprint("quiz", "c", "w", "EN_TO_TARGET", True, False) == "quiz:c:w:EN_TO_TARGET:True:False"


@pytest.mark.asyncio
async def test_concurrent_identical_calls_run_once():
    registry = InFlightRegistry()
    operation = AsyncMock(return_value="done")

    results = await asyncio.gather(*(registry.run("key", operation) for _ in range(3)))

    assert results == ["done", "done", "done"]
    operation.assert_awaited_once()
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_different_keys_run_separately():
    registry = InFlightRegistry()
    operation = AsyncMock(return_value=1)

    await asyncio.gather(registry.run("a", operation), registry.run("b", operation))

    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_sequential_calls_are_not_coalesced():
    registry = InFlightRegistry()
    operation = AsyncMock(return_value=None)

    await registry.run("key", operation)
    await registry.run("key", operation)

    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_entry_is_registered_while_running():
    registry = InFlightRegistry()
    release = asyncio.Event()

    async def slow():
        await release.wait()
        return "ok"

    first = asyncio.ensure_future(registry.run("slow", slow))
    await asyncio.sleep(0)
    assert "slow" in registry

    release.set()
    assert await first == "ok"
    assert "slow" not in registry


@pytest.mark.asyncio
async def test_failure_reaches_every_caller_and_clears_entry():
    registry = InFlightRegistry()
    operation = AsyncMock(side_effect=RuntimeError("store down"))

    results = await asyncio.gather(
        registry.run("key", operation), registry.run("key", operation), return_exceptions=True
    )

    assert all(isinstance(result, RuntimeError) for result in results)
    operation.assert_awaited_once()
    assert len(registry) == 0


def test_bus_notifies_and_unsubscribes():
    bus = InvalidationBus()
    seen = []
    unsubscribe = bus.subscribe(seen.append)

    bus.invalidate("/progress", "/parent")
    unsubscribe()
    bus.invalidate("/quiz")

    assert seen == ["/progress", "/parent"]


def test_bus_listener_errors_do_not_propagate():
    bus = InvalidationBus()
    seen = []

    def broken(path):
        raise RuntimeError("boom")

    bus.subscribe(broken)
    bus.subscribe(seen.append)

    bus.invalidate("/progress")

    assert seen == ["/progress"]
