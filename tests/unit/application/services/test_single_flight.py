# tests/unit/application/services/test_single_flight.py
from __future__ import annotations

import asyncio

import pytest

from arche_cache.application.services.single_flight import SingleFlight


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_call():
    flights: SingleFlight[int] = SingleFlight()
    gate = asyncio.Event()
    calls = 0

    async def fn() -> int:
        nonlocal calls
        calls += 1
        await gate.wait()
        return 7

    tasks = [asyncio.create_task(flights.do("k", fn)) for _ in range(4)]
    await asyncio.sleep(0)
    assert flights.in_flight("k")
    assert len(flights) == 1

    gate.set()
    results = await asyncio.gather(*tasks)

    assert calls == 1
    assert [value for value, _ in results] == [7, 7, 7, 7]
    assert [shared for _, shared in results] == [False, True, True, True]
    assert len(flights) == 0


@pytest.mark.asyncio
async def test_sequential_calls_run_again():
    flights: SingleFlight[str] = SingleFlight()
    calls = 0

    async def fn() -> str:
        nonlocal calls
        calls += 1
        return f"v{calls}"

    assert await flights.do("k", fn) == ("v1", False)
    assert await flights.do("k", fn) == ("v2", False)
    assert calls == 2


@pytest.mark.asyncio
async def test_failure_releases_key():
    flights: SingleFlight[int] = SingleFlight()

    async def boom() -> int:
        raise LookupError("nope")

    with pytest.raises(LookupError):
        await flights.do("k", boom)
    assert not flights.in_flight("k")

    async def ok() -> int:
        return 1

    assert await flights.do("k", ok) == (1, False)


@pytest.mark.asyncio
async def test_abandoned_failure_is_not_reported_as_unretrieved():
    flights: SingleFlight[int] = SingleFlight()
    gate = asyncio.Event()
    loop = asyncio.get_running_loop()
    reported: list[dict] = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, ctx: reported.append(ctx))

    async def boom() -> int:
        await gate.wait()
        raise RuntimeError("late failure")

    try:
        waiter = asyncio.create_task(flights.do("k", boom))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        gate.set()
        for _ in range(10):
            await asyncio.sleep(0)
        assert not flights.in_flight("k")
    finally:
        loop.set_exception_handler(previous)

    assert [ctx for ctx in reported if "never retrieved" in ctx.get("message", "")] == []
