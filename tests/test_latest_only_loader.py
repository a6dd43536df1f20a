from __future__ import annotations

import asyncio

import pytest

from stay_engine.services import LatestOnlyLoader


@pytest.mark.asyncio
async def test_rapid_calls_collapse_into_latest_request():
    calls: list[str] = []

    async def fetch(params: str) -> str:
        calls.append(params)
        return params.upper()

    loader = LatestOnlyLoader(fetch, debounce_s=0.01)

    results = await asyncio.gather(loader.load("a"), loader.load("b"), loader.load("c"))

    assert results == [None, None, "C"]
    assert calls == ["c"]


@pytest.mark.asyncio
async def test_stale_response_is_discarded():
    gates = {"a": asyncio.Event(), "b": asyncio.Event()}

    async def fetch(params: str) -> str:
        await gates[params].wait()
        return params.upper()

    loader = LatestOnlyLoader(fetch, debounce_s=0)
    first = asyncio.create_task(loader.load("a"))
    await asyncio.sleep(0)
    second = asyncio.create_task(loader.load("b"))
    await asyncio.sleep(0)

    gates["b"].set()
    assert await second == "B"
    gates["a"].set()
    assert await first is None
    assert loader.generation == 2


@pytest.mark.asyncio
async def test_errors_only_surface_for_the_current_request():
    gate = asyncio.Event()

    async def fetch(params: str) -> str:
        if params == "stale":
            await gate.wait()
        raise RuntimeError(params)

    loader = LatestOnlyLoader(fetch, debounce_s=0)
    stale = asyncio.create_task(loader.load("stale"))
    await asyncio.sleep(0)

    with pytest.raises(RuntimeError, match="current"):
        await loader.load("current")

    gate.set()
    assert await stale is None


@pytest.mark.asyncio
async def test_cancel_marks_in_flight_request_stale():
    gate = asyncio.Event()

    async def fetch(params: str) -> str:
        await gate.wait()
        return params

    loader = LatestOnlyLoader(fetch, debounce_s=0)
    pending = asyncio.create_task(loader.load("a"))
    await asyncio.sleep(0)

    loader.cancel()
    gate.set()

    assert await pending is None
    assert not loader.is_current(1)
