"""Tests for the asyncio debouncer."""

import asyncio

from reflex_list_view.debounce import Debouncer


def test_burst_collapses_to_last_value():
    calls = []

    async def callback(value):
        calls.append(value)

    async def scenario():
        debouncer = Debouncer(0.01, callback)
        for value in ("a", "ab", "abc"):
            debouncer.trigger(value)
        assert debouncer.pending
        await debouncer.wait()
        assert not debouncer.pending

    asyncio.run(scenario())
    assert calls == ["abc"]


def test_cancel_prevents_call_and_is_idempotent():
    calls = []

    async def callback(value):
        calls.append(value)

    async def scenario():
        debouncer = Debouncer(0.01, callback)
        debouncer.trigger("x")
        debouncer.cancel()
        debouncer.cancel()
        await debouncer.wait()
        await asyncio.sleep(0.03)

    asyncio.run(scenario())
    assert calls == []


def test_separate_bursts_each_fire():
    calls = []

    async def callback(value):
        calls.append(value)

    async def scenario():
        debouncer = Debouncer(0.01, callback)
        debouncer.trigger("first")
        await debouncer.wait()
        debouncer.trigger("second")
        await debouncer.wait()

    asyncio.run(scenario())
    assert calls == ["first", "second"]
