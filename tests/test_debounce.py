import asyncio
import logging

import pytest

from snipsearch.core.debounce import Debouncer


class Recorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, generation: int) -> None:
        self.calls.append(generation)


@pytest.mark.asyncio
async def test_rapid_requests_fire_once_with_latest_generation():
    recorder = Recorder()
    debouncer = Debouncer(20, recorder)

    debouncer.schedule()
    debouncer.schedule()
    latest = debouncer.schedule()

    await asyncio.sleep(0.1)
    await debouncer.wait()

    assert recorder.calls == [latest]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_flush_fires_pending_timer_immediately():
    recorder = Recorder()
    debouncer = Debouncer(10_000, recorder)

    generation = debouncer.schedule()
    assert debouncer.pending

    await debouncer.flush()

    assert recorder.calls == [generation]
    assert not debouncer.running


@pytest.mark.asyncio
async def test_cancel_drops_pending_timer():
    recorder = Recorder()
    debouncer = Debouncer(10, recorder)

    debouncer.schedule()
    debouncer.cancel()
    await asyncio.sleep(0.05)

    assert recorder.calls == []


@pytest.mark.asyncio
async def test_advance_makes_older_generations_stale():
    debouncer = Debouncer(10_000, Recorder())
    first = debouncer.schedule()
    second = debouncer.advance()

    assert not debouncer.is_current(first)
    assert debouncer.is_current(second)
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_callback_errors_are_logged(caplog):
    async def failing(generation: int) -> None:
        raise ValueError("bad search")

    debouncer = Debouncer(0, failing)
    debouncer.schedule()

    with caplog.at_level(logging.ERROR, logger="snipsearch.core.debounce"):
        await debouncer.flush()

    assert "Debounced callback failed" in caplog.text


def test_schedule_requires_running_loop():
    debouncer = Debouncer(10, Recorder())
    with pytest.raises(RuntimeError):
        debouncer.schedule()
    assert debouncer.generation == 0
