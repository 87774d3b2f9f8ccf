import asyncio

import pytest

from warroom.client.poller import RoomSyncPoller
from warroom.errors import TransientFetchError


@pytest.mark.anyio("asyncio")
async def test_poller_fetches_immediately_and_on_cadence():
    applied = []
    counter = {"n": 0}

    async def fetch():
        counter["n"] += 1
        return counter["n"]

    poller = RoomSyncPoller(fetch, applied.append, interval=0.01)
    poller.start()
    await asyncio.sleep(0.1)
    await poller.stop()

    assert applied[0] == 1
    assert len(applied) >= 3
    assert applied == sorted(applied)
    assert not poller.running


@pytest.mark.anyio("asyncio")
async def test_failures_do_not_stop_polling():
    applied = []
    errors = []
    outcomes = iter([TransientFetchError(), TransientFetchError(), "snapshot"])

    async def fetch():
        outcome = next(outcomes, "snapshot")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    poller = RoomSyncPoller(fetch, applied.append, interval=0.01, on_error=errors.append)
    poller.start()
    await asyncio.sleep(0.1)
    await poller.stop()

    assert poller.failures == 2
    assert len(errors) == 2
    assert applied and applied[0] == "snapshot"
    assert poller.last_error is None


@pytest.mark.anyio("asyncio")
async def test_stale_response_is_not_applied():
    applied = []
    slow_release = asyncio.Event()
    calls = {"n": 0}

    async def fetch():
        calls["n"] += 1
        if calls["n"] == 1:
            await slow_release.wait()
            return "old"
        return "new"

    poller = RoomSyncPoller(fetch, applied.append, interval=60)
    slow = asyncio.create_task(poller.refresh_now())
    await asyncio.sleep(0)
    assert await poller.refresh_now() is True
    slow_release.set()
    assert await slow is False

    assert applied == ["new"]


@pytest.mark.anyio("asyncio")
async def test_async_callbacks_are_awaited():
    applied = []

    async def fetch():
        return "snap"

    async def on_snapshot(snapshot):
        await asyncio.sleep(0)
        applied.append(snapshot)

    poller = RoomSyncPoller(fetch, on_snapshot, interval=60)
    assert await poller.refresh_now() is True
    assert applied == ["snap"]


@pytest.mark.anyio("asyncio")
async def test_start_is_idempotent_and_stop_is_safe():
    async def fetch():
        return None

    poller = RoomSyncPoller(fetch, lambda _: None, interval=60)
    await poller.stop()
    poller.start()
    task = poller._task
    poller.start()
    assert poller._task is task
    await poller.stop()
    assert task.cancelled() or task.done()


@pytest.mark.anyio("asyncio")
async def test_failing_callbacks_do_not_stop_polling():
    applied = []
    counter = {"n": 0}

    async def fetch():
        counter["n"] += 1
        if counter["n"] == 2:
            raise TransientFetchError()
        return counter["n"]

    def on_snapshot(snapshot):
        if snapshot == 1:
            raise ValueError("bad snapshot")
        applied.append(snapshot)

    def on_error(exc):
        raise RuntimeError("error handler broke")

    poller = RoomSyncPoller(fetch, on_snapshot, interval=0.01, on_error=on_error)
    poller.start()
    await asyncio.sleep(0.1)
    assert poller.running
    await poller.stop()

    assert counter["n"] >= 4
    assert applied and applied[0] == 3
    assert poller.failures == 3
