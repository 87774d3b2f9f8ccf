from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from warroom.config.loader import get_room_sync_settings

logger = logging.getLogger(__name__)

SnapshotT = TypeVar("SnapshotT")


class RoomSyncPoller(Generic[SnapshotT]):
    """
    Re-fetch the whole room snapshot on a fixed cadence and hand it to
    ``on_snapshot``, which replaces local state wholesale.

    Fetches are numbered when issued; a response is applied only if no later
    fetch has been applied already, so a slow periodic poll can never overwrite
    the result of a newer ``refresh_now``. A failed fetch is logged and the
    loop carries on at the next tick.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[SnapshotT]],
        on_snapshot: Callable[[SnapshotT], Any],
        interval: Optional[float] = None,
        on_error: Optional[Callable[[Exception], Any]] = None,
    ):
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self.interval = interval or get_room_sync_settings()["interval_seconds"]
        self._task: Optional[asyncio.Task] = None
        self._issued = 0
        self._applied = 0
        self.failures = 0
        self.last_error: Optional[Exception] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, immediate: bool = True) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(immediate))

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> "RoomSyncPoller[SnapshotT]":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def refresh_now(self) -> bool:
        """Fetch out of cadence, e.g. right after a local mutation."""
        return await self._poll_once()

    async def _run(self, immediate: bool) -> None:
        if not immediate:
            await asyncio.sleep(self.interval)
        while True:
            await self._poll_once()
            await asyncio.sleep(self.interval)

    async def _poll_once(self) -> bool:
        self._issued += 1
        sequence = self._issued
        try:
            snapshot = await self._fetch()
        except Exception as exc:  # noqa: BLE001
            self.failures += 1
            self.last_error = exc
            logger.warning("Room poll failed (%s): %s", type(exc).__name__, exc)
            if self._on_error is not None:
                await self._notify(self._on_error, exc)
            return False

        if sequence <= self._applied:
            logger.debug("Discarding stale snapshot #%s", sequence)
            return False
        self._applied = sequence
        self.last_error = None
        return await self._notify(self._on_snapshot, snapshot)

    async def _notify(self, callback: Callable[[Any], Any], value: Any) -> bool:
        """Run a callback; its failure is logged so the next tick still polls."""
        try:
            await _maybe_await(callback(value))
        except Exception as exc:  # noqa: BLE001
            self.failures += 1
            self.last_error = exc
            logger.exception("Room poll callback failed: %s", exc)
            return False
        return True


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result
