"""Mirror a remote collection into a delta store using list and watch.

The reflector performs a full list, replaces the store's contents with it and
then follows the server's watch stream from the listed resource version. A
full relist happens every ``resync_period`` and whenever the server reports
that the resource version has expired. Transport failures after the first
successful list are retried with exponential back-off.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import datetime as dt
import enum
import time
import typing as typ

import httpx

from hooksync.logging import get_logger, log_error, log_v

from .errors import (
    KnownObjectsError,
    ListWatchError,
    ReflectorStartupError,
    WatchExpiredError,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

DEFAULT_RESYNC_PERIOD = dt.timedelta(hours=1)

_MIN_WATCH_DURATION_S = 1.0

_LIST_WATCH_ERRORS = (ListWatchError, KnownObjectsError, httpx.HTTPError)


class EventType(enum.StrEnum):
    """Watch event kinds."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclasses.dataclass(frozen=True, slots=True)
class WatchEvent:
    """A decoded watch event and the resource version it leaves the stream at."""

    type: EventType
    object: object
    resource_version: str = ""


class ListerWatcher(typ.Protocol):
    """Remote collection that can be listed and watched."""

    async def list(self) -> tuple[list[object], str]:
        """Return every object and the collection's resource version."""
        ...

    def watch(
        self, resource_version: str
    ) -> cabc.AsyncGenerator[WatchEvent, None]:
        """Stream changes made after ``resource_version``."""
        ...


class DeltaStore(typ.Protocol):
    """Sink the reflector writes into."""

    async def add(self, obj: object) -> None: ...

    async def update(self, obj: object) -> None: ...

    async def delete(self, obj: object) -> None: ...

    async def replace(
        self, objects: cabc.Iterable[object], resource_version: str
    ) -> None: ...


class Reflector:
    """Keep a :class:`DeltaStore` in step with a remote collection."""

    def __init__(  # noqa: PLR0913 - timing knobs are injectable for tests
        self,
        lister_watcher: ListerWatcher,
        store: DeltaStore,
        *,
        resync_period: dt.timedelta = DEFAULT_RESYNC_PERIOD,
        backoff_initial_s: float = 1.0,
        backoff_max_s: float = 30.0,
        sleep: cabc.Callable[[float], cabc.Awaitable[object]] = asyncio.sleep,
        clock: cabc.Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the reflector; a zero ``resync_period`` disables relisting."""
        self._lister_watcher = lister_watcher
        self._store = store
        self._resync_s = resync_period.total_seconds()
        self._backoff_initial_s = backoff_initial_s
        self._backoff_max_s = backoff_max_s
        self._sleep = sleep
        self._clock = clock
        self._resource_version = ""
        self._listed = False

    async def run_until(self, stop: asyncio.Event) -> None:
        """List and watch until ``stop`` is set.

        Raises
        ------
        ReflectorStartupError
            If the initial list fails.

        """
        loop_task = asyncio.create_task(self._run())
        stop_task = asyncio.create_task(stop.wait())
        try:
            await asyncio.wait(
                {loop_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            stop_task.cancel()
            loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await loop_task
        log_v(
            logger, 5, "Reflector stopped at resource version %s", self._resource_version
        )

    async def list_and_watch(self) -> None:
        """Relist, then follow the watch until the resync period elapses."""
        objects, resource_version = await self._lister_watcher.list()
        self._listed = True
        log_v(
            logger,
            5,
            "Listed %d objects at resource version %s",
            len(objects),
            resource_version,
        )
        await self._store.replace(objects, resource_version)
        self._resource_version = resource_version

        if self._resync_s <= 0:
            await self._watch_forever()
            return
        try:
            async with asyncio.timeout(self._resync_s):
                await self._watch_forever()
        except TimeoutError:
            log_v(logger, 3, "Resync period elapsed; relisting")

    async def _run(self) -> None:
        backoff_s = self._backoff_initial_s
        while True:
            try:
                await self.list_and_watch()
            except WatchExpiredError as exc:
                log_v(logger, 2, "Watch expired (%s); relisting", exc)
            except _LIST_WATCH_ERRORS as exc:
                if not self._listed:
                    raise ReflectorStartupError(exc) from exc
                log_error(
                    logger,
                    "List and watch failed: %s; retrying in %.1fs",
                    exc,
                    backoff_s,
                )
                await self._sleep(backoff_s)
                backoff_s = min(backoff_s * 2, self._backoff_max_s)
                continue
            backoff_s = self._backoff_initial_s

    async def _watch_forever(self) -> None:
        while True:
            started = self._clock()
            received = 0
            async with contextlib.aclosing(
                self._lister_watcher.watch(self._resource_version)
            ) as events:
                async for event in events:
                    received += 1
                    await self._apply(event)
            if received == 0 and self._clock() - started < _MIN_WATCH_DURATION_S:
                msg = "watch closed immediately without delivering any event"
                raise ListWatchError(msg)
            log_v(logger, 5, "Watch closed after %d events; rewatching", received)

    async def _apply(self, event: WatchEvent) -> None:
        match event.type:
            case EventType.ADDED:
                await self._store.add(event.object)
            case EventType.MODIFIED:
                await self._store.update(event.object)
            case EventType.DELETED:
                await self._store.delete(event.object)
        if event.resource_version:
            self._resource_version = event.resource_version
