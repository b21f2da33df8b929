"""A keyed FIFO of object deltas.

Producers (the reflector) push ``(type, object)`` deltas; the single consumer
pops every pending delta for one key as an ordered batch. During a full
relist the queue asks a *known-objects* source which keys it believes exist
and emits a :class:`DeletedFinalStateUnknown` tombstone for each key the
relist no longer contains, so deletions missed while disconnected are still
reconciled.
"""

from __future__ import annotations

import asyncio
import collections
import dataclasses
import enum
import typing as typ

from hooksync.logging import get_logger, log_error, log_v

from .errors import KnownObjectsError, QueueClosedError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)


class DeltaType(enum.StrEnum):
    """Kinds of change a delta can describe."""

    ADDED = "Added"
    UPDATED = "Updated"
    DELETED = "Deleted"
    SYNC = "Sync"


@dataclasses.dataclass(frozen=True, slots=True)
class DeletedFinalStateUnknown:
    """Tombstone for a key that disappeared while its final state was unseen.

    ``obj`` is the last state the known-objects source holds for the key, or
    None when it could not supply one.
    """

    key: str
    obj: object | None


@dataclasses.dataclass(frozen=True, slots=True)
class Delta:
    """A single change to an object."""

    type: DeltaType
    object: object


type Deltas = list[Delta]


class KnownObjects(typ.Protocol):
    """Source of the keys the process currently believes exist."""

    async def list_keys(self) -> list[str]:
        """Return every known key."""
        ...

    async def get_by_key(self, key: str) -> tuple[object | None, bool]:
        """Return the last known object for ``key`` and whether it exists."""
        ...


def _is_deletion(delta: Delta) -> bool:
    return delta.type is DeltaType.DELETED


def _dedup_deltas(deltas: Deltas) -> Deltas:
    """Collapse two trailing deletions into one, keeping the more informative."""
    if len(deltas) < 2:  # noqa: PLR2004 - a pair is needed to collapse
        return deltas
    previous, latest = deltas[-2], deltas[-1]
    if not (_is_deletion(previous) and _is_deletion(latest)):
        return deltas
    keep = previous if isinstance(latest.object, DeletedFinalStateUnknown) else latest
    return [*deltas[:-2], keep]


async def _last_known_state(known_objects: KnownObjects, key: str) -> object | None:
    try:
        obj, exists = await known_objects.get_by_key(key)
    except KnownObjectsError as exc:
        log_error(logger, "Failed to get the last known state of %s: %s", key, exc)
        return None
    return obj if exists else None


class DeltaFIFO:
    """Per-key FIFO of deltas with tombstone reconciliation on relist."""

    def __init__(
        self,
        key_func: cabc.Callable[[object], str],
        known_objects: KnownObjects | None = None,
    ) -> None:
        """Initialise the queue with a key function and optional known objects."""
        self._key_func = key_func
        self._known_objects = known_objects
        self._items: dict[str, Deltas] = {}
        self._queue: collections.deque[str] = collections.deque()
        self._condition = asyncio.Condition()
        self._closed = False

    def key_of(self, obj: object) -> str:
        """Return the key for an object, a tombstone or a batch of deltas."""
        if isinstance(obj, list) and obj and isinstance(obj[-1], Delta):
            obj = obj[-1].object
        if isinstance(obj, DeletedFinalStateUnknown):
            return obj.key
        return self._key_func(obj)

    @property
    def closed(self) -> bool:
        """Return True once :meth:`close` has been called."""
        return self._closed

    def __len__(self) -> int:
        """Return the number of keys with pending deltas."""
        return len(self._queue)

    def pending_keys(self) -> list[str]:
        """Return the keys with pending deltas in pop order."""
        return list(self._queue)

    async def add(self, obj: object) -> None:
        """Queue an ``Added`` delta."""
        await self._queue_action(DeltaType.ADDED, obj)

    async def update(self, obj: object) -> None:
        """Queue an ``Updated`` delta."""
        await self._queue_action(DeltaType.UPDATED, obj)

    async def delete(self, obj: object) -> None:
        """Queue a ``Deleted`` delta."""
        await self._queue_action(DeltaType.DELETED, obj)

    async def add_if_not_present(self, deltas: Deltas) -> None:
        """Requeue a batch unless newer deltas for its key are already pending."""
        if not deltas:
            return
        key = self.key_of(deltas)
        async with self._condition:
            if key in self._items:
                return
            self._items[key] = list(deltas)
            self._queue.append(key)
            self._condition.notify_all()

    async def replace(self, objects: cabc.Iterable[object], resource_version: str) -> None:
        """Queue a ``Sync`` delta per listed object and tombstones for the rest.

        Raises
        ------
        KnownObjectsError
            If the known-objects source cannot list its keys. The ``Sync``
            deltas are queued before the source is consulted.

        """
        log_v(logger, 5, "Replacing queue contents at resource version %s", resource_version)
        listed: set[str] = set()
        async with self._condition:
            for obj in objects:
                key = self.key_of(obj)
                listed.add(key)
                self._append_locked(key, Delta(DeltaType.SYNC, obj))
            self._condition.notify_all()

        if self._known_objects is None:
            await self._tombstone_unlisted_items(listed)
            return

        known_objects = self._known_objects
        known_keys = await known_objects.list_keys()
        for key in known_keys:
            if key in listed:
                continue
            last_state = await _last_known_state(known_objects, key)
            log_v(logger, 3, "Key %s is known but absent from the relist", key)
            await self._queue_action(
                DeltaType.DELETED, DeletedFinalStateUnknown(key=key, obj=last_state)
            )

    async def pop(self) -> Deltas:
        """Wait for and return the oldest pending batch of deltas.

        Raises
        ------
        QueueClosedError
            Once the queue is closed and every pending batch has been popped.

        """
        async with self._condition:
            while not self._queue:
                if self._closed:
                    raise QueueClosedError
                await self._condition.wait()
            key = self._queue.popleft()
            return self._items.pop(key)

    async def close(self) -> None:
        """Stop blocking readers; pending batches can still be drained."""
        async with self._condition:
            self._closed = True
            self._condition.notify_all()

    async def _tombstone_unlisted_items(self, listed: set[str]) -> None:
        async with self._condition:
            for key, deltas in list(self._items.items()):
                if key in listed or not deltas:
                    continue
                last_state = deltas[-1].object
                if isinstance(last_state, DeletedFinalStateUnknown):
                    continue
                self._append_locked(
                    key,
                    Delta(
                        DeltaType.DELETED,
                        DeletedFinalStateUnknown(key=key, obj=last_state),
                    ),
                )
            self._condition.notify_all()

    async def _queue_action(self, delta_type: DeltaType, obj: object) -> None:
        key = self.key_of(obj)
        async with self._condition:
            self._append_locked(key, Delta(delta_type, obj))
            self._condition.notify_all()

    def _append_locked(self, key: str, delta: Delta) -> None:
        deltas = _dedup_deltas([*self._items.get(key, []), delta])
        if key not in self._items:
            self._queue.append(key)
        self._items[key] = deltas
