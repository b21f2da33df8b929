"""Reflector, delta queue and retry machinery for watched collections."""

from __future__ import annotations

from .deltas import (
    DeletedFinalStateUnknown,
    Delta,
    DeltaFIFO,
    Deltas,
    DeltaType,
    KnownObjects,
)
from .errors import (
    KnownObjectsError,
    ListWatchError,
    QueueClosedError,
    ReflectorStartupError,
    WatchExpiredError,
)
from .reflector import (
    DEFAULT_RESYNC_PERIOD,
    DeltaStore,
    EventType,
    ListerWatcher,
    Reflector,
    WatchEvent,
)
from .retry import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_BURST,
    DEFAULT_RETRY_QPS,
    QueueRetryManager,
    Retry,
    RetryController,
    TokenBucketRateLimiter,
    max_attempts_retry_func,
)
from .ttl import TTLStore

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_RESYNC_PERIOD",
    "DEFAULT_RETRY_BURST",
    "DEFAULT_RETRY_QPS",
    "DeletedFinalStateUnknown",
    "Delta",
    "DeltaFIFO",
    "DeltaStore",
    "DeltaType",
    "Deltas",
    "EventType",
    "KnownObjects",
    "KnownObjectsError",
    "ListWatchError",
    "ListerWatcher",
    "QueueClosedError",
    "QueueRetryManager",
    "Reflector",
    "ReflectorStartupError",
    "Retry",
    "RetryController",
    "TTLStore",
    "TokenBucketRateLimiter",
    "WatchEvent",
    "WatchExpiredError",
    "max_attempts_retry_func",
]
