"""Errors raised by the reflector, delta queue and known-objects sources."""

from __future__ import annotations


class ListWatchError(RuntimeError):
    """Raised when listing or watching the upstream resource fails."""


class WatchExpiredError(ListWatchError):
    """Raised when the watch resource version is too old and a relist is needed."""

    @classmethod
    def gone(cls, resource_version: str) -> WatchExpiredError:
        """Return an error for an expired (HTTP 410) resource version."""
        return cls(f"resource version {resource_version!r} is too old")


class KnownObjectsError(RuntimeError):
    """Raised when the known-objects source cannot answer."""


class ReflectorStartupError(RuntimeError):
    """Raised when the reflector cannot perform its initial list."""

    def __init__(self, reason: BaseException) -> None:
        """Initialise with the error that prevented the initial list."""
        self.reason = reason
        super().__init__(f"Failed to start watching: {reason}")


class QueueClosedError(RuntimeError):
    """Raised by :meth:`DeltaFIFO.pop` once the queue is closed and drained."""
