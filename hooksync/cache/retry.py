"""Requeueing of failed delta batches under a token-bucket rate limit."""

from __future__ import annotations

import asyncio
import dataclasses
import time
import typing as typ

from hooksync.logging import get_logger, log_error, log_exception, log_v

from .errors import QueueClosedError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .deltas import DeltaFIFO, Deltas

logger = get_logger(__name__)

DEFAULT_RETRY_QPS = 1.0
DEFAULT_RETRY_BURST = 10
DEFAULT_MAX_ATTEMPTS = 5


@dataclasses.dataclass(slots=True)
class Retry:
    """Failure history for one key since its last success."""

    count: int = 0
    start_time: float = 0.0


type RetryFunc = cabc.Callable[[Retry], bool]


def max_attempts_retry_func(max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> RetryFunc:
    """Return a retry policy allowing ``max_attempts`` handler calls in total.

    Examples
    --------
    >>> policy = max_attempts_retry_func(2)
    >>> policy(Retry(count=0)), policy(Retry(count=1))
    (True, False)

    """

    def should_retry(retry: Retry) -> bool:
        return retry.count + 1 < max_attempts

    return should_retry


class TokenBucketRateLimiter:
    """Token bucket refilled at ``qps`` tokens per second up to ``burst``."""

    def __init__(
        self,
        qps: float = DEFAULT_RETRY_QPS,
        burst: int = DEFAULT_RETRY_BURST,
        *,
        clock: cabc.Callable[[], float] = time.monotonic,
        sleep: cabc.Callable[[float], cabc.Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialise a full bucket."""
        if qps <= 0 or burst < 1:
            msg = f"invalid token bucket qps={qps} burst={burst}"
            raise ValueError(msg)
        self._qps = qps
        self._burst = float(burst)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._last = clock()
        self._lock = asyncio.Lock()

    def try_accept(self) -> bool:
        """Take a token if one is available without waiting."""
        self._refill()
        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False

    async def accept(self) -> None:
        """Wait until a token is available and take it."""
        async with self._lock:
            while not self.try_accept():
                await self._sleep((1 - self._tokens) / self._qps)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last)
        self._last = now
        self._tokens = min(self._burst, self._tokens + elapsed * self._qps)


class QueueRetryManager:
    """Requeue failed batches on a :class:`DeltaFIFO` while the policy allows."""

    def __init__(
        self,
        queue: DeltaFIFO,
        retry_func: RetryFunc,
        limiter: TokenBucketRateLimiter,
        *,
        clock: cabc.Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the manager for a queue."""
        self._queue = queue
        self._retry_func = retry_func
        self._limiter = limiter
        self._clock = clock
        self._retries: dict[str, Retry] = {}

    def attempts(self, deltas: Deltas) -> int:
        """Return the failures recorded for the batch's key since its last success."""
        retry = self._retries.get(self._queue.key_of(deltas))
        return 0 if retry is None else retry.count

    async def retry(self, deltas: Deltas, exc: BaseException) -> bool:
        """Requeue a failed batch, or drop it once the policy gives up.

        Returns
        -------
        bool
            True if the batch was requeued.

        """
        key = self._queue.key_of(deltas)
        retry = self._retries.setdefault(key, Retry(start_time=self._clock()))
        if not self._retry_func(retry):
            log_error(
                logger,
                "Dropping %s after %d attempts: %s",
                key,
                retry.count + 1,
                exc,
            )
            self._retries.pop(key, None)
            return False

        await self._limiter.accept()
        retry.count += 1
        log_v(logger, 3, "Requeueing %s (retry %d): %s", key, retry.count, exc)
        await self._queue.add_if_not_present(deltas)
        return True

    def forget(self, deltas: Deltas) -> None:
        """Clear the failure history for the batch's key."""
        self._retries.pop(self._queue.key_of(deltas), None)


class RetryController:
    """Pop batches from a queue, hand them to ``handle`` and retry failures."""

    def __init__(
        self,
        handle: cabc.Callable[[Deltas], cabc.Awaitable[None]],
        queue: DeltaFIFO,
        retry_manager: QueueRetryManager,
    ) -> None:
        """Initialise the controller."""
        self._handle = handle
        self._queue = queue
        self._retry_manager = retry_manager

    async def process_next(self) -> None:
        """Handle one batch.

        Raises
        ------
        QueueClosedError
            When the queue is closed and drained.

        """
        deltas = await self._queue.pop()
        try:
            await self._handle(deltas)
        except Exception as exc:  # noqa: BLE001 - any handler failure is retried
            log_exception(
                logger, f"Failed to handle {self._queue.key_of(deltas)}: {exc}", exc
            )
            await self._retry_manager.retry(deltas, exc)
        else:
            self._retry_manager.forget(deltas)

    async def run(self) -> None:
        """Process batches until the queue is closed and drained."""
        while True:
            try:
                await self.process_next()
            except QueueClosedError:
                break
        log_v(logger, 5, "Delta queue closed; stopping processing")
