"""Controller turning BuildConfig changes into desired GitHub hooks.

The controller watches every BuildConfig of the cluster, keeps those with a
GitHub source and a GitHub webhook trigger, and hands a :class:`Hook` per
change to a :class:`HookHandler`. The handler also acts as the source of
keys the process already knows about, which lets deletions that happened
while the controller was not watching be reconciled on the next relist.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import typing as typ

from hooksync.cache import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RESYNC_PERIOD,
    DEFAULT_RETRY_BURST,
    DEFAULT_RETRY_QPS,
    DeletedFinalStateUnknown,
    DeltaFIFO,
    DeltaType,
    QueueRetryManager,
    Reflector,
    RetryController,
    TokenBucketRateLimiter,
    max_attempts_retry_func,
)
from hooksync.hooks import (
    IGNORE_ANNOTATION,
    Hook,
    InvalidRepositoryURIError,
    fix_openshift_hook_url,
    parse_github_repository,
)
from hooksync.logging import get_logger, log_error, log_v, log_warning

from .errors import WebhookURLError
from .models import BuildConfig, build_config_key

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from hooksync.cache import Deltas, WatchEvent

    from .client import OpenShiftClient

logger = get_logger(__name__)

_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(value: str) -> bool:
    """Parse a boolean the way Go's ``strconv.ParseBool`` does.

    Raises
    ------
    ValueError
        If the value is not one of the accepted spellings.

    Examples
    --------
    >>> parse_bool("T"), parse_bool("0")
    (True, False)

    """
    if value in _TRUE_STRINGS:
        return True
    if value in _FALSE_STRINGS:
        return False
    msg = f"invalid boolean {value!r}"
    raise ValueError(msg)


class HookHandler(typ.Protocol):
    """Consumer of desired hooks and source of the keys already known."""

    async def handle(self, hook: Hook) -> None:
        """Bring GitHub in line with ``hook``."""
        ...

    async def list_keys(self) -> list[str]:
        """Return the ``namespace/name`` keys of existing hooks."""
        ...

    async def get_by_key(self, key: str) -> tuple[object | None, bool]:
        """Return the existing hook for a key and whether it exists."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class ControllerConfig:
    """Tuning of the BuildConfigs controller."""

    public_url: str = ""
    resync_period: dt.timedelta = DEFAULT_RESYNC_PERIOD
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_qps: float = DEFAULT_RETRY_QPS
    retry_burst: int = DEFAULT_RETRY_BURST


class BuildConfigsController:
    """React to BuildConfig changes that carry a GitHub webhook trigger."""

    def __init__(
        self,
        client: OpenShiftClient,
        handler: HookHandler,
        config: ControllerConfig | None = None,
    ) -> None:
        """Initialise the controller."""
        self._client = client
        self._handler = handler
        self._config = config or ControllerConfig()

    async def list(self) -> tuple[list[object], str]:
        """List every BuildConfig and the list's resource version."""
        build_configs = await self._client.list_build_configs()
        return list(build_configs.items), build_configs.metadata.resource_version

    def watch(self, resource_version: str) -> cabc.AsyncGenerator[WatchEvent, None]:
        """Watch every BuildConfig from ``resource_version``."""
        return self._client.watch_build_configs(resource_version)

    async def list_keys(self) -> list[str]:
        """Return the keys the handler knows about."""
        return await self._handler.list_keys()

    async def get_by_key(self, key: str) -> tuple[object | None, bool]:
        """Return the handler's last known object for a key."""
        return await self._handler.get_by_key(key)

    async def run_until(self, stop: asyncio.Event) -> None:
        """Watch BuildConfigs and dispatch hooks until ``stop`` is set.

        Raises
        ------
        ReflectorStartupError
            If the initial BuildConfig list fails.

        """
        queue = DeltaFIFO(build_config_key, known_objects=self)
        reflector = Reflector(self, queue, resync_period=self._config.resync_period)
        retry_manager = QueueRetryManager(
            queue,
            max_attempts_retry_func(self._config.max_attempts),
            TokenBucketRateLimiter(self._config.retry_qps, self._config.retry_burst),
        )
        processing = asyncio.create_task(
            RetryController(self.handle, queue, retry_manager).run()
        )
        try:
            await reflector.run_until(stop)
        except BaseException:
            processing.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await processing
            raise
        await queue.close()
        await processing

    async def handle(self, deltas: Deltas) -> None:
        """Dispatch the hooks described by a batch of deltas, in order."""
        for delta in deltas:
            match delta.object:
                case BuildConfig() as build_config:
                    await self._handle_build_config(build_config, delta.type)
                case DeletedFinalStateUnknown(key=key, obj=Hook() as hook):
                    log_v(logger, 5, "Handling %s tombstone for %s", delta.type, key)
                    log_v(logger, 3, "Processing hook %s for key %s", hook.target_url, key)
                    await self._handler.handle(hook.disabled())
                case DeletedFinalStateUnknown(key=key, obj=obj):
                    log_warning(
                        logger,
                        "Unhandled %s tombstone for %s: %r",
                        delta.type,
                        key,
                        obj,
                    )
                case other:
                    log_warning(
                        logger,
                        "Unhandled delta payload %s (%s)",
                        type(other).__name__,
                        delta.type,
                    )

    def accept_build_config(self, build_config: BuildConfig) -> bool:
        """Return True if the BuildConfig needs a GitHub hook."""
        key = build_config.key
        git = build_config.spec.source.git
        if git is None:
            log_v(logger, 4, "Ignoring BC %s with non-git sources", key)
            return False
        if "github" not in git.uri:
            log_v(logger, 4, "Ignoring BC %s with non-github sources", key)
            return False
        if not build_config.github_triggers():
            log_v(logger, 4, "Ignoring BC %s with no github trigger", key)
            return False

        raw_ignore = build_config.metadata.annotations.get(IGNORE_ANNOTATION)
        if raw_ignore is None:
            return True
        try:
            ignore = parse_bool(raw_ignore)
        except ValueError:
            log_error(
                logger,
                "Failed to parse annotation value %r for %s on BC %s",
                raw_ignore,
                IGNORE_ANNOTATION,
                key,
            )
            return True
        if ignore:
            log_v(
                logger,
                4,
                "Ignoring BC %s because of annotation %s (%s)",
                key,
                IGNORE_ANNOTATION,
                raw_ignore,
            )
            return False
        return True

    def new_hook(self, build_config: BuildConfig, delta_type: DeltaType) -> Hook:
        """Build the desired hook for an accepted BuildConfig.

        Only the first GitHub trigger is used.

        Raises
        ------
        WebhookURLError
            If the trigger has no secret to build a URL from.
        InvalidRepositoryURIError
            If the git URI does not name a GitHub repository.

        """
        trigger = build_config.github_triggers()[0]
        hook_url = self._client.webhook_url(build_config, trigger)
        git = build_config.spec.source.git
        repository = parse_github_repository(git.uri if git is not None else "")
        return Hook(
            enabled=delta_type is not DeltaType.DELETED,
            target_url=fix_openshift_hook_url(hook_url, self._config.public_url),
            repository=repository,
        )

    async def _handle_build_config(
        self, build_config: BuildConfig, delta_type: DeltaType
    ) -> None:
        key = build_config.key
        log_v(logger, 5, "Handling %s for BC %s", delta_type, key)
        if not self.accept_build_config(build_config):
            return
        log_v(logger, 3, "Accepting BC %s", key)
        try:
            hook = self.new_hook(build_config, delta_type)
        except (InvalidRepositoryURIError, WebhookURLError) as exc:
            log_v(logger, 4, "Failed to build a hook for BC %s: %s", key, exc)
            raise
        await self._handler.handle(hook)
