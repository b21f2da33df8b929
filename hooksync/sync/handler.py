"""Sync handler applying desired hooks to one GitHub organisation."""

from __future__ import annotations

import dataclasses
import datetime as dt
import time
import typing as typ

import httpx

from hooksync.cache import KnownObjectsError, TTLStore
from hooksync.github import GitHubAPIError, GitHubResponseShapeError
from hooksync.hooks import hook_key, is_openshift_hook
from hooksync.logging import get_logger, log_error, log_info, log_v

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from hooksync.github import HooksManager
    from hooksync.hooks import Hook

logger = get_logger(__name__)

DEFAULT_CACHE_TTL = dt.timedelta(minutes=2)

_GITHUB_ERRORS = (GitHubAPIError, GitHubResponseShapeError, httpx.HTTPError)


@dataclasses.dataclass(frozen=True, slots=True)
class SyncHandlerConfig:
    """Settings of the sync handler.

    Attributes
    ----------
    organization
        GitHub organisation whose repositories hooks are managed for.
    public_url
        Public URL of the OpenShift master; hooks under it are ours.
    dry_run
        Log intended changes instead of applying them.
    cache_ttl
        Lifetime of cached organisation hooks.

    """

    organization: str
    public_url: str = ""
    dry_run: bool = False
    cache_ttl: dt.timedelta = DEFAULT_CACHE_TTL


def key_for_hook(hook: Hook, public_url: str) -> str:
    """Return the ``namespace/buildconfig`` key of one of our hooks.

    Raises
    ------
    ValueError
        If the hook does not target the OpenShift instance at ``public_url``
        or its URL does not name a BuildConfig.

    """
    if not is_openshift_hook(hook.target_url, public_url):
        msg = f"Hook {hook.target_url} does not target an OpenShift endpoint"
        raise ValueError(msg)
    key = hook_key(hook.target_url)
    if key is None:
        msg = f"Hook {hook.target_url} does not target a valid OpenShift endpoint"
        raise ValueError(msg)
    return key


class GitHubHookSync:
    """Create or delete GitHub hooks and report the hooks already present."""

    def __init__(
        self,
        manager: HooksManager,
        config: SyncHandlerConfig,
        *,
        clock: cabc.Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the handler around a hooks manager."""
        self._manager = manager
        self._config = config
        self._cache: TTLStore[Hook] = TTLStore(
            self._key_of, config.cache_ttl, clock=clock
        )

    async def handle(self, hook: Hook) -> None:
        """Register or delete ``hook`` on GitHub, unless it is out of scope."""
        repository = hook.repository
        if repository.owner.lower() != self._config.organization.lower():
            log_v(
                logger,
                4,
                "Ignoring hook for external repository '%s' owned by '%s' "
                "(instead of '%s')",
                repository.name,
                repository.owner,
                self._config.organization,
            )
            return

        if hook.enabled:
            if self._config.dry_run:
                log_info(
                    logger,
                    "DRY_RUN_MODE: would have registered hook on %s with target URL: %s",
                    repository,
                    hook.target_url,
                )
                return
            await self._manager.register_hook(hook)
            return

        if self._config.dry_run:
            log_info(
                logger,
                "DRY_RUN_MODE: would have deleted hook from %s with target URL: %s",
                repository,
                hook.target_url,
            )
            return
        await self._manager.delete_hook(hook)

    async def list_keys(self) -> list[str]:
        """List our hooks across the organisation, caching each one.

        Raises
        ------
        KnownObjectsError
            If the organisation's hooks cannot be listed.

        """
        keys: list[str] = []
        for hook in await self._list_our_hooks():
            keys.append(self._cache.add(hook))
        return keys

    async def get_by_key(self, key: str) -> tuple[object | None, bool]:
        """Return the hook for ``key`` from the cache, relisting on a miss.

        Raises
        ------
        KnownObjectsError
            If the relist fails.

        """
        cached = self._cache.get_by_key(key)
        if cached is not None:
            return (cached, True)
        for hook in await self._list_our_hooks():
            if self._key_of(hook) == key:
                return (hook, True)
        return (None, False)

    def _key_of(self, hook: Hook) -> str:
        return key_for_hook(hook, self._config.public_url)

    async def _list_our_hooks(self) -> list[Hook]:
        organization = self._config.organization
        try:
            hooks = await self._manager.list_hooks_for_organization(organization)
        except _GITHUB_ERRORS as exc:
            msg = f"Failed to list github hooks for org {organization}: {exc}"
            raise KnownObjectsError(msg) from exc

        ours: list[Hook] = []
        for hook in hooks:
            if not is_openshift_hook(hook.target_url, self._config.public_url):
                log_v(
                    logger,
                    5,
                    "Ignoring non-openshift hook %s for repository %s",
                    hook.target_url,
                    hook.repository,
                )
                continue
            try:
                self._key_of(hook)
            except ValueError as exc:
                log_error(logger, "Failed to retrieve key from hook %s: %s", hook, exc)
                continue
            ours.append(hook)
        return ours
