"""High-level management of GitHub hooks for OpenShift BuildConfigs.

:class:`HooksManager` turns desired :class:`~hooksync.hooks.Hook` values into
GitHub API calls and fans hook listings out across many repositories. All
requests it issues share one semaphore, so the configured concurrency bounds
the pressure hooksync puts on GitHub regardless of how many callers there are.
"""

from __future__ import annotations

import asyncio
import typing as typ

import httpx

from hooksync.hooks import GitHubRepository, Hook
from hooksync.logging import get_logger, log_error, log_v

from .errors import GitHubAPIError, GitHubResponseShapeError
from .models import HookRequest, RemoteHook

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .client import GitHubHooksClient

logger = get_logger(__name__)

SYNC_CONCURRENCY = 5
"""Parallel GitHub requests allowed on the sync path."""

LIST_CONCURRENCY = 10
"""Parallel GitHub requests allowed on the listing read path."""

_CHANNEL_CAPACITY = 100

# Failures that skip a single repository during a fan-out listing.
_LISTING_ERRORS = (GitHubAPIError, GitHubResponseShapeError, httpx.HTTPError)


def hooks_match(hook: Hook, remote: RemoteHook) -> bool:
    """Return True if the GitHub hook delivers to the hook's target URL."""
    return hook.target_url == remote.url


class HooksManager:
    """Create, delete and list GitHub hooks with bounded concurrency."""

    def __init__(
        self,
        client: GitHubHooksClient,
        *,
        max_concurrency: int = SYNC_CONCURRENCY,
    ) -> None:
        """Initialise the manager around a GitHub client."""
        self._client = client
        self._limiter = asyncio.Semaphore(max_concurrency)

    async def register_hook(self, hook: Hook) -> bool:
        """Create the hook unless one with the same URL already exists.

        Returns
        -------
        bool
            True if a hook was created.

        """
        repository = hook.repository
        log_v(
            logger,
            2,
            "Creating hook %s on GitHub repository %s ...",
            hook.target_url,
            repository,
        )
        remote_hooks = await self._list_remote_hooks(repository)
        if any(hooks_match(hook, remote) for remote in remote_hooks):
            log_v(
                logger,
                2,
                "Hook %s already exists on GitHub repository %s - nothing to do",
                hook.target_url,
                repository,
            )
            return False

        async with self._limiter:
            await self._client.create_hook(
                repository.owner, repository.name, HookRequest.for_hook(hook)
            )
        log_v(
            logger, 1, "Hook %s created on GitHub repository %s", hook.target_url, repository
        )
        return True

    async def delete_hook(self, hook: Hook) -> bool:
        """Delete every GitHub hook whose URL matches the hook's target URL.

        Returns
        -------
        bool
            True if at least one hook was deleted.

        """
        repository = hook.repository
        log_v(
            logger,
            2,
            "Deleting hook %s from GitHub repository %s ...",
            hook.target_url,
            repository,
        )
        remote_hooks = await self._list_remote_hooks(repository)
        matches = [remote for remote in remote_hooks if hooks_match(hook, remote)]
        if not matches:
            log_v(
                logger,
                2,
                "Hook %s not found on GitHub repository %s - nothing to do",
                hook.target_url,
                repository,
            )
            return False

        for remote in matches:
            async with self._limiter:
                await self._client.delete_hook(
                    repository.owner, repository.name, remote.id
                )
            log_v(
                logger,
                1,
                "Hook %s (id %d) deleted from GitHub repository %s",
                hook.target_url,
                remote.id,
                repository,
            )
        return True

    async def list_hooks_for_organization(self, organization: str) -> list[Hook]:
        """Return the non-empty hooks of every repository in an organisation."""
        log_v(logger, 2, "Listing hooks for organization %s ...", organization)
        log_v(logger, 3, "Listing repositories for organization %s ...", organization)
        async with self._limiter:
            remote_repositories = await self._client.list_organization_repositories(
                organization
            )
        log_v(
            logger,
            3,
            "Found %d repositories for organization %s",
            len(remote_repositories),
            organization,
        )
        repositories = [
            GitHubRepository(owner=remote.owner.login, name=remote.name)
            for remote in remote_repositories
        ]
        return await self.list_hooks_for_repositories(repositories)

    async def list_hooks_for_repository(self, repository: GitHubRepository) -> list[Hook]:
        """Return the non-empty hooks of a single repository.

        The repository is fetched first so a missing repository fails loudly
        instead of yielding an empty listing.
        """
        log_v(logger, 2, "Listing hooks for repository %s ...", repository)
        async with self._limiter:
            await self._client.get_repository(repository.owner, repository.name)
        return await self.list_hooks_for_repositories([repository])

    async def list_hooks_for_repositories(
        self, repositories: cabc.Iterable[GitHubRepository]
    ) -> list[Hook]:
        """Fan out hook listings across repositories and collect the results.

        Each listing holds a semaphore slot from before it is dispatched until
        it finishes, on success or failure. Hooks flow through a bounded
        channel into a single collector. A repository whose listing fails is
        logged and skipped.
        """
        channel: asyncio.Queue[Hook | None] = asyncio.Queue(maxsize=_CHANNEL_CAPACITY)
        hooks: list[Hook] = []

        async def collect() -> None:
            while (hook := await channel.get()) is not None:
                hooks.append(hook)

        collector = asyncio.create_task(collect())
        tasks: list[asyncio.Task[None]] = []
        try:
            for repository in repositories:
                await self._limiter.acquire()
                tasks.append(asyncio.create_task(self._forward_hooks(repository, channel)))
            await asyncio.gather(*tasks)
        finally:
            await channel.put(None)
            await collector
        return hooks

    async def _forward_hooks(
        self, repository: GitHubRepository, channel: asyncio.Queue[Hook | None]
    ) -> None:
        """List one repository's hooks and forward the non-empty ones.

        The caller acquires the semaphore slot; it is released here.
        """
        try:
            remote_hooks = await self._fetch_remote_hooks(repository)
        except _LISTING_ERRORS as exc:
            log_error(
                logger, "Failed to list hooks for repository %s: %s", repository, exc
            )
            return
        finally:
            self._limiter.release()

        for remote in remote_hooks:
            if not remote.url:
                log_v(logger, 5, "Ignoring empty hook on repository %s", repository)
                continue
            await channel.put(
                Hook(enabled=True, target_url=remote.url, repository=repository)
            )

    async def _list_remote_hooks(self, repository: GitHubRepository) -> list[RemoteHook]:
        async with self._limiter:
            return await self._fetch_remote_hooks(repository)

    async def _fetch_remote_hooks(self, repository: GitHubRepository) -> list[RemoteHook]:
        log_v(logger, 3, "Listing hooks for repository %s ...", repository)
        remote_hooks = await self._client.list_hooks(repository.owner, repository.name)
        log_v(
            logger, 3, "Found %d hooks for repository %s", len(remote_hooks), repository
        )
        return remote_hooks
