"""The ``list`` command: show GitHub hooks that trigger OpenShift BuildConfigs."""

from __future__ import annotations

import dataclasses
import sys
import typing as typ

from hooksync.config import resolve_public_url
from hooksync.github import LIST_CONCURRENCY, GitHubHooksClient, HooksManager
from hooksync.hooks import (
    GitHubRepository,
    explode_openshift_webhook_url,
    is_openshift_hook,
)
from hooksync.logging import get_logger, log_v

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

    from hooksync.config import ListOptions
    from hooksync.hooks import Hook

logger = get_logger(__name__)

HEADER = ("OWNER", "REPOSITORY", "NAMESPACE", "BUILDCONFIG", "WEBHOOK SECRET")

_MIN_COLUMN_WIDTH = 10
_COLUMN_PADDING = 3


@dataclasses.dataclass(frozen=True, slots=True)
class HookRow:
    """One displayed hook."""

    owner: str
    repository: str
    namespace: str
    build_config: str
    secret: str

    def cells(self) -> tuple[str, str, str, str, str]:
        """Return the row's cells in column order."""
        return (
            self.owner,
            self.repository,
            self.namespace,
            self.build_config,
            self.secret,
        )


def hook_rows(hooks: cabc.Iterable[Hook], public_url: str) -> list[HookRow]:
    """Keep our hooks and decode each into a row.

    Hooks that target the OpenShift instance but do not name a namespace and
    BuildConfig are dropped.
    """
    rows: list[HookRow] = []
    for hook in hooks:
        if not is_openshift_hook(hook.target_url, public_url):
            log_v(
                logger,
                4,
                "Ignoring non-openshift hook %s for repository %s",
                hook.target_url,
                hook.repository,
            )
            continue
        namespace, build_config, secret = explode_openshift_webhook_url(hook.target_url)
        if not namespace or not build_config:
            continue
        rows.append(
            HookRow(
                owner=hook.repository.owner,
                repository=hook.repository.name,
                namespace=namespace,
                build_config=build_config,
                secret=secret,
            )
        )
    return rows


def render_table(rows: cabc.Iterable[HookRow]) -> str:
    """Render rows under :data:`HEADER` as space-aligned columns.

    Every column but the last is padded to its widest cell plus three
    spaces, and to at least ten characters.

    Examples
    --------
    >>> print(render_table([HookRow("o", "r", "ns", "bc", "s")]), end="")
    OWNER     REPOSITORY   NAMESPACE   BUILDCONFIG   WEBHOOK SECRET
    o         r            ns          bc            s

    """
    lines = [HEADER, *(row.cells() for row in rows)]
    widths = [
        max(_MIN_COLUMN_WIDTH, max(len(line[index]) for line in lines) + _COLUMN_PADDING)
        for index in range(len(HEADER) - 1)
    ]
    rendered = [
        "".join(cell.ljust(width) for cell, width in zip(line, widths, strict=False))
        + line[-1]
        for line in lines
    ]
    return "\n".join(rendered) + "\n"


async def collect_hooks(
    manager: HooksManager, organization: str, repository: str = ""
) -> list[Hook]:
    """List the hooks of one repository, or of the whole organisation."""
    if repository:
        return await manager.list_hooks_for_repository(
            GitHubRepository(owner=organization, name=repository)
        )
    return await manager.list_hooks_for_organization(organization)


async def run_list(
    options: ListOptions,
    *,
    http_client: httpx.AsyncClient | None = None,
    out: typ.TextIO | None = None,
) -> int:
    """Print the GitHub hooks that target OpenShift BuildConfigs.

    Raises
    ------
    ConfigError
        If the options are invalid.
    GitHubAPIError
        If the organisation or repository cannot be listed.

    """
    options.validate()
    public_url = await resolve_public_url(
        options.openshift_public_url, options.openshift
    )
    client = GitHubHooksClient(options.github.client_config(), http_client=http_client)
    try:
        hooks = await collect_hooks(
            HooksManager(client, max_concurrency=LIST_CONCURRENCY),
            options.github.organization.strip(),
            options.repository.strip(),
        )
    finally:
        await client.aclose()

    stream = out or sys.stdout
    stream.write(render_table(hook_rows(hooks, public_url)))
    stream.flush()
    return 0
