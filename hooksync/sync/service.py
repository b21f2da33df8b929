"""The ``sync`` daemon: wire OpenShift and GitHub together and run until signalled."""

from __future__ import annotations

import asyncio
import signal
import typing as typ

from hooksync.cache import ReflectorStartupError
from hooksync.common.time import format_duration
from hooksync.config import resolve_public_url
from hooksync.github import SYNC_CONCURRENCY, GitHubHooksClient, HooksManager
from hooksync.logging import (
    get_logger,
    log_exception,
    log_info,
    log_v,
    log_warning,
)
from hooksync.openshift import BuildConfigsController, ControllerConfig, OpenShiftClient

from .handler import GitHubHookSync, SyncHandlerConfig

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

    from hooksync.config import SyncOptions

logger = get_logger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_signal_handlers(stop: asyncio.Event) -> cabc.Callable[[], None]:
    """Set ``stop`` on SIGINT or SIGTERM; return a function undoing this."""
    loop = asyncio.get_running_loop()

    def interrupted() -> None:
        log_info(logger, "Interrupted by user (or killed) !")
        stop.set()

    installed: list[signal.Signals] = []
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, interrupted)
        except NotImplementedError:
            log_warning(logger, "Cannot handle %s on this platform", sig.name)
            continue
        installed.append(sig)

    def remove() -> None:
        for sig in installed:
            loop.remove_signal_handler(sig)

    return remove


async def run_sync(
    options: SyncOptions,
    *,
    stop: asyncio.Event | None = None,
    github_http_client: httpx.AsyncClient | None = None,
    openshift_http_client: httpx.AsyncClient | None = None,
) -> int:
    """Keep GitHub hooks in step with BuildConfig triggers until stopped.

    When ``stop`` is not given, SIGINT and SIGTERM stop the daemon.

    Returns
    -------
    int
        0 after an orderly shutdown, 1 if watching BuildConfigs could not
        start.

    Raises
    ------
    ConfigError
        If the options are invalid.
    OpenShiftConfigError
        If no OpenShift server is configured.

    """
    options.validate()
    if options.dry_run:
        log_info(logger, "Starting hooksync sync in DRY-RUN mode...")
    else:
        log_info(logger, "Starting hooksync sync...")
    if options.resync_period:
        log_v(
            logger,
            1,
            "Full resync every %s",
            format_duration(options.resync_period),
        )

    public_url = await resolve_public_url(
        options.openshift_public_url, options.openshift
    )
    openshift = OpenShiftClient(
        options.openshift.load(), http_client=openshift_http_client
    )
    github = GitHubHooksClient(
        options.github.client_config(), http_client=github_http_client
    )
    handler = GitHubHookSync(
        HooksManager(github, max_concurrency=SYNC_CONCURRENCY),
        SyncHandlerConfig(
            organization=options.github.organization.strip(),
            public_url=public_url,
            dry_run=options.dry_run,
        ),
    )
    controller = BuildConfigsController(
        openshift,
        handler,
        ControllerConfig(public_url=public_url, resync_period=options.resync_period),
    )

    stop_event = stop or asyncio.Event()
    remove_handlers = install_signal_handlers(stop_event) if stop is None else None
    try:
        await controller.run_until(stop_event)
    except ReflectorStartupError as exc:
        log_exception(logger, f"Failed to watch BuildConfigs: {exc}", exc)
        return 1
    finally:
        if remove_handlers is not None:
            remove_handlers()
        await github.aclose()
        await openshift.aclose()

    log_info(logger, "Shutting down hooksync sync")
    return 0
