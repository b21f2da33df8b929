"""Command line interface for hooksync.

Usage::

    hooksync sync --organization=my-org --github-token=... --dry-run
    hooksync sync --organization=my-org --github-token=... -v 1
    hooksync list --organization=my-org --repository=my-repo

Environment variables:
    GITHUB_ACCESS_TOKEN   - GitHub token (needs ``repo`` and ``admin:repo_hook``)
    GITHUB_ORGANIZATION   - GitHub organisation to manage hooks for
    OPENSHIFT_SERVER      - OpenShift master URL (in-cluster service if unset)
    OPENSHIFT_TOKEN       - OpenShift bearer token
    HOOKSYNC_LOG_LEVEL    - Log level (default: INFO)
"""

from __future__ import annotations

import asyncio
import sys
import typing as typ

import httpx
from cyclopts import App, Parameter

from hooksync.common.time import parse_duration
from hooksync.config import (
    ConfigError,
    GitHubOptions,
    ListOptions,
    OpenShiftOverrides,
    SyncOptions,
)
from hooksync.github import (
    DEFAULT_BASE_URL,
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
)
from hooksync.listing import run_list
from hooksync.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_warning,
    set_verbosity,
)
from hooksync.openshift import OpenShiftConfigError
from hooksync.sync import run_sync

logger = get_logger(__name__)

app = App(
    name="hooksync",
    help="Manages GitHub hooks for OpenShift BuildConfig triggers",
    version="0.1.0",
)

_SETUP_ERRORS = (ConfigError, GitHubConfigError, OpenShiftConfigError)
_REMOTE_ERRORS = (GitHubAPIError, GitHubResponseShapeError, httpx.HTTPError)

GitHubToken = typ.Annotated[str, Parameter(env_var="GITHUB_ACCESS_TOKEN")]
Organization = typ.Annotated[str, Parameter(env_var="GITHUB_ORGANIZATION")]
LogLevel = typ.Annotated[str, Parameter(env_var="HOOKSYNC_LOG_LEVEL")]
Verbosity = typ.Annotated[int, Parameter(name=["--v", "-v"])]


def _configure_output(log_level: str, verbosity: int) -> None:
    normalized, invalid = configure_logging(log_level)
    if invalid:
        log_warning(
            logger,
            "Invalid HOOKSYNC_LOG_LEVEL %r, falling back to %s",
            log_level,
            normalized,
        )
    set_verbosity(verbosity)


def _report_setup_error(exc: Exception) -> int:
    print(f"Error: {exc}", file=sys.stderr)
    return 1


@app.default
def help_(*tokens: str) -> None:
    """Show help, including for an unknown command."""
    if tokens:
        log_warning(logger, "Unknown command %s", tokens[0])
    app.help_print()


@app.command
def sync(  # noqa: PLR0913 - mirrors the command's flags
    *,
    github_token: GitHubToken = "",
    organization: Organization = "",
    github_base_url: str = DEFAULT_BASE_URL,
    github_insecure_skip_tls_verify: bool = False,
    openshift_public_url: str | None = None,
    openshift_server: str | None = None,
    openshift_token: str | None = None,
    openshift_insecure_skip_tls_verify: bool | None = None,
    resync_period: str = "1h",
    dry_run: bool = False,
    log_level: LogLevel = "INFO",
    v: Verbosity = 0,
) -> int:
    """Automatically create or delete GitHub hooks based on OpenShift BuildConfig triggers.

    Watches every BuildConfig of the cluster and creates (or deletes) the
    GitHub hook of each BuildConfig that declares a GitHub trigger. Only
    repositories of the given organisation are touched.

    Args:
        github_token: GitHub access token (GITHUB_ACCESS_TOKEN).
        organization: GitHub organisation to sync hooks for (GITHUB_ORGANIZATION).
        github_base_url: GitHub API root, for GitHub Enterprise.
        github_insecure_skip_tls_verify: Do not check GitHub's certificate.
        openshift_public_url: Public URL of the OpenShift master; discovered if unset.
        openshift_server: OpenShift master URL (OPENSHIFT_SERVER).
        openshift_token: OpenShift bearer token (OPENSHIFT_TOKEN).
        openshift_insecure_skip_tls_verify: Do not check the master's certificate.
        resync_period: Interval between full resyncs, for example 1h or 30m; 0 disables.
        dry_run: Log the hooks that would be created or deleted without touching GitHub.
        log_level: Log level (HOOKSYNC_LOG_LEVEL).
        v: Log verbosity, 0 to 5.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    _configure_output(log_level, v)
    try:
        period = parse_duration(resync_period)
    except ValueError as exc:
        return _report_setup_error(
            ConfigError.invalid_duration("--resync-period", resync_period, exc)
        )

    options = SyncOptions(
        github=GitHubOptions(
            token=github_token,
            organization=organization,
            base_url=github_base_url,
            insecure_skip_tls_verify=github_insecure_skip_tls_verify,
        ),
        openshift=OpenShiftOverrides(
            server=openshift_server,
            token=openshift_token,
            insecure_skip_tls_verify=openshift_insecure_skip_tls_verify,
        ),
        openshift_public_url=openshift_public_url,
        resync_period=period,
        dry_run=dry_run,
    )
    try:
        return asyncio.run(run_sync(options))
    except _SETUP_ERRORS as exc:
        return _report_setup_error(exc)


@app.command(name="list")
def list_(  # noqa: PLR0913 - mirrors the command's flags
    *,
    github_token: GitHubToken = "",
    organization: Organization = "",
    repository: str = "",
    github_base_url: str = DEFAULT_BASE_URL,
    github_insecure_skip_tls_verify: bool = False,
    openshift_public_url: str | None = None,
    openshift_server: str | None = None,
    openshift_token: str | None = None,
    openshift_insecure_skip_tls_verify: bool | None = None,
    log_level: LogLevel = "INFO",
    v: Verbosity = 0,
) -> int:
    """List GitHub hooks targeting OpenShift BuildConfigs.

    Args:
        github_token: GitHub access token (GITHUB_ACCESS_TOKEN).
        organization: GitHub organisation to list hooks for (GITHUB_ORGANIZATION).
        repository: Only list the hooks of this repository of the organisation.
        github_base_url: GitHub API root, for GitHub Enterprise.
        github_insecure_skip_tls_verify: Do not check GitHub's certificate.
        openshift_public_url: Public URL of the OpenShift master; discovered if unset.
        openshift_server: OpenShift master URL (OPENSHIFT_SERVER).
        openshift_token: OpenShift bearer token (OPENSHIFT_TOKEN).
        openshift_insecure_skip_tls_verify: Do not check the master's certificate.
        log_level: Log level (HOOKSYNC_LOG_LEVEL).
        v: Log verbosity, 0 to 5.

    Returns:
        Exit code (0 for success, non-zero for failure).

    """
    _configure_output(log_level, v)
    options = ListOptions(
        github=GitHubOptions(
            token=github_token,
            organization=organization,
            base_url=github_base_url,
            insecure_skip_tls_verify=github_insecure_skip_tls_verify,
        ),
        openshift=OpenShiftOverrides(
            server=openshift_server,
            token=openshift_token,
            insecure_skip_tls_verify=openshift_insecure_skip_tls_verify,
        ),
        openshift_public_url=openshift_public_url,
        repository=repository,
    )
    try:
        return asyncio.run(run_list(options))
    except _SETUP_ERRORS as exc:
        return _report_setup_error(exc)
    except _REMOTE_ERRORS as exc:
        log_error(logger, "Failed to list GitHub hooks: %s", exc)
        return 1


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
