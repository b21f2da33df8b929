"""Command line behaviour tests."""
# ruff: noqa: D103

from __future__ import annotations

import os
import subprocess
import sys

_CLEARED_ENV = (
    "GITHUB_ACCESS_TOKEN",
    "GITHUB_ORGANIZATION",
    "HOOKSYNC_LOG_LEVEL",
    "OPENSHIFT_SERVER",
    "OPENSHIFT_TOKEN",
)


def _run_cli(
    args: list[str], extra_env: dict[str, str] | None = None
) -> subprocess.CompletedProcess[str]:
    env = {key: value for key, value in os.environ.items() if key not in _CLEARED_ENV}
    env.update(extra_env or {})
    return subprocess.run(  # noqa: S603 - fixed argv
        [sys.executable, "-m", "hooksync", *args],
        env=env,
        text=True,
        capture_output=True,
        timeout=60,
    )


def test_help_lists_commands() -> None:
    result = _run_cli(["--help"])

    assert result.returncode == 0, result.stderr
    assert "sync" in result.stdout
    assert "list" in result.stdout


def test_unknown_command_prints_help() -> None:
    result = _run_cli(["bogus"])

    assert result.returncode == 0, result.stderr
    assert "sync" in result.stdout
    assert "list" in result.stdout


def test_sync_without_token_reports_error() -> None:
    result = _run_cli(["sync", "--organization", "octo"])

    assert result.returncode == 1
    assert "Empty GitHub Access Token" in result.stderr


def test_sync_rejects_invalid_resync_period() -> None:
    result = _run_cli(
        ["sync", "--github-token", "t", "--organization", "octo", "--resync-period", "soon"]
    )

    assert result.returncode == 1
    assert "Invalid value 'soon' for --resync-period" in result.stderr


def test_list_without_organization_reports_error() -> None:
    result = _run_cli(["list", "--github-token", "t"])

    assert result.returncode == 1
    assert "Empty GitHub Organization Name" in result.stderr


def test_token_is_read_from_environment() -> None:
    result = _run_cli(["list"], {"GITHUB_ACCESS_TOKEN": "t"})

    assert result.returncode == 1
    assert "Empty GitHub Organization Name" in result.stderr
