"""Unit tests for command options."""

from __future__ import annotations

import datetime as dt

import pytest

from hooksync.config import (
    ConfigError,
    GitHubOptions,
    ListOptions,
    OpenShiftOverrides,
    SyncOptions,
    resolve_public_url,
)


def test_missing_token_names_flag_and_variable() -> None:
    """An empty token points at both ways of providing one."""
    options = SyncOptions(github=GitHubOptions(token="", organization="octo"))

    with pytest.raises(ConfigError) as excinfo:
        options.validate()

    message = str(excinfo.value)
    assert "--github-token" in message
    assert "GITHUB_ACCESS_TOKEN" in message


def test_missing_organization_names_flag_and_variable() -> None:
    """An empty organisation points at both ways of providing one."""
    options = ListOptions(github=GitHubOptions(token="t", organization="  "))

    with pytest.raises(ConfigError, match="--organization flag or the GITHUB_ORGANIZATION"):
        options.validate()


def test_negative_resync_period_is_rejected() -> None:
    """Resync periods cannot be negative."""
    options = SyncOptions(
        github=GitHubOptions(token="t", organization="octo"),
        resync_period=dt.timedelta(seconds=-1),
    )

    with pytest.raises(ConfigError, match="--resync-period"):
        options.validate()


def test_zero_resync_period_is_allowed() -> None:
    """A zero period disables periodic resyncs."""
    SyncOptions(
        github=GitHubOptions(token="t", organization="octo"),
        resync_period=dt.timedelta(0),
    ).validate()


def test_client_config_strips_token_and_maps_tls_flag() -> None:
    """The GitHub client configuration reflects the options."""
    config = GitHubOptions(
        token=" gh-token ",
        organization="octo",
        base_url="https://ghe.example.test/api/v3/",
        insecure_skip_tls_verify=True,
    ).client_config()

    assert config.token == "gh-token"
    assert config.base_url == "https://ghe.example.test/api/v3/"
    assert config.verify_tls is False


def test_overrides_load_uses_explicit_values(monkeypatch: pytest.MonkeyPatch) -> None:
    """Command-line OpenShift settings produce the client configuration."""
    monkeypatch.delenv("OPENSHIFT_TOKEN", raising=False)
    config = OpenShiftOverrides(
        server="https://master.example.test", insecure_skip_tls_verify=True
    ).load()

    assert config.server == "https://master.example.test"
    assert config.verify_tls is False


@pytest.mark.asyncio
async def test_explicit_public_url_skips_discovery() -> None:
    """A given public URL is used as is, even when empty."""
    unusable = OpenShiftOverrides()

    assert await resolve_public_url("https://pub.example.test", unusable) == (
        "https://pub.example.test"
    )
    assert await resolve_public_url("", unusable) == ""
