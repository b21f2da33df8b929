"""Command options for ``hooksync sync`` and ``hooksync list``."""

from __future__ import annotations

import dataclasses
import datetime as dt

from hooksync.cache import DEFAULT_RESYNC_PERIOD
from hooksync.github import DEFAULT_BASE_URL, GitHubConfig
from hooksync.openshift import OpenShiftConfig, discover_public_url


class ConfigError(ValueError):
    """Raised when command options are missing or invalid."""

    @classmethod
    def missing_token(cls) -> ConfigError:
        """Return an error for an empty GitHub token."""
        return cls(
            "Empty GitHub Access Token. Please provide one either with the "
            "--github-token flag or the GITHUB_ACCESS_TOKEN environment variable."
        )

    @classmethod
    def missing_organization(cls) -> ConfigError:
        """Return an error for an empty organisation name."""
        return cls(
            "Empty GitHub Organization Name. Please provide one either with the "
            "--organization flag or the GITHUB_ORGANIZATION environment variable."
        )

    @classmethod
    def invalid_duration(cls, flag: str, value: str, detail: object) -> ConfigError:
        """Return an error for an unparsable duration flag."""
        return cls(f"Invalid value {value!r} for {flag}: {detail}")

    @classmethod
    def negative_duration(cls, flag: str, value: str) -> ConfigError:
        """Return an error for a negative duration flag."""
        return cls(f"Invalid value {value!r} for {flag}: must not be negative")


@dataclasses.dataclass(frozen=True, slots=True)
class OpenShiftOverrides:
    """Client settings given on the command line, winning over the environment."""

    server: str | None = None
    token: str | None = None
    insecure_skip_tls_verify: bool | None = None

    def load(self) -> OpenShiftConfig:
        """Resolve the OpenShift client configuration."""
        return OpenShiftConfig.from_env(
            server=self.server,
            token=self.token,
            insecure_skip_tls_verify=self.insecure_skip_tls_verify,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubOptions:
    """GitHub access shared by every command."""

    token: str = ""
    organization: str = ""
    base_url: str = DEFAULT_BASE_URL
    insecure_skip_tls_verify: bool = False

    def validate(self) -> None:
        """Check the token and organisation are set.

        Raises
        ------
        ConfigError
            If either is empty.

        """
        if not self.token.strip():
            raise ConfigError.missing_token()
        if not self.organization.strip():
            raise ConfigError.missing_organization()

    def client_config(self) -> GitHubConfig:
        """Return the GitHub client configuration."""
        return GitHubConfig(
            token=self.token.strip(),
            base_url=self.base_url,
            verify_tls=not self.insecure_skip_tls_verify,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class SyncOptions:
    """Options of ``hooksync sync``.

    ``openshift_public_url`` is discovered from the master when None.
    """

    github: GitHubOptions
    openshift: OpenShiftOverrides = dataclasses.field(default_factory=OpenShiftOverrides)
    openshift_public_url: str | None = None
    resync_period: dt.timedelta = DEFAULT_RESYNC_PERIOD
    dry_run: bool = False

    def validate(self) -> None:
        """Check the options are usable.

        Raises
        ------
        ConfigError
            If the token or organisation is empty or the resync period is
            negative.

        """
        self.github.validate()
        if self.resync_period < dt.timedelta(0):
            raise ConfigError.negative_duration(
                "--resync-period", str(self.resync_period)
            )


@dataclasses.dataclass(frozen=True, slots=True)
class ListOptions:
    """Options of ``hooksync list``; ``repository`` narrows it to one repository."""

    github: GitHubOptions
    openshift: OpenShiftOverrides = dataclasses.field(default_factory=OpenShiftOverrides)
    openshift_public_url: str | None = None
    repository: str = ""

    def validate(self) -> None:
        """Check the options are usable.

        Raises
        ------
        ConfigError
            If the token or organisation is empty.

        """
        self.github.validate()


async def resolve_public_url(explicit: str | None, openshift: OpenShiftOverrides) -> str:
    """Return ``explicit`` when given, otherwise the discovered public URL."""
    if explicit is not None:
        return explicit
    return await discover_public_url(openshift.load)
