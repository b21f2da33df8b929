"""Domain models linking GitHub repositories to OpenShift build triggers."""

from __future__ import annotations

import dataclasses

from hooksync.common.slug import repo_slug

IGNORE_ANNOTATION = "openshift-github-hooks-sync/ignore"
"""BuildConfig annotation whose boolean value excludes it from syncing."""


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRepository:
    """Owner and name of a GitHub repository."""

    owner: str
    name: str

    @property
    def slug(self) -> str:
        """Return the GitHub-style owner/name identifier."""
        return repo_slug(self.owner, self.name)

    def __str__(self) -> str:
        """Render as ``owner/name``."""
        return self.slug


@dataclasses.dataclass(frozen=True, slots=True)
class Hook:
    """A webhook linking a GitHub repository to an OpenShift BuildConfig.

    The link is carried by ``target_url``, the OpenShift endpoint that
    triggers a new build. ``enabled`` states whether the hook must exist on
    GitHub (``True``) or must be removed (``False``).
    """

    enabled: bool
    target_url: str
    repository: GitHubRepository

    def disabled(self) -> Hook:
        """Return a copy of this hook marked for deletion."""
        return dataclasses.replace(self, enabled=False)
