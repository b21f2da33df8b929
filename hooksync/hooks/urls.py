"""Helpers for GitHub repository URIs and OpenShift webhook URLs.

Repository URIs come from BuildConfig git sources and may use any of the
usual shapes (``https://github.com/o/n``, ``git@github.com:o/n.git``).
Webhook URLs are minted by OpenShift and look like::

    https://master:8443/oapi/v1/namespaces/<ns>/buildconfigs/<bc>/webhooks/<secret>/github

"""

from __future__ import annotations

import re
import urllib.parse

from hooksync.common.slug import repo_slug

from .errors import InvalidRepositoryURIError
from .models import GitHubRepository

GITHUB_URI_PATTERN = re.compile(r"github\.com[:/]([^/]+)/([^.]+)")

_OPENSHIFT_WEBHOOK_PATTERN = re.compile(
    r"oapi/v1/namespaces/([^/]+)/buildconfigs/([^/]+)/webhooks/([^/]+)/github"
)

GITHUB_WEBHOOK_SUFFIX = "/github"


def parse_github_repository(uri: str) -> GitHubRepository:
    """Extract the owner and name of a GitHub repository from its URI.

    Raises
    ------
    InvalidRepositoryURIError
        If the URI does not reference a ``github.com`` repository.

    Examples
    --------
    >>> parse_github_repository("git@github.com:owner/name.git")
    GitHubRepository(owner='owner', name='name')

    """
    match = GITHUB_URI_PATTERN.search(uri)
    if match is None:
        raise InvalidRepositoryURIError(uri)
    return GitHubRepository(owner=match.group(1), name=match.group(2))


def split_repository_uri(uri: str) -> tuple[str, str]:
    """Return ``(owner, name)`` for a GitHub URI, or two empty strings."""
    try:
        repository = parse_github_repository(uri)
    except InvalidRepositoryURIError:
        return ("", "")
    return (repository.owner, repository.name)


def fix_openshift_hook_url(hook_url: str, public_url: str) -> str:
    """Rewrite the scheme and host of ``hook_url`` to the public OpenShift URL.

    OpenShift mints webhook URLs from the address the client used, which is
    often an internal one. The leading ``scheme://host[:port]`` is replaced
    verbatim by ``public_url``; an empty ``public_url`` leaves the URL as is.
    """
    if not public_url:
        return hook_url
    parts = urllib.parse.urlsplit(hook_url)
    origin = f"{parts.scheme}://{parts.netloc}"
    return hook_url.replace(origin, public_url, 1)


def is_openshift_hook(hook_url: str, public_url: str) -> bool:
    """Return True if the hook URL targets the OpenShift instance at ``public_url``."""
    if public_url not in hook_url:
        return False
    return hook_url.endswith(GITHUB_WEBHOOK_SUFFIX)


def explode_openshift_webhook_url(hook_url: str) -> tuple[str, str, str]:
    """Return the namespace, buildconfig and secret encoded in a webhook URL.

    Three empty strings are returned when the URL is not a GitHub webhook URL.
    """
    match = _OPENSHIFT_WEBHOOK_PATTERN.search(hook_url)
    if match is None:
        return ("", "", "")
    return (match.group(1), match.group(2), match.group(3))


def hook_key(hook_url: str) -> str | None:
    """Return the ``namespace/buildconfig`` key for a webhook URL, if any."""
    namespace, buildconfig, _ = explode_openshift_webhook_url(hook_url)
    if not namespace or not buildconfig:
        return None
    return repo_slug(namespace, buildconfig)
