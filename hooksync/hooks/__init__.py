"""Hook identities: repositories, target URLs and the keys that tie them together."""

from .errors import InvalidRepositoryURIError
from .models import IGNORE_ANNOTATION, GitHubRepository, Hook
from .urls import (
    explode_openshift_webhook_url,
    fix_openshift_hook_url,
    hook_key,
    is_openshift_hook,
    parse_github_repository,
    split_repository_uri,
)

__all__ = [
    "IGNORE_ANNOTATION",
    "GitHubRepository",
    "Hook",
    "InvalidRepositoryURIError",
    "explode_openshift_webhook_url",
    "fix_openshift_hook_url",
    "hook_key",
    "is_openshift_hook",
    "parse_github_repository",
    "split_repository_uri",
]
