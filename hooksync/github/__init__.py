"""GitHub REST client and hooks manager."""

from __future__ import annotations

from .client import DEFAULT_BASE_URL, GitHubConfig, GitHubHooksClient
from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .manager import LIST_CONCURRENCY, SYNC_CONCURRENCY, HooksManager, hooks_match
from .models import HookConfig, HookRequest, RemoteHook, RemoteRepository

__all__ = [
    "DEFAULT_BASE_URL",
    "LIST_CONCURRENCY",
    "SYNC_CONCURRENCY",
    "GitHubAPIError",
    "GitHubConfig",
    "GitHubConfigError",
    "GitHubHooksClient",
    "GitHubResponseShapeError",
    "HookConfig",
    "HookRequest",
    "HooksManager",
    "RemoteHook",
    "RemoteRepository",
    "hooks_match",
]
