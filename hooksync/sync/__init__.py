"""The ``sync`` daemon and its GitHub hook handler."""

from __future__ import annotations

from .handler import DEFAULT_CACHE_TTL, GitHubHookSync, SyncHandlerConfig, key_for_hook
from .service import install_signal_handlers, run_sync

__all__ = [
    "DEFAULT_CACHE_TTL",
    "GitHubHookSync",
    "SyncHandlerConfig",
    "install_signal_handlers",
    "key_for_hook",
    "run_sync",
]
