"""OpenShift BuildConfig client, public URL discovery and hooks controller."""

from __future__ import annotations

from .client import OpenShiftClient
from .config import SERVICE_ACCOUNT_DIR, OpenShiftConfig
from .controller import (
    BuildConfigsController,
    ControllerConfig,
    HookHandler,
    parse_bool,
)
from .discovery import discover_public_url
from .errors import OpenShiftAPIError, OpenShiftConfigError, WebhookURLError
from .models import (
    GITHUB_TRIGGER_TYPE,
    BuildConfig,
    BuildConfigList,
    BuildConfigSpec,
    BuildSource,
    BuildTriggerPolicy,
    GitBuildSource,
    ObjectMeta,
    WebHookTrigger,
    build_config_key,
)

__all__ = [
    "GITHUB_TRIGGER_TYPE",
    "SERVICE_ACCOUNT_DIR",
    "BuildConfig",
    "BuildConfigList",
    "BuildConfigSpec",
    "BuildConfigsController",
    "BuildSource",
    "BuildTriggerPolicy",
    "ControllerConfig",
    "GitBuildSource",
    "HookHandler",
    "ObjectMeta",
    "OpenShiftAPIError",
    "OpenShiftClient",
    "OpenShiftConfig",
    "OpenShiftConfigError",
    "WebHookTrigger",
    "WebhookURLError",
    "build_config_key",
    "discover_public_url",
    "parse_bool",
]
