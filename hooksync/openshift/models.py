"""Wire models for the OpenShift ``oapi/v1`` BuildConfig API.

Field names follow the JSON of the API (camelCase) and are mapped onto
snake_case attributes; unknown fields are ignored.
"""

from __future__ import annotations

import msgspec

from hooksync.common.slug import repo_slug

GITHUB_TRIGGER_TYPE = "GitHub"


class ObjectMeta(msgspec.Struct, kw_only=True, rename="camel"):
    """Metadata common to every API object."""

    name: str = ""
    namespace: str = ""
    resource_version: str = ""
    annotations: dict[str, str] = msgspec.field(default_factory=dict)


class GitBuildSource(msgspec.Struct, kw_only=True, rename="camel"):
    """A git repository to build from."""

    uri: str = ""
    ref: str = ""


class BuildSource(msgspec.Struct, kw_only=True, rename="camel"):
    """Where a build takes its inputs from."""

    type: str = ""
    git: GitBuildSource | None = None


class WebHookTrigger(msgspec.Struct, kw_only=True, rename="camel"):
    """Secret-bearing configuration of a webhook trigger."""

    secret: str = ""


class BuildTriggerPolicy(msgspec.Struct, kw_only=True, rename="camel"):
    """One trigger declared on a BuildConfig."""

    type: str = ""
    github: WebHookTrigger | None = None
    generic: WebHookTrigger | None = None

    @property
    def is_github(self) -> bool:
        """Return True for GitHub webhook triggers."""
        return self.type == GITHUB_TRIGGER_TYPE


class BuildConfigSpec(msgspec.Struct, kw_only=True, rename="camel"):
    """Desired state of a BuildConfig."""

    source: BuildSource = msgspec.field(default_factory=BuildSource)
    triggers: list[BuildTriggerPolicy] = msgspec.field(default_factory=list)


class BuildConfig(msgspec.Struct, kw_only=True, rename="camel"):
    """An OpenShift BuildConfig, reduced to what hook syncing reads."""

    metadata: ObjectMeta = msgspec.field(default_factory=ObjectMeta)
    spec: BuildConfigSpec = msgspec.field(default_factory=BuildConfigSpec)

    @property
    def namespace(self) -> str:
        """Return the namespace."""
        return self.metadata.namespace

    @property
    def name(self) -> str:
        """Return the name."""
        return self.metadata.name

    @property
    def key(self) -> str:
        """Return the ``namespace/name`` key."""
        return repo_slug(self.metadata.namespace, self.metadata.name)

    def github_triggers(self) -> list[BuildTriggerPolicy]:
        """Return the GitHub webhook triggers in declaration order."""
        return [trigger for trigger in self.spec.triggers if trigger.is_github]


class ListMeta(msgspec.Struct, kw_only=True, rename="camel"):
    """Metadata of a list response."""

    resource_version: str = ""


class BuildConfigList(msgspec.Struct, kw_only=True, rename="camel"):
    """Response body of a BuildConfig list."""

    metadata: ListMeta = msgspec.field(default_factory=ListMeta)
    items: list[BuildConfig] = msgspec.field(default_factory=list)


class Status(msgspec.Struct, kw_only=True, rename="camel"):
    """API status object, carried by ``ERROR`` watch events."""

    status: str = ""
    message: str = ""
    reason: str = ""
    code: int = 0


class RawWatchEvent(msgspec.Struct, kw_only=True):
    """A watch stream line whose object is decoded once its type is known."""

    type: str
    object: msgspec.Raw


class SwaggerApiDeclaration(msgspec.Struct, kw_only=True, rename="camel"):
    """The part of the master's swagger declaration carrying its public URL."""

    base_path: str = ""


def build_config_key(obj: object) -> str:
    """Return the queue key of a BuildConfig.

    Raises
    ------
    TypeError
        If ``obj`` is not a BuildConfig.

    """
    if not isinstance(obj, BuildConfig):
        msg = f"expected a BuildConfig, got {type(obj).__name__}"
        raise TypeError(msg)
    return obj.key
