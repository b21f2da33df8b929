"""Wire models for the GitHub REST hooks and repositories APIs.

See https://docs.github.com/en/rest/repos/webhooks for the payload shapes.
Only the fields hooksync reads are declared; unknown fields are ignored.
"""

from __future__ import annotations

import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from hooksync.hooks import Hook


class HookConfig(msgspec.Struct, kw_only=True):
    """Delivery configuration sent when creating a hook.

    ``insecure_ssl`` is the string ``"true"``: OpenShift masters commonly
    serve self-signed certificates.
    """

    url: str
    content_type: str = "json"
    insecure_ssl: str = "true"


class HookRequest(msgspec.Struct, kw_only=True):
    """Body of ``POST /repos/{owner}/{repo}/hooks``."""

    config: HookConfig
    name: str = "web"
    active: bool = True
    events: list[str] = msgspec.field(default_factory=lambda: ["*"])

    @classmethod
    def for_hook(cls, hook: Hook) -> HookRequest:
        """Build the GitHub representation of a hook."""
        return cls(config=HookConfig(url=hook.target_url))


class RemoteHook(msgspec.Struct, kw_only=True):
    """A hook as listed by GitHub."""

    id: int
    name: str = ""
    active: bool = True
    events: list[str] = msgspec.field(default_factory=list)
    config: dict[str, typ.Any] = msgspec.field(default_factory=dict)

    @property
    def url(self) -> str:
        """Return the delivery URL, or an empty string when unset."""
        value = self.config.get("url")
        return value if isinstance(value, str) else ""


class RepositoryOwner(msgspec.Struct, kw_only=True):
    """Owner block of a repository payload."""

    login: str


class RemoteRepository(msgspec.Struct, kw_only=True):
    """A repository as listed by GitHub."""

    name: str
    owner: RepositoryOwner
    full_name: str = ""
