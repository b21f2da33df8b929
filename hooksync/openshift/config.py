"""Configuration for the OpenShift API client."""

from __future__ import annotations

import dataclasses
import os
import pathlib
import ssl
import typing as typ

from .errors import OpenShiftConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

SERVICE_ACCOUNT_DIR = pathlib.Path("/var/run/secrets/kubernetes.io/serviceaccount")

_DEFAULT_TIMEOUT_S = 30.0
_TRUTHY = frozenset({"1", "t", "true", "y", "yes", "on"})


def _env_flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


@dataclasses.dataclass(frozen=True, slots=True)
class OpenShiftConfig:
    """Configuration for OpenShift API access.

    Attributes
    ----------
    server
        Master URL, for example ``https://master.example.com:8443``.
    token
        Bearer token; empty for unauthenticated access.
    verify_tls
        Whether the server certificate is checked.
    ca_file
        CA bundle used to check the server certificate, if not the system one.
    timeout_s
        Timeout for non-streaming requests, in seconds.

    """

    server: str
    token: str = ""
    verify_tls: bool = True
    ca_file: str | None = None
    timeout_s: float = _DEFAULT_TIMEOUT_S

    @property
    def base_url(self) -> str:
        """Return the server URL without a trailing slash."""
        return self.server.rstrip("/")

    def ssl_verify(self) -> ssl.SSLContext | bool:
        """Return the ``verify`` argument for :class:`httpx.AsyncClient`."""
        if not self.verify_tls:
            return False
        if self.ca_file:
            return ssl.create_default_context(cafile=self.ca_file)
        return True

    @classmethod
    def from_env(
        cls,
        *,
        server: str | None = None,
        token: str | None = None,
        insecure_skip_tls_verify: bool | None = None,
        environ: cabc.Mapping[str, str] | None = None,
        service_account_dir: pathlib.Path = SERVICE_ACCOUNT_DIR,
    ) -> OpenShiftConfig:
        """Build configuration from overrides, environment and service account.

        Explicit arguments win over ``OPENSHIFT_SERVER``, ``OPENSHIFT_TOKEN``
        and ``OPENSHIFT_INSECURE_SKIP_TLS_VERIFY``. When no server is given
        and the process runs in a pod (``KUBERNETES_SERVICE_HOST`` is set),
        the in-cluster service and service account credentials are used.

        Raises
        ------
        OpenShiftConfigError
            If no server can be determined, or the service account token
            exists but cannot be read.

        """
        env = os.environ if environ is None else environ
        resolved_server = (server or env.get("OPENSHIFT_SERVER", "")).strip()
        resolved_token = (token or env.get("OPENSHIFT_TOKEN", "")).strip()
        if insecure_skip_tls_verify is None:
            insecure_skip_tls_verify = _env_flag(
                env.get("OPENSHIFT_INSECURE_SKIP_TLS_VERIFY")
            )

        ca_file: str | None = None
        service_host = env.get("KUBERNETES_SERVICE_HOST", "").strip()
        if not resolved_server and service_host:
            port = env.get("KUBERNETES_SERVICE_PORT", "").strip() or "443"
            resolved_server = f"https://{service_host}:{port}"
            if not resolved_token:
                resolved_token = _read_service_account_token(service_account_dir)
            ca_path = service_account_dir / "ca.crt"
            if ca_path.is_file():
                ca_file = str(ca_path)

        if not resolved_server:
            raise OpenShiftConfigError.missing_server()

        return cls(
            server=resolved_server,
            token=resolved_token,
            verify_tls=not insecure_skip_tls_verify,
            ca_file=ca_file,
        )


def _read_service_account_token(service_account_dir: pathlib.Path) -> str:
    token_path = service_account_dir / "token"
    if not token_path.exists():
        return ""
    try:
        return token_path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise OpenShiftConfigError.unreadable_token(str(token_path), exc) from exc
