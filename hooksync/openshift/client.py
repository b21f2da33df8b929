"""OpenShift ``oapi/v1`` client for BuildConfigs.

Lists are plain JSON documents. Watches are long-lived chunked responses
carrying one JSON event per line; they end when the server closes the
stream, and an ``ERROR`` event with code 410 means the requested resource
version is too old and a relist is required.
"""

from __future__ import annotations

import typing as typ
import urllib.parse
from http import HTTPStatus

import httpx
import msgspec

from hooksync.cache.errors import WatchExpiredError
from hooksync.cache.reflector import EventType, WatchEvent
from hooksync.logging import get_logger, log_v

from .errors import OpenShiftAPIError, WebhookURLError
from .models import BuildConfig, BuildConfigList, RawWatchEvent, Status

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import OpenShiftConfig
    from .models import BuildTriggerPolicy

logger = get_logger(__name__)

_HTTP_ERROR_STATUS_THRESHOLD = 400
_WATCH_ERROR_TYPE = "ERROR"
_WATCH_EVENT_TYPES = frozenset(member.value for member in EventType)


def _quote(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")


class OpenShiftClient:
    """Minimal client for listing, watching and addressing BuildConfigs."""

    def __init__(
        self,
        config: OpenShiftConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client for one OpenShift master."""
        self._config = config
        self._base_url = config.base_url
        self._headers = {"Accept": "application/json"}
        if config.token:
            self._headers["Authorization"] = f"Bearer {config.token}"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            verify=config.ssl_verify(),
        )

    @property
    def server(self) -> str:
        """Return the master URL the client talks to."""
        return self._base_url

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def list_build_configs(self) -> BuildConfigList:
        """List the BuildConfigs of every namespace."""
        url = f"{self._base_url}/oapi/v1/buildconfigs"
        log_v(logger, 3, "Listing BuildConfigs from %s", url)
        response = await self._client.get(url, headers=self._headers)
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise OpenShiftAPIError.http_error(response.status_code, "GET", url)
        try:
            return msgspec.json.decode(response.content, type=BuildConfigList)
        except msgspec.DecodeError as exc:
            raise OpenShiftAPIError.invalid_payload("buildconfigs", exc) from exc

    async def watch_build_configs(
        self,
        resource_version: str,
        *,
        timeout_seconds: int | None = None,
    ) -> cabc.AsyncGenerator[WatchEvent, None]:
        """Stream BuildConfig changes made after ``resource_version``.

        Raises
        ------
        WatchExpiredError
            If the server no longer holds history back to ``resource_version``.
        OpenShiftAPIError
            For any other error response or undecodable event.

        """
        url = f"{self._base_url}/oapi/v1/buildconfigs"
        params = {"watch": "true", "resourceVersion": resource_version}
        if timeout_seconds is not None:
            params["timeoutSeconds"] = str(timeout_seconds)
        log_v(logger, 3, "Watching BuildConfigs from resource version %s", resource_version)

        timeout = httpx.Timeout(self._config.timeout_s, read=None)
        async with self._client.stream(
            "GET", url, params=params, headers=self._headers, timeout=timeout
        ) as response:
            if response.status_code == HTTPStatus.GONE:
                raise WatchExpiredError.gone(resource_version)
            if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
                raise OpenShiftAPIError.http_error(response.status_code, "GET", url)
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                event = self._decode_event(line, resource_version)
                if event is not None:
                    yield event

    def webhook_url(self, build_config: BuildConfig, trigger: BuildTriggerPolicy) -> str:
        """Return the URL OpenShift serves for a BuildConfig's GitHub trigger.

        Raises
        ------
        WebhookURLError
            If the trigger carries no secret.

        """
        secret = trigger.github.secret if trigger.github is not None else ""
        if not secret:
            raise WebhookURLError.missing_secret(build_config.key)
        return (
            f"{self._base_url}/oapi/v1/namespaces/{_quote(build_config.namespace)}"
            f"/buildconfigs/{_quote(build_config.name)}"
            f"/webhooks/{_quote(secret)}/github"
        )

    @staticmethod
    def _decode_event(line: str, resource_version: str) -> WatchEvent | None:
        try:
            raw = msgspec.json.decode(line, type=RawWatchEvent)
            if raw.type == _WATCH_ERROR_TYPE:
                status = msgspec.json.decode(raw.object, type=Status)
                if status.code == HTTPStatus.GONE:
                    raise WatchExpiredError.gone(resource_version)
                raise OpenShiftAPIError.watch_error(status.code, status.message)
            if raw.type not in _WATCH_EVENT_TYPES:
                log_v(logger, 5, "Ignoring watch event of type %s", raw.type)
                return None
            build_config = msgspec.json.decode(raw.object, type=BuildConfig)
        except msgspec.DecodeError as exc:
            raise OpenShiftAPIError.invalid_payload("buildconfig watch event", exc) from exc
        return WatchEvent(
            type=EventType(raw.type),
            object=build_config,
            resource_version=build_config.metadata.resource_version,
        )
