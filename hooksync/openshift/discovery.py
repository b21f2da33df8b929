"""Discovery of the OpenShift master's public URL."""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from hooksync.logging import get_logger, log_v, log_warning

from .errors import OpenShiftConfigError
from .models import SwaggerApiDeclaration

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import OpenShiftConfig

logger = get_logger(__name__)

_SWAGGER_PATH = "/swaggerapi/api/v1"
_HTTP_ERROR_STATUS_THRESHOLD = 400


async def discover_public_url(
    config_loader: cabc.Callable[[], OpenShiftConfig],
    *,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """Return the master's public URL as advertised by its swagger API.

    The declaration's ``basePath`` is the public URL configured on the
    master. Certificate checks are skipped for this single request. When
    no client configuration is available an empty string is returned; when
    the declaration cannot be fetched or decoded the configured server URL
    is returned instead.
    """
    try:
        config = config_loader()
    except OpenShiftConfigError as exc:
        log_warning(logger, "Failed to get OpenShift config: %s", exc)
        return ""

    url = f"{config.base_url}{_SWAGGER_PATH}"
    client = http_client or httpx.AsyncClient(
        verify=False,  # noqa: S501 - masters commonly serve self-signed certificates
        timeout=config.timeout_s,
    )
    try:
        declaration = await _fetch_declaration(client, url)
    finally:
        if http_client is None:
            await client.aclose()

    if declaration is None:
        return config.base_url
    log_v(logger, 2, "Discovered OpenShift public URL %s", declaration.base_path)
    return declaration.base_path


async def _fetch_declaration(
    client: httpx.AsyncClient, url: str
) -> SwaggerApiDeclaration | None:
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        log_warning(logger, "Failed to request the swagger API: %s", exc)
        return None
    if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
        log_warning(
            logger, "Failed to request the swagger API: HTTP %d", response.status_code
        )
        return None
    try:
        return msgspec.json.decode(response.content, type=SwaggerApiDeclaration)
    except msgspec.DecodeError as exc:
        log_warning(logger, "Failed to decode the swagger API response: %s", exc)
        return None
