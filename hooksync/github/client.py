"""GitHub REST client for repository hooks.

The client is a thin, non-retrying layer over the REST v3 API: listings are
paginated in pages of 100 following the ``Link: rel="next"`` header, and any
transport error or non-2xx response is surfaced to the caller.
"""

from __future__ import annotations

import dataclasses
import os
import urllib.parse

import httpx
import msgspec

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import HookRequest, RemoteHook, RemoteRepository

DEFAULT_BASE_URL = "https://api.github.com/"

_PER_PAGE = 100
_HTTP_ERROR_STATUS_THRESHOLD = 400


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Configuration for the GitHub REST API client."""

    token: str
    base_url: str = DEFAULT_BASE_URL
    verify_tls: bool = True
    timeout_s: float = 30.0
    user_agent: str = "hooksync/0.1"

    @classmethod
    def from_env(cls) -> GitHubConfig:
        """Build configuration using the ``GITHUB_ACCESS_TOKEN`` env var."""
        token = os.environ.get("GITHUB_ACCESS_TOKEN", "").strip()
        if not token:
            raise GitHubConfigError.missing_token()
        return cls(token=token)


def _normalise_base_url(base_url: str) -> str:
    """Ensure the API root ends with a slash so relative paths join under it."""
    return base_url if base_url.endswith("/") else f"{base_url}/"


def _next_page(response: httpx.Response) -> int:
    """Return the next page number from the ``Link`` header, or 0 when done."""
    link = response.links.get("next")
    if not link:
        return 0
    query = urllib.parse.parse_qs(urllib.parse.urlsplit(link.get("url", "")).query)
    pages = query.get("page")
    if not pages:
        return 0
    try:
        return int(pages[0])
    except ValueError:
        return 0


def _quote(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")


class GitHubHooksClient:
    """Minimal GitHub REST client covering hooks and organisation repositories."""

    def __init__(
        self,
        config: GitHubConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._base_url = _normalise_base_url(config.base_url)
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": config.user_agent,
            "Accept": "application/vnd.github+json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            verify=config.verify_tls,
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def get_repository(self, owner: str, name: str) -> RemoteRepository:
        """Fetch a single repository, failing if it does not exist."""
        path = f"repos/{_quote(owner)}/{_quote(name)}"
        response = await self._request("GET", path)
        return self._decode(response, RemoteRepository, what=path)

    async def list_hooks(self, owner: str, name: str) -> list[RemoteHook]:
        """Return every hook configured on a repository."""
        path = f"repos/{_quote(owner)}/{_quote(name)}/hooks"
        return await self._paginate(path, list[RemoteHook])

    async def list_organization_repositories(
        self, organization: str
    ) -> list[RemoteRepository]:
        """Return every repository (of any type) in an organisation."""
        path = f"orgs/{_quote(organization)}/repos"
        return await self._paginate(
            path, list[RemoteRepository], params={"type": "all"}
        )

    async def create_hook(
        self, owner: str, name: str, request: HookRequest
    ) -> RemoteHook:
        """Create a hook on a repository and return GitHub's representation."""
        path = f"repos/{_quote(owner)}/{_quote(name)}/hooks"
        response = await self._request(
            "POST", path, content=msgspec.json.encode(request)
        )
        return self._decode(response, RemoteHook, what=path)

    async def delete_hook(self, owner: str, name: str, hook_id: int) -> None:
        """Delete a hook by its numeric GitHub identifier."""
        path = f"repos/{_quote(owner)}/{_quote(name)}/hooks/{hook_id}"
        await self._request("DELETE", path)

    async def _paginate[T](
        self,
        path: str,
        item_type: type[list[T]],
        *,
        params: dict[str, str] | None = None,
    ) -> list[T]:
        """Collect every page of a listing; any failing page aborts the listing."""
        items: list[T] = []
        page = 1
        while True:
            page_params = {
                **(params or {}),
                "per_page": str(_PER_PAGE),
                "page": str(page),
            }
            response = await self._request("GET", path, params=page_params)
            items.extend(self._decode(response, item_type, what=path))
            page = _next_page(response)
            if page == 0:
                return items

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        url = urllib.parse.urljoin(self._base_url, path)
        headers = dict(self._headers)
        if content is not None:
            headers["Content-Type"] = "application/json"
        response = await self._client.request(
            method, url, params=params, content=content, headers=headers
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code, method, url)
        return response

    @staticmethod
    def _decode[T](response: httpx.Response, item_type: type[T], *, what: str) -> T:
        try:
            return msgspec.json.decode(response.content, type=item_type)
        except msgspec.DecodeError as exc:
            raise GitHubResponseShapeError.invalid(what, exc) from exc


__all__ = [
    "DEFAULT_BASE_URL",
    "GitHubConfig",
    "GitHubHooksClient",
]