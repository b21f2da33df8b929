"""Unit tests for the GitHub REST hooks client."""

from __future__ import annotations

import json
import secrets
import typing as typ

import httpx
import pytest

from hooksync.github import (
    GitHubAPIError,
    GitHubConfig,
    GitHubConfigError,
    GitHubHooksClient,
    GitHubResponseShapeError,
    HookRequest,
    RemoteHook,
)
from hooksync.hooks import GitHubRepository, Hook

_TOKEN = secrets.token_hex(8)
_BASE_URL = "https://api.example.test/"
_HOOK_URL = (
    "https://master.example.test/oapi/v1/namespaces/ns/buildconfigs/bc"
    "/webhooks/s3cret/github"
)

type _Route = typ.Callable[[httpx.Request], httpx.Response]


def _make_client(
    route: _Route, *, base_url: str = _BASE_URL
) -> tuple[GitHubHooksClient, httpx.AsyncClient, list[httpx.Request]]:
    calls: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return route(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = GitHubHooksClient(
        GitHubConfig(token=_TOKEN, base_url=base_url), http_client=http_client
    )
    return client, http_client, calls


def _hook_payload(hook_id: int, url: str) -> dict[str, typ.Any]:
    return {
        "id": hook_id,
        "name": "web",
        "active": True,
        "events": ["push"],
        "config": {"url": url, "content_type": "json"},
    }


def _next_link(path: str, page: int) -> dict[str, str]:
    return {"Link": f'<{_BASE_URL}{path}?per_page=100&page={page}>; rel="next"'}


@pytest.mark.asyncio
async def test_list_hooks_follows_next_links_across_pages() -> None:
    """list_hooks requests pages of 100 until no next link is returned."""

    def route(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        if page == 1:
            return httpx.Response(
                200,
                json=[_hook_payload(1, "https://a.test/1")],
                headers=_next_link("repos/octo/reef/hooks", 2),
            )
        return httpx.Response(200, json=[_hook_payload(2, "https://a.test/2")])

    client, http_client, calls = _make_client(route)
    try:
        hooks = await client.list_hooks("octo", "reef")
    finally:
        await http_client.aclose()

    assert [hook.id for hook in hooks] == [1, 2]
    assert [hook.url for hook in hooks] == ["https://a.test/1", "https://a.test/2"]
    assert [request.url.params["page"] for request in calls] == ["1", "2"]
    assert all(request.url.params["per_page"] == "100" for request in calls)
    assert calls[0].url.path == "/repos/octo/reef/hooks"


@pytest.mark.asyncio
async def test_list_hooks_fails_when_any_page_fails() -> None:
    """A failing page aborts the listing with the HTTP status attached."""

    def route(request: httpx.Request) -> httpx.Response:
        if request.url.params["page"] == "1":
            return httpx.Response(
                200,
                json=[_hook_payload(1, "https://a.test/1")],
                headers=_next_link("repos/octo/reef/hooks", 2),
            )
        return httpx.Response(502, json={"message": "bad gateway"})

    client, http_client, _ = _make_client(route)
    try:
        with pytest.raises(GitHubAPIError) as excinfo:
            await client.list_hooks("octo", "reef")
    finally:
        await http_client.aclose()

    assert excinfo.value.status_code == 502
    assert excinfo.value.method == "GET"


@pytest.mark.asyncio
async def test_list_organization_repositories_requests_all_types() -> None:
    """Organisation listings ask for repositories of every type."""

    def route(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"name": "reef", "owner": {"login": "octo"}, "full_name": "octo/reef"},
                {"name": "kelp", "owner": {"login": "octo"}},
            ],
        )

    client, http_client, calls = _make_client(route)
    try:
        repositories = await client.list_organization_repositories("octo")
    finally:
        await http_client.aclose()

    assert [(repo.owner.login, repo.name) for repo in repositories] == [
        ("octo", "reef"),
        ("octo", "kelp"),
    ]
    assert calls[0].url.path == "/orgs/octo/repos"
    assert calls[0].url.params["type"] == "all"


@pytest.mark.asyncio
async def test_create_hook_posts_web_hook_payload() -> None:
    """create_hook sends the web hook payload GitHub expects."""
    bodies: list[dict[str, typ.Any]] = []

    def route(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content.decode("utf-8")))
        return httpx.Response(201, json=_hook_payload(7, _HOOK_URL))

    client, http_client, calls = _make_client(route)
    hook = Hook(
        enabled=True, target_url=_HOOK_URL, repository=GitHubRepository("octo", "reef")
    )
    try:
        created = await client.create_hook("octo", "reef", HookRequest.for_hook(hook))
    finally:
        await http_client.aclose()

    assert created.id == 7
    assert calls[0].method == "POST"
    assert calls[0].url.path == "/repos/octo/reef/hooks"
    assert calls[0].headers["Authorization"] == f"Bearer {_TOKEN}"
    assert bodies == [
        {
            "config": {
                "url": _HOOK_URL,
                "content_type": "json",
                "insecure_ssl": "true",
            },
            "name": "web",
            "active": True,
            "events": ["*"],
        }
    ]


@pytest.mark.asyncio
async def test_delete_hook_targets_hook_id() -> None:
    """delete_hook issues a DELETE for the numeric hook id."""

    def route(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    client, http_client, calls = _make_client(route)
    try:
        await client.delete_hook("octo", "reef", 42)
    finally:
        await http_client.aclose()

    assert [(request.method, request.url.path) for request in calls] == [
        ("DELETE", "/repos/octo/reef/hooks/42")
    ]


@pytest.mark.asyncio
async def test_get_repository_raises_for_missing_repository() -> None:
    """A 404 from GitHub surfaces as GitHubAPIError."""

    def route(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    client, http_client, _ = _make_client(route)
    try:
        with pytest.raises(GitHubAPIError, match="HTTP 404"):
            await client.get_repository("octo", "missing")
    finally:
        await http_client.aclose()


@pytest.mark.asyncio
async def test_unexpected_body_raises_shape_error() -> None:
    """Bodies that do not decode raise GitHubResponseShapeError."""

    def route(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"not": "a list"})

    client, http_client, _ = _make_client(route)
    try:
        with pytest.raises(GitHubResponseShapeError):
            await client.list_hooks("octo", "reef")
    finally:
        await http_client.aclose()


@pytest.mark.asyncio
async def test_enterprise_base_url_without_trailing_slash() -> None:
    """Paths are joined under an API root given without a trailing slash."""

    def route(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"name": "reef", "owner": {"login": "octo"}})

    client, http_client, calls = _make_client(
        route, base_url="https://ghe.example.test/api/v3"
    )
    try:
        await client.get_repository("octo", "reef")
    finally:
        await http_client.aclose()

    assert str(calls[0].url) == "https://ghe.example.test/api/v3/repos/octo/reef"


def test_hook_request_carries_target_url() -> None:
    """The request body delivers to the hook's target URL."""
    request = HookRequest.for_hook(
        Hook(True, _HOOK_URL, GitHubRepository("octo", "reef"))
    )
    assert request.config.url == _HOOK_URL


def test_remote_hook_without_url_reports_empty_url() -> None:
    """Hooks whose config has no URL expose an empty url."""
    assert RemoteHook(id=1, config={"content_type": "json"}).url == ""
    assert RemoteHook(id=2, config={"url": 3}).url == ""


def test_client_rejects_blank_token() -> None:
    """Blank tokens are rejected at construction time."""
    with pytest.raises(GitHubConfigError):
        GitHubHooksClient(GitHubConfig(token="  "))


def test_config_from_env_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """from_env raises when GITHUB_ACCESS_TOKEN is missing."""
    monkeypatch.delenv("GITHUB_ACCESS_TOKEN", raising=False)
    with pytest.raises(GitHubConfigError, match="GITHUB_ACCESS_TOKEN"):
        GitHubConfig.from_env()


def test_config_from_env_reads_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """from_env strips and uses GITHUB_ACCESS_TOKEN."""
    monkeypatch.setenv("GITHUB_ACCESS_TOKEN", f" {_TOKEN} ")
    assert GitHubConfig.from_env().token == _TOKEN
