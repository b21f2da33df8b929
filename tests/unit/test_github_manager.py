"""Unit tests for the GitHub hooks manager."""

from __future__ import annotations

import asyncio
import json
import re
import typing as typ

import httpx
import pytest

from hooksync.github import GitHubAPIError, GitHubConfig, GitHubHooksClient, HooksManager
from hooksync.hooks import GitHubRepository, Hook

_BASE_URL = "https://api.example.test/"
_TARGET = (
    "https://master.example.test/oapi/v1/namespaces/ns/buildconfigs/bc"
    "/webhooks/s3cret/github"
)
_REPO_HOOKS = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<name>[^/]+)/hooks$")
_REPO_HOOK = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<name>[^/]+)/hooks/(?P<id>\d+)$")
_REPO = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<name>[^/]+)$")
_ORG_REPOS = re.compile(r"^/orgs/(?P<org>[^/]+)/repos$")


class _FakeGitHub:
    """In-memory GitHub serving the hooks and repositories endpoints."""

    def __init__(self) -> None:
        self.hooks: dict[str, list[dict[str, typ.Any]]] = {}
        self.failing: set[str] = set()
        self.requests: list[tuple[str, str]] = []
        self._next_id = 1

    def add_repository(self, slug: str, *urls: str) -> None:
        self.hooks[slug] = []
        for url in urls:
            self.add_hook(slug, url)

    def add_hook(self, slug: str, url: str) -> int:
        hook_id = self._next_id
        self._next_id += 1
        config = {"url": url} if url else {}
        self.hooks[slug].append({"id": hook_id, "name": "web", "config": config})
        return hook_id

    def urls(self, slug: str) -> list[str]:
        return [hook["config"].get("url", "") for hook in self.hooks[slug]]

    def __call__(self, request: httpx.Request) -> httpx.Response:  # noqa: PLR0911
        path = request.url.path
        self.requests.append((request.method, path))
        if match := _ORG_REPOS.match(path):
            org = match["org"]
            repositories = [
                {"name": slug.split("/")[1], "owner": {"login": slug.split("/")[0]}}
                for slug in self.hooks
                if slug.split("/")[0] == org
            ]
            return httpx.Response(200, json=repositories)
        if match := _REPO_HOOK.match(path):
            slug = f"{match['owner']}/{match['name']}"
            hook_id = int(match["id"])
            self.hooks[slug] = [h for h in self.hooks[slug] if h["id"] != hook_id]
            return httpx.Response(204)
        if match := _REPO_HOOKS.match(path):
            slug = f"{match['owner']}/{match['name']}"
            if slug in self.failing or slug not in self.hooks:
                return httpx.Response(500, json={"message": "boom"})
            if request.method == "POST":
                body = json.loads(request.content.decode("utf-8"))
                hook_id = self.add_hook(slug, body["config"]["url"])
                return httpx.Response(201, json={"id": hook_id, "config": body["config"]})
            return httpx.Response(200, json=self.hooks[slug])
        if match := _REPO.match(path):
            slug = f"{match['owner']}/{match['name']}"
            if slug not in self.hooks:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(
                200, json={"name": match["name"], "owner": {"login": match["owner"]}}
            )
        return httpx.Response(404)

    def mutations(self) -> list[tuple[str, str]]:
        return [(method, path) for method, path in self.requests if method != "GET"]


def _make_manager(
    github: _FakeGitHub, *, max_concurrency: int = 5
) -> tuple[HooksManager, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(github))
    client = GitHubHooksClient(
        GitHubConfig(token="test-token", base_url=_BASE_URL), http_client=http_client
    )
    return HooksManager(client, max_concurrency=max_concurrency), http_client


def _hook(slug: str = "octo/reef", *, enabled: bool = True) -> Hook:
    owner, name = slug.split("/")
    return Hook(enabled=enabled, target_url=_TARGET, repository=GitHubRepository(owner, name))


@pytest.mark.asyncio
async def test_register_hook_creates_missing_hook() -> None:
    """Registering a hook absent from GitHub creates it."""
    github = _FakeGitHub()
    github.add_repository("octo/reef", "https://ci.example.test/hook")
    manager, http_client = _make_manager(github)
    try:
        created = await manager.register_hook(_hook())
    finally:
        await http_client.aclose()

    assert created is True
    assert github.urls("octo/reef") == ["https://ci.example.test/hook", _TARGET]


@pytest.mark.asyncio
async def test_register_hook_is_idempotent() -> None:
    """Registering an existing hook issues no create call."""
    github = _FakeGitHub()
    github.add_repository("octo/reef", _TARGET)
    manager, http_client = _make_manager(github)
    try:
        first = await manager.register_hook(_hook())
        second = await manager.register_hook(_hook())
    finally:
        await http_client.aclose()

    assert (first, second) == (False, False)
    assert github.mutations() == []
    assert github.urls("octo/reef") == [_TARGET]


@pytest.mark.asyncio
async def test_delete_hook_removes_every_matching_hook() -> None:
    """Deleting removes all hooks delivering to the target URL and nothing else."""
    github = _FakeGitHub()
    github.add_repository("octo/reef", _TARGET, "https://other.test/hook", _TARGET)
    manager, http_client = _make_manager(github)
    try:
        deleted = await manager.delete_hook(_hook(enabled=False))
    finally:
        await http_client.aclose()

    assert deleted is True
    assert github.urls("octo/reef") == ["https://other.test/hook"]
    assert [method for method, _ in github.mutations()] == ["DELETE", "DELETE"]


@pytest.mark.asyncio
async def test_delete_hook_without_match_is_a_no_op() -> None:
    """Deleting an absent hook reports False and issues no delete call."""
    github = _FakeGitHub()
    github.add_repository("octo/reef", "https://other.test/hook")
    manager, http_client = _make_manager(github)
    try:
        deleted = await manager.delete_hook(_hook(enabled=False))
    finally:
        await http_client.aclose()

    assert deleted is False
    assert github.mutations() == []


@pytest.mark.asyncio
async def test_register_hook_propagates_listing_failure() -> None:
    """A failed hook listing fails the registration."""
    github = _FakeGitHub()
    github.add_repository("octo/reef")
    github.failing.add("octo/reef")
    manager, http_client = _make_manager(github)
    try:
        with pytest.raises(GitHubAPIError):
            await manager.register_hook(_hook())
    finally:
        await http_client.aclose()

    assert github.mutations() == []


@pytest.mark.asyncio
async def test_list_hooks_for_organization_skips_failing_repositories() -> None:
    """Repositories whose listing fails are skipped; empty URLs are ignored."""
    github = _FakeGitHub()
    github.add_repository("octo/reef", _TARGET, "")
    github.add_repository("octo/kelp", "https://other.test/hook")
    github.add_repository("octo/wreck", _TARGET)
    github.add_repository("other/reef", _TARGET)
    github.failing.add("octo/wreck")
    manager, http_client = _make_manager(github, max_concurrency=2)
    try:
        hooks = await manager.list_hooks_for_organization("octo")
    finally:
        await http_client.aclose()

    assert sorted((str(hook.repository), hook.target_url) for hook in hooks) == [
        ("octo/kelp", "https://other.test/hook"),
        ("octo/reef", _TARGET),
    ]
    assert all(hook.enabled for hook in hooks)


@pytest.mark.asyncio
async def test_list_hooks_for_repository_requires_existing_repository() -> None:
    """Listing a missing repository fails instead of returning nothing."""
    github = _FakeGitHub()
    manager, http_client = _make_manager(github)
    try:
        with pytest.raises(GitHubAPIError) as excinfo:
            await manager.list_hooks_for_repository(GitHubRepository("octo", "gone"))
    finally:
        await http_client.aclose()

    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_list_hooks_for_repositories_respects_concurrency_limit() -> None:
    """No more listings run at once than the configured concurrency."""
    active = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return httpx.Response(200, json=[{"id": 1, "config": {"url": _TARGET}}])

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = GitHubHooksClient(
        GitHubConfig(token="test-token", base_url=_BASE_URL), http_client=http_client
    )
    manager = HooksManager(client, max_concurrency=3)
    repositories = [GitHubRepository("octo", f"repo-{index}") for index in range(10)]
    try:
        hooks = await manager.list_hooks_for_repositories(repositories)
    finally:
        await http_client.aclose()

    assert len(hooks) == 10
    assert peak <= 3, f"expected at most 3 concurrent listings, saw {peak}"
