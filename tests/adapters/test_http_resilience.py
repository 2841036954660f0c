from __future__ import annotations

import asyncio
from pathlib import Path  # noqa: TC003

import httpx
import pytest

from kickoff.adapters.asana import is_template_payload
from kickoff.adapters.platform_http import default_client_factory
from kickoff.config.asana import default_asana_resilience
from kickoff.config.http_resilience import IDEMPOTENT_METHODS, CacheConfig, ResilienceConfig
from kickoff.config.storage import HTTP_CACHE_FILENAME

PAYLOADS: dict[str, object] = {
    "/api/1.0/project_templates/t1": {"data": {"gid": "t1", "requested_roles": []}},
    "/api/1.0/users/me": {"data": {"gid": "u1", "name": "Dana Reyes"}},
}


@pytest.fixture
def network_calls(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    calls: list[str] = []

    async def handle(
        _transport: httpx.AsyncHTTPTransport, request: httpx.Request
    ) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json=PAYLOADS[request.url.path], request=request)

    monkeypatch.setattr(httpx.AsyncHTTPTransport, "handle_async_request", handle)
    return calls


def _read_twice(config: ResilienceConfig, path: str) -> list[object]:
    async def scenario() -> list[object]:
        payloads: list[object] = []
        for _ in range(2):
            async with default_client_factory(config) as client:
                response = await client.request("GET", path)
                payloads.append(response.json())
        return payloads

    return asyncio.run(scenario())


def test_template_read_is_cached_across_clients(
    network_calls: list[str], tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("KICKOFF_DATA_DIR", str(tmp_path))

    payloads = _read_twice(default_asana_resilience(is_template_payload), "project_templates/t1")

    assert network_calls == ["/api/1.0/project_templates/t1"]
    assert payloads[0] == payloads[1]
    assert (tmp_path / HTTP_CACHE_FILENAME).exists()


def test_payloads_rejected_by_the_predicate_are_not_cached(
    network_calls: list[str], tmp_path: Path
) -> None:
    config = ResilienceConfig(
        name="asana-test",
        base_url="https://app.asana.com/api/1.0/",
        cache=CacheConfig(should_cache=is_template_payload, sqlite_path=tmp_path / "c.sqlite"),
    )

    _read_twice(config, "users/me")

    assert network_calls == ["/api/1.0/users/me", "/api/1.0/users/me"]


def test_client_without_cache_always_reaches_the_network(network_calls: list[str]) -> None:
    config = ResilienceConfig(name="plain", base_url="https://app.asana.com/api/1.0/")

    _read_twice(config, "project_templates/t1")

    assert len(network_calls) == 2


def test_creations_are_not_retried() -> None:
    assert "POST" not in IDEMPOTENT_METHODS
    assert "PATCH" not in IDEMPOTENT_METHODS
