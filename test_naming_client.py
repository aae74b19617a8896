from __future__ import annotations

import httpx
import pytest

from registry.naming_client import NacosNamingClient, RegistryUnavailableError


def _client(handler) -> NacosNamingClient:
    return NacosNamingClient(
        "http://nacos.local:8848",
        namespace="dev",
        transport=httpx.MockTransport(handler),
    )


def test_list_services_follows_pages():
    seen: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/nacos/v1/ns/service/list"
        params = dict(request.url.params)
        seen.append(params)
        if params["pageNo"] == "1":
            return httpx.Response(200, json={"count": 3, "doms": ["a-mcp", "b-mcp"]})
        return httpx.Response(200, json={"count": 3, "doms": ["c-mcp"]})

    client = _client(handler)
    try:
        assert client.list_services("mcp-server") == ["a-mcp", "b-mcp", "c-mcp"]
    finally:
        client.close()

    assert [params["pageNo"] for params in seen] == ["1", "2"]
    assert all(params["groupName"] == "mcp-server" for params in seen)
    assert all(params["namespaceId"] == "dev" for params in seen)


def test_list_instances_normalizes_hosts():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["serviceName"] == "userCenter-mcp"
        return httpx.Response(
            200,
            json={
                "hosts": [
                    {
                        "ip": "10.0.0.1",
                        "port": 8081,
                        "healthy": True,
                        "weight": 1.0,
                        "metadata": {"mcp-tools-count": 1, "tool-0-name": "getUserById"},
                    },
                    {"ip": "10.0.0.2", "port": "not-a-port"},
                    "garbage",
                ]
            },
        )

    client = _client(handler)
    try:
        instances = client.list_instances("userCenter-mcp", "mcp-server")
    finally:
        client.close()

    assert len(instances) == 1
    assert instances[0].address == "10.0.0.1:8081"
    assert instances[0].metadata == {"mcp-tools-count": "1", "tool-0-name": "getUserById"}


def test_http_errors_raise_registry_unavailable():
    client = _client(lambda request: httpx.Response(503, text="unavailable"))
    try:
        with pytest.raises(RegistryUnavailableError):
            client.list_services("mcp-server")
    finally:
        client.close()


def test_non_json_payload_raises_registry_unavailable():
    client = _client(lambda request: httpx.Response(200, text="<html>"))
    try:
        with pytest.raises(RegistryUnavailableError):
            client.list_instances("userCenter-mcp", "mcp-server")
    finally:
        client.close()
