from __future__ import annotations

import json

import httpx
import pytest

from providers.data_providers import OrderDataProvider, UserDataProvider
from providers.tool_client import ToolCallError, ToolClient, tool_endpoint
from registry.catalog import ToolCatalog
from shared.models import ServiceInfo, ToolInfo


def _catalog() -> ToolCatalog:
    def tool(name: str, service: str, domain: str) -> ToolInfo:
        return ToolInfo(
            name=name,
            domain=domain,
            service_name=service,
            connection_details={"ip": "10.1.1.1", "port": "18080", "domain": domain, "serviceName": service},
        )

    catalog = ToolCatalog()
    catalog.replace_all([
        ServiceInfo(
            service_name="tradeCenter-mcp",
            domain="tradeCenter",
            tools=[tool("getOrderWithLogisticsByOrderNo", "tradeCenter-mcp", "tradeCenter")],
        ),
        ServiceInfo(
            service_name="userCenter-mcp",
            domain="userCenter",
            tools=[
                tool("getUserById", "userCenter-mcp", "userCenter"),
                tool("getUserByUsername", "userCenter-mcp", "userCenter"),
            ],
        ),
    ])
    return catalog


class RecordingHandler:
    def __init__(self, responses: dict[str, httpx.Response]):
        self.responses = responses
        self.requests: list[tuple[str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((str(request.url), json.loads(request.content or b"{}")))
        return self.responses.get(request.url.path, httpx.Response(404))


def test_tool_endpoint_from_connection_details():
    tool = _catalog().tool_by_name("getUserById")
    assert tool_endpoint(tool) == "http://10.1.1.1:18080/api/mcp/tools/getUserById"

    with pytest.raises(ToolCallError):
        tool_endpoint(ToolInfo(name="x", domain="d", service_name="s"))


def test_order_provider_unwraps_data_envelope():
    handler = RecordingHandler({
        "/api/mcp/tools/getOrderWithLogisticsByOrderNo": httpx.Response(
            200, json={"data": {"orderNo": "ORD1", "status": 2}}
        ),
    })
    client = ToolClient(transport=httpx.MockTransport(handler))
    provider = OrderDataProvider(_catalog(), client)

    try:
        assert provider.get_order_by_order_no("ORD1") == {"orderNo": "ORD1", "status": 2}
    finally:
        client.close()

    url, body = handler.requests[0]
    assert url == "http://10.1.1.1:18080/api/mcp/tools/getOrderWithLogisticsByOrderNo"
    assert body == {"orderNo": "ORD1"}


def test_null_data_means_not_found():
    handler = RecordingHandler({
        "/api/mcp/tools/getUserById": httpx.Response(200, json={"data": None}),
    })
    client = ToolClient(transport=httpx.MockTransport(handler))
    provider = UserDataProvider(_catalog(), client)

    try:
        assert provider.get_user_by_id(10001) is None
    finally:
        client.close()

    assert handler.requests[0][1] == {"id": 10001}


def test_transport_errors_return_none():
    handler = RecordingHandler({
        "/api/mcp/tools/getUserByUsername": httpx.Response(500, text="boom"),
    })
    client = ToolClient(transport=httpx.MockTransport(handler))
    provider = UserDataProvider(_catalog(), client)

    try:
        assert provider.get_user_by_username("张三") is None
    finally:
        client.close()


def test_missing_tool_returns_none_without_calling():
    handler = RecordingHandler({})
    client = ToolClient(transport=httpx.MockTransport(handler))
    provider = OrderDataProvider(ToolCatalog(), client)

    try:
        assert provider.get_order_by_order_no("ORD1") is None
    finally:
        client.close()

    assert handler.requests == []


def test_user_provider_by_username_unwraps_data_envelope():
    handler = RecordingHandler({
        "/api/mcp/tools/getUserByUsername": httpx.Response(
            200, json={"data": {"id": 10001, "username": "张三", "phone": "13512345678"}}
        ),
    })
    client = ToolClient(transport=httpx.MockTransport(handler))
    provider = UserDataProvider(_catalog(), client)

    try:
        user = provider.get_user_by_username("张三")
    finally:
        client.close()

    assert user == {"id": 10001, "username": "张三", "phone": "13512345678"}
    assert handler.requests == [
        ("http://10.1.1.1:18080/api/mcp/tools/getUserByUsername", {"username": "张三"})
    ]
