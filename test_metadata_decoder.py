from __future__ import annotations

import pytest

from registry.metadata_decoder import build_service, decode_tools, derive_domain, read_tools_count
from shared.models import RegistryInstance


def _instance(metadata: dict[str, str]) -> RegistryInstance:
    return RegistryInstance(ip="10.0.0.5", port=8081, metadata=metadata)


def test_derive_domain_strips_suffix():
    assert derive_domain("userCenter-mcp") == "userCenter"
    assert derive_domain("tradeCenter") == "tradeCenter"
    assert derive_domain("orders-svc", suffix="-svc") == "orders"


@pytest.mark.parametrize("raw", [None, "", "abc", "3.5", "-2"])
def test_missing_or_malformed_count_yields_zero_tools(raw):
    metadata = {"tool-0-name": "getUserById"}
    if raw is not None:
        metadata["mcp-tools-count"] = raw
    instance = _instance(metadata)

    assert read_tools_count(metadata) == 0
    assert decode_tools(metadata, instance, "userCenter-mcp", "userCenter") == []


def test_sparse_indices_only_yield_present_tools():
    metadata = {
        "mcp-tools-count": "3",
        "tool-0-name": "getUserById",
        "tool-0-description": "Get user by id",
        "tool-2-name": "getUserByUsername",
    }
    tools = decode_tools(metadata, _instance(metadata), "userCenter-mcp", "userCenter")

    assert [tool.name for tool in tools] == ["getUserById", "getUserByUsername"]
    assert tools[0].description == "Get user by id"
    assert tools[1].description == ""


def test_huge_advertised_count_only_visits_present_indices():
    metadata = {
        "mcp-tools-count": str(2**31),
        "tool-7-name": "getUserByUsername",
        "tool-0-name": "getUserById",
    }
    tools = decode_tools(metadata, _instance(metadata), "userCenter-mcp", "userCenter")

    assert [tool.name for tool in tools] == ["getUserById", "getUserByUsername"]


def test_indices_beyond_advertised_count_are_ignored():
    metadata = {"mcp-tools-count": "1", "tool-0-name": "getUserById", "tool-1-name": "extra"}
    tools = decode_tools(metadata, _instance(metadata), "userCenter-mcp", "userCenter")

    assert [tool.name for tool in tools] == ["getUserById"]


def test_connection_details_and_optional_schemas():
    metadata = {
        "protocol": "MCP",
        "mcp-version": "v1",
        "mcp-tools-count": "1",
        "tool-0-name": "getOrderWithLogisticsByOrderNo",
        "tool-0-input-schema": '{"type": "object"}',
        "tool-0-documentation": "  ",
    }
    tool = decode_tools(metadata, _instance(metadata), "tradeCenter-mcp", "tradeCenter")[0]

    assert tool.connection_details == {
        "protocol": "MCP",
        "version": "v1",
        "ip": "10.0.0.5",
        "port": "8081",
        "domain": "tradeCenter",
        "serviceName": "tradeCenter-mcp",
    }
    assert tool.input_schema == '{"type": "object"}'
    assert tool.output_schema is None
    assert tool.documentation is None


def test_build_service_reads_first_instance():
    first = _instance({"mcp-tools-count": "1", "tool-0-name": "getUserById", "mcp-version": "v2"})
    second = RegistryInstance(ip="10.0.0.6", port=8081, metadata={"mcp-tools-count": "0"})

    service = build_service("userCenter-mcp", [first, second])

    assert service.domain == "userCenter"
    assert service.mcp_version == "v2"
    assert service.protocol == "MCP"
    assert len(service.instances) == 2
    assert [tool.name for tool in service.tools] == ["getUserById"]


def test_build_service_without_instances_raises():
    with pytest.raises(ValueError):
        build_service("userCenter-mcp", [])
