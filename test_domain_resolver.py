from __future__ import annotations

from intent.domain_resolver import DomainResolver, resolve_domain, score_domain
from registry.catalog import ToolCatalog
from shared.models import ServiceInfo, ToolInfo


def _tool(name: str, description: str, domain: str) -> ToolInfo:
    return ToolInfo(name=name, description=description, domain=domain, service_name=f"{domain}-mcp")


TOOLS = {
    "userCenter": [
        _tool("getUserById", "Get user profile by id", "userCenter"),
        _tool("getUserByUsername", "Lookup user profile by username", "userCenter"),
    ],
    "tradeCenter": [
        _tool("getOrderWithLogisticsByOrderNo", "Fetch order with logistics details", "tradeCenter"),
    ],
}


def test_direct_domain_mention_wins_over_scores():
    message = "tradecenter: please call getUserById getUserByUsername for profile"
    assert resolve_domain(message, TOOLS) == "tradeCenter"


def test_tool_name_and_description_scoring():
    assert score_domain("call getuserbyid now", TOOLS["userCenter"]) == 3
    assert score_domain("show the user profile", TOOLS["userCenter"]) == 2
    assert resolve_domain("show me the order logistics", TOOLS) == "tradeCenter"


def test_short_description_words_are_ignored():
    tools = {"misc": [_tool("noop", "get by id", "misc")]}
    assert resolve_domain("get it by id", tools) is None


def test_empty_catalog_returns_no_domain():
    assert resolve_domain("anything at all", {}) is None
    assert DomainResolver(ToolCatalog()).resolve("userCenter please") is None


def test_resolver_breaks_ties_by_domain_name():
    catalog = ToolCatalog()
    catalog.replace_all([
        ServiceInfo(service_name="zeta-mcp", domain="zeta", tools=[_tool("zt", "shared keyword", "zeta")]),
        ServiceInfo(service_name="alpha-mcp", domain="alpha", tools=[_tool("at", "shared keyword", "alpha")]),
    ])

    assert DomainResolver(catalog).resolve("a shared keyword question") == "alpha"
