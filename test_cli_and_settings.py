from __future__ import annotations

from entry.cli import CLIAdapter
from shared.settings import Settings


def test_cli_commands_and_chat_input():
    cli = CLIAdapter(session_id="abc")

    assert cli.parse_command("/tools userCenter") == "tools"
    assert cli.command_argument("/tools userCenter") == "userCenter"
    assert cli.parse_command("/REFRESH") == "refresh"
    assert cli.parse_command("exit") == "quit"
    assert cli.parse_command("/q") == "quit"
    assert cli.parse_command("/unknown") is None
    assert cli.parse_command("查询订单") is None

    request = cli.read_input("  我的订单  ")
    assert request.message == "我的订单"
    assert request.session_id == "abc"


def test_cli_card_references():
    text = "以下是您查询的订单信息：\n\n@cards[id-1,order]\n\n该订单的物流信息：\n\n@cards[id-2,logistics]"
    assert CLIAdapter.card_references(text) == [("id-1", "order"), ("id-2", "logistics")]


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("NACOS_SERVER_ADDR", "nacos.internal:8848")
    monkeypatch.setenv("MCP_CLIENT_DOMAINS", "userCenter, tradeCenter ,")
    monkeypatch.setenv("MCP_CLIENT_REFRESH_INTERVAL_MS", "500")
    monkeypatch.setenv("MCP_CLIENT_POLLER_ENABLED", "off")
    monkeypatch.setenv("CONVERSATION_MAX_HISTORY", "4")

    settings = Settings.from_env()

    assert settings.nacos_server_addr == "http://nacos.internal:8848"
    assert settings.target_domains == ["userCenter", "tradeCenter"]
    assert settings.refresh_interval_seconds == 1.0
    assert settings.poller_enabled is False
    assert settings.conversation_max_history == 4
