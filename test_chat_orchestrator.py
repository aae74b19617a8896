from __future__ import annotations

import re

from cards.engine import CardSynthesisEngine
from cards.store import CardStore
from conversation.manager import ConversationManager
from intent.domain_resolver import DomainResolver
from models.completion_client import CompletionError
from orchestrator.chat_orchestrator import (
    NO_RESPONSE_MESSAGE,
    ORDER_NOT_FOUND_MESSAGE,
    ChatOrchestrator,
    build_system_prompt,
)
from registry.catalog import ToolCatalog
from shared.models import ModelPolicy, ServiceInfo, ToolInfo

CARD_REF = re.compile(r"@cards\[([^,\]]+),([a-z]+)\]")


class FakeCompletionClient:
    def __init__(self, reply: str | None = "好的", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[list[dict]] = []

    def complete(self, messages, policy, session_id=None):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


class EmptyOrderProvider:
    def get_order_by_order_no(self, order_no):
        return None


def _tool(name: str, description: str, domain: str) -> ToolInfo:
    return ToolInfo(name=name, description=description, domain=domain, service_name=f"{domain}-mcp")


def _orchestrator(completion: FakeCompletionClient | None = None):
    catalog = ToolCatalog()
    catalog.replace_all([
        ServiceInfo(service_name="userCenter-mcp", domain="userCenter",
                    tools=[_tool("getUserById", "Get user profile by id", "userCenter")]),
        ServiceInfo(service_name="tradeCenter-mcp", domain="tradeCenter",
                    tools=[_tool("listTrades", "List recent trades", "tradeCenter")]),
    ])
    store = CardStore()
    conversation = ConversationManager()
    completion = completion or FakeCompletionClient()
    orchestrator = ChatOrchestrator(
        catalog=catalog,
        resolver=DomainResolver(catalog),
        card_engine=CardSynthesisEngine(store, order_provider=EmptyOrderProvider()),
        conversation=conversation,
        completion_client=completion,
        policy=ModelPolicy(model_name="deepseek-chat"),
    )
    return orchestrator, store, conversation, completion


def test_placeholder_order_reply_with_accompanying_logistics():
    orchestrator, store, conversation, completion = _orchestrator()

    response = orchestrator.process_chat("我的订单已发货了吗", session_id="s1")

    assert response.success
    assert response.message.startswith("以下是您查询的订单信息：\n\n")
    refs = CARD_REF.findall(response.message)
    assert [card_type for _, card_type in refs] == ["order", "logistics"]
    assert all(store.get(card_id) is not None for card_id, _ in refs)
    assert completion.calls == []
    assert [turn.role for turn in conversation.get_history("s1")] == ["user", "assistant"]


def test_missing_order_returns_explicit_message():
    orchestrator, _, conversation, completion = _orchestrator()

    response = orchestrator.process_chat("查询订单号 ORD20230001", session_id="s1")

    assert response.success
    assert response.message == ORDER_NOT_FOUND_MESSAGE
    assert completion.calls == []
    assert conversation.get_history("s1")[-1].content == ORDER_NOT_FOUND_MESSAGE


def test_tracking_query_reply():
    orchestrator, _, _, _ = _orchestrator()

    response = orchestrator.process_chat("帮我看看快递的追踪详情")

    assert response.message.startswith("以下是您查询的物流追踪详情：\n\n")
    assert CARD_REF.findall(response.message)[0][1] == "tracking"


def test_logistics_query_reply():
    orchestrator, _, _, _ = _orchestrator()

    response = orchestrator.process_chat("我的包裹到哪了")

    assert response.message.startswith("以下是您查询的物流信息：\n\n")
    assert CARD_REF.findall(response.message)[0][1] == "logistics"


def test_general_chat_uses_completion_with_domain_focus():
    orchestrator, _, conversation, completion = _orchestrator(FakeCompletionClient("这是用户信息"))
    orchestrator.process_chat("hello", session_id="s1")

    response = orchestrator.process_chat("please call getUserById for me", session_id="s1")

    assert response.success
    assert response.message == "这是用户信息"
    messages = completion.calls[-1]
    system = messages[0]
    assert system["role"] == "system"
    assert "the userCenter domain is most relevant" in system["content"]
    assert system["content"].index("Priority tools") < system["content"].index("All available tools")
    assert [m["role"] for m in messages[1:]] == ["user", "assistant", "user"]
    assert conversation.get_history("s1")[-1].domain == "userCenter"


def test_empty_completion_result():
    orchestrator, _, _, _ = _orchestrator(FakeCompletionClient(None))

    response = orchestrator.process_chat("hello")

    assert response.success
    assert response.message == NO_RESPONSE_MESSAGE


def test_completion_failure_becomes_failed_reply():
    orchestrator, _, _, _ = _orchestrator(FakeCompletionClient(error=CompletionError("timeout")))

    response = orchestrator.process_chat("hello")

    assert response.success is False
    assert response.message == "An error occurred while processing your request: timeout"


def test_system_prompt_without_domain_lists_all_tools_only():
    tools = [_tool("getUserById", "Get user", "userCenter")]

    prompt = build_system_prompt(tools, [], None)

    assert "Priority tools" not in prompt
    assert '"name": "getUserById"' in prompt
    assert "10. If the user's query relates to orders" in prompt
