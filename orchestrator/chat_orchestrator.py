"""
Chat Orchestrator — Turns one user message into one reply.

Responsibility:
- Record both sides of the conversation
- Answer order / logistics / tracking queries with cards
- Answer everything else through the completion client, with the tool catalog
  in the system prompt and the resolved domain's tools listed first
- Convert any failure into a success=False reply

Prohibitions:
- Never raises to the caller
- Never falls back to the completion client once a card intent was recognized
"""

from __future__ import annotations

import json
import logging
import uuid

from cards.engine import CardSynthesisEngine
from cards.store import card_markup
from conversation.manager import ConversationManager
from intent.card_intent import detect_intents, wants_tracking_detail
from intent.domain_resolver import DomainResolver
from models.completion_client import CompletionClientProtocol
from observability.logger import Observability
from registry.catalog import ToolCatalog
from shared.models import ChatResponse, ModelPolicy, ToolInfo

logger = logging.getLogger(__name__)

ORDER_HEADER = "以下是您查询的订单信息：\n\n"
ORDER_LOGISTICS_HEADER = "\n\n该订单的物流信息：\n\n"
TRACKING_HEADER = "以下是您查询的物流追踪详情：\n\n"
LOGISTICS_HEADER = "以下是您查询的物流信息：\n\n"
ORDER_NOT_FOUND_MESSAGE = "抱歉，未能查询到您要找的订单信息。请确认订单号是否正确，或尝试提供更多订单详情。"
NO_RESPONSE_MESSAGE = "No response generated"
ERROR_PREFIX = "An error occurred while processing your request: "

SHIPPED_STATUS = "已发货"

PROMPT_INTRO = (
    "You are an AI assistant with access to specialized MCP tools in various business domains.\n"
    "Your task is to help the user by providing information or performing actions using these tools.\n\n"
)
PROMPT_GUIDELINES = (
    "Guidelines for tool selection and response:\n"
    "1. First determine which domain is most relevant to the user's query.\n"
    "2. Then select the most appropriate tool(s) based on their descriptions.\n"
    "3. Explain how the selected tool(s) can address the user's query.\n"
    "4. If the domain is unclear, analyze the content to determine the most appropriate domain.\n"
    "5. For queries spanning multiple domains, explain which tools from each domain could be helpful.\n"
    "6. Do not invent tool capabilities beyond what is described in the tool information.\n"
    "7. If no suitable tools exist for a query, explain that you don't have access to tools for that specific request.\n"
    "8. Keep your responses focused, clear, and helpful.\n"
    "9. Maintain context of the conversation history and refer back to previous questions when relevant.\n"
    "10. If the user's query relates to orders, logistics or package tracking, suggest using the special message card feature.\n\n"
    "Format your response as a helpful AI assistant integrating knowledge about the available tools.\n"
)


def _tools_json(tools: list[ToolInfo]) -> str:
    return json.dumps([tool.model_dump(mode="json") for tool in tools], ensure_ascii=False)


def build_system_prompt(all_tools: list[ToolInfo], domain_tools: list[ToolInfo], domain: str | None) -> str:
    """System prompt listing the focused domain's tools before the full catalog."""
    parts = [PROMPT_INTRO]
    if domain and domain_tools:
        parts.append(f"Based on the user's message, I've determined that the {domain} domain is most relevant.\n\n")
        parts.append(f"Priority tools for the {domain} domain:\n")
        parts.append(_tools_json(domain_tools) + "\n\n")
    parts.append("All available tools across domains:\n")
    parts.append(_tools_json(all_tools) + "\n\n")
    parts.append(PROMPT_GUIDELINES)
    return "".join(parts)


class ChatOrchestrator:
    """Routes a chat message to card synthesis or to the completion client."""

    def __init__(
        self,
        catalog: ToolCatalog,
        resolver: DomainResolver,
        card_engine: CardSynthesisEngine,
        conversation: ConversationManager,
        completion_client: CompletionClientProtocol,
        policy: ModelPolicy,
    ):
        self.catalog = catalog
        self.resolver = resolver
        self.card_engine = card_engine
        self.conversation = conversation
        self.completion_client = completion_client
        self.policy = policy
        self.observability = Observability("chat_orchestrator")

    def process_chat(
        self,
        message: str,
        domain: str | None = None,
        session_id: str | None = None,
    ) -> ChatResponse:
        """Blocking. Returns a ChatResponse for every input, including failures."""
        session_id = session_id or str(uuid.uuid4())
        logger.info("Processing chat request from session %s: %s", session_id, message)
        try:
            self.conversation.save(session_id, "user", message, domain)

            card_reply = self._reply_with_cards(message)
            if card_reply is not None:
                self.conversation.save(session_id, "assistant", card_reply, domain)
                return ChatResponse(message=card_reply)

            return self._reply_with_completion(message, domain, session_id)
        except Exception as e:
            logger.exception("Error processing chat request")
            return ChatResponse(message=f"{ERROR_PREFIX}{e}", success=False)

    # ─── Card path ─────────────────────────────────────────────

    def _reply_with_cards(self, message: str) -> str | None:
        """Card reply text, or None when the message carries no card intent."""
        intents = detect_intents(message)
        if not intents.any:
            return None
        logger.info("Detected order/logistics related query")

        if intents.order:
            order_card = self.card_engine.build_order_card(message)
            if order_card is None:
                return ORDER_NOT_FOUND_MESSAGE
            reply = ORDER_HEADER + card_markup(order_card)
            if intents.logistics or order_card.order_status == SHIPPED_STATUS:
                companion = self._logistics_or_tracking_card(message)
                logger.info("Created %s card to accompany order card", companion.type)
                reply += ORDER_LOGISTICS_HEADER + card_markup(companion)
            return reply

        card = self._logistics_or_tracking_card(message)
        header = TRACKING_HEADER if card.type == "tracking" else LOGISTICS_HEADER
        return header + card_markup(card)

    def _logistics_or_tracking_card(self, message: str):
        if wants_tracking_detail(message):
            return self.card_engine.build_tracking_card(message)
        return self.card_engine.build_logistics_card(message)

    # ─── Completion path ───────────────────────────────────────

    def _reply_with_completion(self, message: str, domain: str | None, session_id: str) -> ChatResponse:
        if not domain:
            domain = self.resolver.resolve(message)
            logger.debug("Determined domain from message: %s", domain)

        all_tools = self.catalog.all_tools()
        domain_tools = self.catalog.tools_by_domain(domain) if domain else []
        system_prompt = build_system_prompt(all_tools, domain_tools, domain)

        messages = [{"role": "system", "content": system_prompt}]
        for turn in self.conversation.get_history(session_id):
            if turn.role in ("user", "assistant"):
                messages.append({"role": turn.role, "content": turn.content})

        self.observability.for_session(session_id).log_event(
            "chat_routed",
            {"domain": domain, "domain_tools": len(domain_tools), "all_tools": len(all_tools)},
        )
        text = self.completion_client.complete(messages, self.policy, session_id=session_id)
        reply = text if text is not None else NO_RESPONSE_MESSAGE

        self.conversation.save(session_id, "assistant", reply, domain)
        return ChatResponse(message=reply)
