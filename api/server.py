"""
HTTP API for the MCP Tool Aggregator.

Endpoints:
- POST /api/chat, /api/chat/stream
- GET /api/conversation, POST /api/conversation/clear
- GET /api/services, /api/tools, /api/tools/{domain}; POST /api/refresh
- /api/cards CRUD and sample cards
- GET /health

The registry poller runs for the lifetime of the app.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, Header, HTTPException, Request, Response
from pydantic import BaseModel, ValidationError

from main import Pipeline, build_pipeline
from shared.models import CARD_TYPES, ChatRequest, ChatResponse, parse_card

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"


class ClearConversationRequest(BaseModel):
    session_id: str | None = None


def _resolve_session_id(header_value: str | None, body_value: str | None = None) -> str:
    """Header wins over body; a missing id gets a fresh one."""
    for candidate in (header_value, body_value):
        if candidate and candidate.strip():
            return candidate.strip()
    return str(uuid.uuid4())


def _pipeline(request: Request) -> Pipeline:
    return request.app.state.pipeline


def create_app(pipeline_factory: Callable[[], Pipeline] = build_pipeline) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        pipeline = pipeline_factory()
        _app.state.pipeline = pipeline
        if pipeline.settings.poller_enabled:
            pipeline.poller.start()
        yield
        pipeline.close()

    app = FastAPI(
        title="MCP Tool Aggregator API",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        pipeline = _pipeline(request)
        return {
            "status": "ok",
            "poller": pipeline.poller.state,
            "services": len(pipeline.catalog),
        }

    # ─── Chat ──────────────────────────────────────────────────

    # Plain def: process_chat blocks, so it runs in the worker threadpool.
    @app.post("/api/chat", response_model=ChatResponse)
    def chat(
        body: ChatRequest,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> ChatResponse:
        session_id = _resolve_session_id(x_session_id, body.session_id)
        response.headers[SESSION_HEADER] = session_id
        return _pipeline(request).orchestrator.process_chat(
            body.message,
            domain=body.domain,
            session_id=session_id,
        )

    @app.post("/api/chat/stream", response_model=ChatResponse)
    def chat_stream(
        body: ChatRequest,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
    ) -> ChatResponse:
        return chat(body, request, response, x_session_id)

    @app.get("/api/conversation")
    def conversation_history(
        request: Request,
        session_id: str | None = None,
        x_session_id: str | None = Header(default=None),
    ) -> dict[str, Any]:
        resolved = _resolve_session_id(x_session_id, session_id)
        history = _pipeline(request).conversation.get_history(resolved)
        return {
            "session_id": resolved,
            "messages": [turn.model_dump(mode="json") for turn in history],
        }

    @app.post("/api/conversation/clear")
    def clear_conversation(
        request: Request,
        body: ClearConversationRequest | None = None,
        x_session_id: str | None = Header(default=None),
    ) -> dict[str, Any]:
        resolved = _resolve_session_id(x_session_id, body.session_id if body else None)
        _pipeline(request).conversation.clear_session(resolved)
        return {"session_id": resolved, "status": "cleared"}

    # ─── Registry ──────────────────────────────────────────────

    @app.get("/api/services")
    def list_services(request: Request) -> list[dict[str, Any]]:
        return [service.model_dump(mode="json") for service in _pipeline(request).catalog.all_services()]

    @app.get("/api/tools")
    def list_tools(request: Request) -> list[dict[str, Any]]:
        return [tool.model_dump(mode="json") for tool in _pipeline(request).catalog.all_tools()]

    @app.get("/api/tools/{domain}")
    def list_domain_tools(domain: str, request: Request) -> list[dict[str, Any]]:
        return [tool.model_dump(mode="json") for tool in _pipeline(request).catalog.tools_by_domain(domain)]

    @app.post("/api/refresh")
    def refresh(request: Request) -> dict[str, Any]:
        pipeline = _pipeline(request)
        count = pipeline.poller.force_refresh()
        return {"services": count, "error": pipeline.poller.last_error}

    # ─── Cards ─────────────────────────────────────────────────

    @app.get("/api/cards")
    def list_cards(request: Request) -> list[dict[str, Any]]:
        return [card.model_dump(mode="json") for card in _pipeline(request).card_store.all()]

    @app.get("/api/cards/type/{card_type}")
    def list_cards_by_type(card_type: str, request: Request) -> list[dict[str, Any]]:
        if card_type not in CARD_TYPES:
            raise HTTPException(status_code=404, detail=f"Unknown card type: {card_type}")
        return [card.model_dump(mode="json") for card in _pipeline(request).card_store.by_type(card_type)]

    @app.get("/api/cards/{card_id}")
    def get_card(card_id: str, request: Request) -> dict[str, Any]:
        card = _pipeline(request).card_store.get(card_id)
        if card is None:
            raise HTTPException(status_code=404, detail=f"Card not found: {card_id}")
        return card.model_dump(mode="json")

    @app.post("/api/cards")
    def create_card(request: Request, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        try:
            card = parse_card(payload)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        return _pipeline(request).card_store.save(card).model_dump(mode="json")

    @app.delete("/api/cards/{card_id}", status_code=204)
    def delete_card(card_id: str, request: Request) -> Response:
        if not _pipeline(request).card_store.delete(card_id):
            raise HTTPException(status_code=404, detail=f"Card not found: {card_id}")
        return Response(status_code=204)

    @app.post("/api/cards/init")
    def init_cards(request: Request) -> dict[str, Any]:
        count = _pipeline(request).card_engine.init_sample_cards()
        return {"cards": count}

    @app.post("/api/cards/sample/{card_type}")
    def create_sample_card(card_type: str, request: Request) -> dict[str, Any]:
        engine = _pipeline(request).card_engine
        builders = {
            "order": engine.create_sample_order_card,
            "logistics": engine.create_sample_logistics_card,
            "tracking": engine.create_sample_tracking_card,
        }
        builder = builders.get(card_type)
        if builder is None:
            raise HTTPException(status_code=404, detail=f"Unknown card type: {card_type}")
        return builder().model_dump(mode="json")

    return app


app = create_app()
