"""
Shared Pydantic models for all layers.
Registry records are immutable (frozen) after decoding; cards are mutable
until they are stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


# ─── Registry Layer ────────────────────────────────────────────

class RegistryInstance(BaseModel):
    """One instance of a service as published by the service registry."""
    model_config = {"frozen": True}

    ip: str
    port: int
    metadata: dict[str, str] = Field(default_factory=dict)
    healthy: bool = True
    weight: float = 1.0

    @property
    def address(self) -> str:
        return f"{self.ip}:{self.port}"


class ToolInfo(BaseModel):
    """A remotely invocable tool advertised through registry metadata."""
    model_config = {"frozen": True}

    name: str
    description: str = ""
    domain: str
    service_name: str
    connection_details: dict[str, str] = Field(default_factory=dict)
    input_schema: str | None = None
    output_schema: str | None = None
    documentation: str | None = None


class ServiceInfo(BaseModel):
    """A registry service and the tools decoded from its metadata.
    Built fresh every poll cycle and swapped into the catalog as a unit.
    """
    model_config = {"frozen": True}

    service_name: str
    domain: str
    protocol: str = "MCP"
    mcp_version: str = "v1alpha1"
    instances: list[RegistryInstance] = Field(default_factory=list)
    tools: list[ToolInfo] = Field(default_factory=list)


# ─── Card Layer ────────────────────────────────────────────────

class OrderItem(BaseModel):
    product_name: str
    image_url: str = ""
    price: float = 0.0
    quantity: int = 1
    product_id: int | None = None
    product_sku: str = ""
    product_category: str = ""


class TrackingDetail(BaseModel):
    status: str
    description: str = ""
    timestamp: datetime | None = None
    location: str = ""
    current: bool = False


class _CardBase(BaseModel):
    id: str | None = None
    title: str = ""
    description: str = ""
    icon_url: str = ""
    action_url: str = ""
    created_time: datetime | None = None


class OrderCard(_CardBase):
    type: Literal["order"] = "order"
    order_number: str = ""
    order_status: str = "未知"
    order_time: datetime | None = None
    total_amount: float = 0.0
    items: list[OrderItem] = Field(default_factory=list)
    user_id: int | None = None
    user_name: str = ""
    user_phone: str = ""
    user_address: str = ""


class LogisticsCard(_CardBase):
    type: Literal["logistics"] = "logistics"
    courier_company: str = ""
    courier_logo: str = ""
    order_number: str = ""
    tracking_number: str = ""
    status: str = "未知"
    latest_update: str = ""
    estimated_delivery_time: datetime | None = None


class TrackingCard(_CardBase):
    type: Literal["tracking"] = "tracking"
    order_number: str = ""
    tracking_number: str = ""
    courier_company: str = ""
    courier_logo: str = ""
    current_status: str = ""
    origin_location: str = ""
    destination_location: str = ""
    estimated_distance: float = 0.0
    completion_percentage: int = Field(default=0, ge=0, le=100)
    tracking_details: list[TrackingDetail] = Field(default_factory=list)
    estimated_delivery_time: datetime | None = None


Card = Annotated[Union[OrderCard, LogisticsCard, TrackingCard], Field(discriminator="type")]
CARD_TYPES = ("order", "logistics", "tracking")

_card_adapter: TypeAdapter[Any] = TypeAdapter(Card)


def parse_card(payload: dict[str, Any]) -> OrderCard | LogisticsCard | TrackingCard:
    """Validate a card payload, dispatching on its ``type`` discriminant."""
    return _card_adapter.validate_python(payload)


# ─── Conversation Layer ───────────────────────────────────────

class ConversationTurn(BaseModel):
    """A single message in a conversation."""
    model_config = {"frozen": True}

    id: str
    role: Literal["user", "assistant"]
    content: str
    domain: str | None = None
    timestamp: datetime


class ChatRequest(BaseModel):
    message: str
    domain: str | None = None
    session_id: str | None = None


class ChatResponse(BaseModel):
    message: str
    success: bool = True


# ─── Model Layer (Policy) ──────────────────────────────────────

class ModelPolicy(BaseModel):
    """Generation parameters for the completion client."""
    model_config = {"frozen": True}
    model_name: str
    temperature: float = 0.7
    max_tokens: int = 2048
    timeout_seconds: float = 60.0
