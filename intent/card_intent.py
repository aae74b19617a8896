"""
Card Intent — Keyword detection of order / logistics / tracking queries.

The checks are layered, not exclusive: one message can carry an order intent
and a logistics intent at the same time, and a tracking keyword upgrades a
logistics query to a tracking query.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CardIntent(str, Enum):
    ORDER = "order"
    LOGISTICS = "logistics"
    TRACKING = "tracking"


GATE_KEYWORDS = ("订单", "快递", "物流", "包裹", "查询订单")
ORDER_KEYWORDS = ("订单", "查询订单", "我的订单")
LOGISTICS_KEYWORDS = ("物流", "快递", "包裹", "运输", "配送", "送达")
TRACKING_KEYWORDS = ("追踪", "详情", "跟踪")


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


@dataclass(frozen=True)
class CardIntents:
    """Which card intents a message carries."""
    order: bool = False
    logistics: bool = False
    tracking: bool = False

    @property
    def any(self) -> bool:
        return self.order or self.logistics

    @property
    def primary(self) -> CardIntent | None:
        if self.order:
            return CardIntent.ORDER
        if self.logistics:
            return CardIntent.TRACKING if self.tracking else CardIntent.LOGISTICS
        return None


def detect_intents(message: str) -> CardIntents:
    text = (message or "").lower()
    if not _contains_any(text, GATE_KEYWORDS):
        return CardIntents()
    return CardIntents(
        order=_contains_any(text, ORDER_KEYWORDS),
        logistics=_contains_any(text, LOGISTICS_KEYWORDS),
        tracking=_contains_any(text, TRACKING_KEYWORDS),
    )


def wants_tracking_detail(message: str) -> bool:
    return _contains_any((message or "").lower(), TRACKING_KEYWORDS)


# Direct card detection is narrower than chat routing: an order card needs a
# status word next to 订单, and only the core parcel words open the
# logistics branch.
ORDER_STATUS_KEYWORDS = ("已发货", "待付款", "已付款")
PARCEL_KEYWORDS = ("物流", "快递", "包裹")


def detect_card_intent(message: str) -> CardIntent | None:
    """Single card type for a message without chat context, or None."""
    text = (message or "").lower()
    if "订单" in text and _contains_any(text, ORDER_STATUS_KEYWORDS):
        return CardIntent.ORDER
    if _contains_any(text, PARCEL_KEYWORDS):
        return CardIntent.TRACKING if _contains_any(text, TRACKING_KEYWORDS) else CardIntent.LOGISTICS
    return None
