"""
Card Synthesis Engine — Builds order / logistics / tracking cards from a chat message.

Responsibility:
- Pick the card type from the message's intents
- Fill card fields from extracted entities, the vocabulary tables and, for
  orders with an explicit id, the order and user data providers
- Persist every built card in the card store

Prohibitions:
- Never invent an order the user asked about by id: a specific id with no
  provider record produces no card
- Never call a data provider for a placeholder order card
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from cards import extraction, vocabulary
from cards.store import AnyCard, CardStore
from intent.card_intent import CardIntent, detect_card_intent
from observability.logger import Observability
from providers.data_providers import OrderLookup, UserLookup
from shared.models import LogisticsCard, OrderCard, OrderItem, TrackingCard, TrackingDetail

logger = logging.getLogger(__name__)

ORDER_ICON = "/images/order-icon.png"
LOGISTICS_ICON = "/images/logistics-icon.png"
TRACKING_ICON = "/images/tracking-icon.png"

_PLACEHOLDER_ITEMS = (
    {"product_name": "智能手表", "image_url": "/images/product-watch.jpg", "price": 999.0,
     "quantity": 1, "product_id": 1001, "product_sku": "WATCH-2023", "product_category": "电子产品"},
    {"product_name": "蓝牙耳机", "image_url": "/images/product-headphones.jpg", "price": 499.0,
     "quantity": 1, "product_id": 1002, "product_sku": "HP-2023", "product_category": "电子产品"},
)
PLACEHOLDER_TOTAL = 1498.0


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class CardSynthesisEngine:
    """Turns a chat message into a stored card, or None."""

    def __init__(
        self,
        store: CardStore,
        order_provider: OrderLookup | None = None,
        user_provider: UserLookup | None = None,
    ):
        self.store = store
        self.order_provider = order_provider
        self.user_provider = user_provider
        self.observability = Observability("card_engine")

    def _save(self, card: AnyCard) -> AnyCard:
        stored = self.store.save(card)
        self.observability.log_event(
            "card_created",
            {"card_id": stored.id, "card_type": stored.type, "title": stored.title},
        )
        return stored

    # ─── Detection ─────────────────────────────────────────────

    def detect_and_build_card(self, message: str) -> AnyCard | None:
        """Build the first applicable card: order, then tracking, then logistics."""
        intent = detect_card_intent(message)
        if intent is CardIntent.ORDER:
            return self.build_order_card(message)
        if intent is CardIntent.TRACKING:
            return self.build_tracking_card(message)
        if intent is CardIntent.LOGISTICS:
            return self.build_logistics_card(message)
        return None

    # ─── Order ─────────────────────────────────────────────────

    def build_order_card(self, message: str) -> OrderCard | None:
        order_number = extraction.extract_order_number(message)

        if order_number is not None:
            if extraction.is_not_found_marker(order_number):
                logger.info("Specific order requested but not found: %s", order_number)
                return None
            if extraction.mentions_missing_order(message):
                logger.info("User explicitly asked for a non-existent order")
                return None
            record = self._lookup_order(order_number)
            if record is None:
                logger.info("No provider record for order %s", order_number)
                return None
            card = self._order_card_from_record(record, order_number)
            return self._save(card)

        if extraction.mentions_missing_order(message):
            logger.info("User explicitly asked for a non-existent order")
            return None

        return self._save(self._placeholder_order_card(message))

    def _lookup_order(self, order_number: str) -> dict[str, Any] | None:
        if self.order_provider is None:
            return None
        return self.order_provider.get_order_by_order_no(order_number)

    def _order_card_from_record(self, record: dict[str, Any], requested_number: str) -> OrderCard:
        order_number = str(record.get("orderNo") or requested_number)
        status = extraction.order_status_label(record.get("status", 0))
        total_amount = _as_float(record.get("amount"), 0.0)
        user_id = _as_int(record.get("userId"), 0) or None

        user_name = "用户"
        user_phone = ""
        if user_id is not None and self.user_provider is not None:
            user = self.user_provider.get_user_by_id(user_id)
            if user:
                user_name = str(user.get("username") or user_name)
                user_phone = extraction.mask_phone(str(user.get("phone") or ""))

        item_id = _as_int(record.get("itemId"), 0)
        quantity = max(_as_int(record.get("quantity"), 1), 1)
        name, image_url, category = extraction.product_profile(item_id)
        item = OrderItem(
            product_name=name,
            image_url=image_url,
            price=total_amount / quantity,
            quantity=quantity,
            product_id=item_id or None,
            product_sku=f"SKU-{item_id}",
            product_category=category,
        )

        return OrderCard(
            title="订单详情",
            description=f"订单{order_number}状态：{status}",
            icon_url=ORDER_ICON,
            action_url=f"/order/{order_number}",
            order_number=order_number,
            order_status=status,
            order_time=extraction.parse_order_time(record.get("createdAt")),
            total_amount=total_amount,
            items=[item],
            user_id=user_id,
            user_name=user_name,
            user_phone=user_phone,
            user_address=str(record.get("address") or ""),
        )

    def _placeholder_order_card(self, message: str) -> OrderCard:
        order_number = extraction.synthesize_order_number()
        status = extraction.detect_order_status(message)
        return OrderCard(
            title="订单详情",
            description=f"订单{order_number}状态：{status}",
            icon_url=ORDER_ICON,
            action_url=f"/order/{order_number}",
            order_number=order_number,
            order_status=status,
            order_time=datetime.now() - timedelta(days=1),
            total_amount=PLACEHOLDER_TOTAL,
            items=[OrderItem(**item) for item in _PLACEHOLDER_ITEMS],
            **vocabulary.PLACEHOLDER_USER,
        )

    # ─── Logistics ─────────────────────────────────────────────

    def build_logistics_card(self, message: str) -> LogisticsCard:
        courier = extraction.detect_courier(message)
        order_number = extraction.extract_order_number(message) or extraction.synthesize_order_number()
        tracking_number = extraction.extract_tracking_number(message) or extraction.synthesize_tracking_number(courier)
        status = extraction.detect_logistics_status(message)
        latest_update, eta = extraction.logistics_update(status)

        card = LogisticsCard(
            title=f"物流{status}",
            description=f"您的包裹{status}",
            icon_url=LOGISTICS_ICON,
            action_url=f"/logistics/{tracking_number}",
            courier_company=courier["name"],
            courier_logo=courier["logo"],
            order_number=order_number,
            tracking_number=tracking_number,
            status=status,
            latest_update=latest_update,
            estimated_delivery_time=eta,
        )
        return self._save(card)

    # ─── Tracking ──────────────────────────────────────────────

    def build_tracking_card(self, message: str) -> TrackingCard:
        courier = extraction.detect_courier(message)
        order_number = extraction.extract_order_number(message) or extraction.synthesize_order_number()
        tracking_number = extraction.extract_tracking_number(message) or extraction.synthesize_tracking_number(courier)
        origin, destination = extraction.extract_route(message)
        stage = extraction.detect_tracking_stage(message)
        now = datetime.now()

        offset_days = vocabulary.TRACKING_DELIVERY_OFFSET_DAYS.get(stage)
        eta = now + timedelta(days=offset_days) if offset_days is not None else None

        card = TrackingCard(
            title="物流追踪详情",
            description=f"订单 #{order_number} 的物流追踪信息",
            icon_url=TRACKING_ICON,
            action_url=f"/tracking/{tracking_number}",
            order_number=order_number,
            tracking_number=tracking_number,
            courier_company=courier["name"],
            courier_logo=courier["logo"],
            current_status=stage,
            origin_location=origin,
            destination_location=destination,
            estimated_distance=extraction.lookup_distance(origin, destination),
            completion_percentage=extraction.stage_completion(stage),
            tracking_details=self._tracking_timeline(stage, origin, destination, now),
            estimated_delivery_time=eta,
        )
        return self._save(card)

    @staticmethod
    def _tracking_timeline(stage: str, origin: str, destination: str, now: datetime) -> list[TrackingDetail]:
        """Timeline up to and including ``stage``, most recent first."""
        stages = [name for name, _ in vocabulary.TRACKING_STAGES]
        reached = stages[: stages.index(stage) + 1]

        details = []
        for position, name in enumerate(reversed(reached)):
            description, location = vocabulary.TRACKING_TIMELINE[name]
            details.append(
                TrackingDetail(
                    status=name,
                    description=description.format(origin=origin, destination=destination),
                    timestamp=now - timedelta(hours=1 + position * vocabulary.TRACKING_STEP_HOURS),
                    location=location.format(origin=origin, destination=destination),
                    current=position == 0,
                )
            )
        return details

    # ─── Samples ───────────────────────────────────────────────

    def create_sample_order_card(self) -> OrderCard:
        now = datetime.now()
        card = OrderCard(
            title="您的订单已发货",
            description="订单 #12345678 已于今天开始配送",
            icon_url=ORDER_ICON,
            action_url="/orders/12345678",
            order_number="12345678",
            order_status="已发货",
            order_time=now - timedelta(days=1),
            total_amount=299.99,
            items=[
                OrderItem(product_name="智能手表", image_url="/images/product1.jpg", price=199.99, quantity=1),
                OrderItem(product_name="蓝牙耳机", image_url="/images/product2.jpg", price=100.0, quantity=1),
            ],
        )
        return self._save(card)

    def create_sample_logistics_card(self) -> LogisticsCard:
        card = LogisticsCard(
            title="您的包裹正在配送中",
            description="您的包裹预计将于明天送达",
            icon_url=LOGISTICS_ICON,
            action_url="/logistics/SF1234567890",
            order_number="12345678",
            tracking_number="SF1234567890",
            courier_company="顺丰速运",
            courier_logo="/images/courier-sf.png",
            status="运输中",
            latest_update="包裹已到达北京分拣中心",
            estimated_delivery_time=datetime.now() + timedelta(days=1),
        )
        return self._save(card)

    def create_sample_tracking_card(self) -> TrackingCard:
        now = datetime.now()
        details = [
            TrackingDetail(status="到达分拣中心", description="包裹已到达北京分拣中心",
                           timestamp=now - timedelta(hours=2), location="北京市顺义区", current=True),
            TrackingDetail(status="运输中", description="包裹已从广州发往北京",
                           timestamp=now - timedelta(hours=8), location="广州市白云区"),
            TrackingDetail(status="已发货", description="卖家已发货",
                           timestamp=now - timedelta(hours=12), location="广州市"),
            TrackingDetail(status="已下单", description="订单已生成",
                           timestamp=now - timedelta(days=1), location="系统"),
        ]
        card = TrackingCard(
            title="物流追踪详情",
            description="订单 #12345678 的物流追踪信息",
            icon_url=TRACKING_ICON,
            action_url="/tracking/SF1234567890",
            order_number="12345678",
            tracking_number="SF1234567890",
            courier_company="顺丰速运",
            courier_logo="/images/courier-sf.png",
            current_status="运输中",
            origin_location="广州",
            destination_location="北京",
            estimated_distance=1897.5,
            completion_percentage=60,
            tracking_details=details,
            estimated_delivery_time=now + timedelta(days=1),
        )
        return self._save(card)

    def init_sample_cards(self) -> int:
        """Seed one card of each type when the store is empty. Returns the store size."""
        if len(self.store) == 0:
            self.create_sample_order_card()
            self.create_sample_logistics_card()
            self.create_sample_tracking_card()
            logger.info("Initialized sample message cards")
        return len(self.store)
