from __future__ import annotations

import pytest
from pydantic import ValidationError

from cards.store import CardStore, card_markup
from shared.models import LogisticsCard, OrderCard, TrackingCard, parse_card


def test_save_assigns_id_and_created_time():
    store = CardStore()
    card = OrderCard(title="订单详情", order_number="OD1", total_amount=10.0)

    saved = store.save(card)

    assert saved.id
    assert saved.created_time is not None
    fetched = store.get(saved.id)
    assert fetched == saved
    assert fetched.model_dump() == saved.model_dump()


def test_save_keeps_existing_id_and_upserts():
    store = CardStore()
    store.save(LogisticsCard(id="fixed", status="运输中"))
    store.save(LogisticsCard(id="fixed", status="已签收"))

    assert len(store) == 1
    assert store.get("fixed").status == "已签收"


def test_by_type_and_delete():
    store = CardStore()
    order = store.save(OrderCard())
    store.save(LogisticsCard())
    store.save(TrackingCard())

    assert [card.id for card in store.by_type("order")] == [order.id]
    assert store.delete(order.id) is True
    assert store.delete(order.id) is False
    assert store.get(order.id) is None
    assert len(store.all()) == 2


def test_card_markup():
    card = TrackingCard(id="abc-123")
    assert card_markup(card) == "@cards[abc-123,tracking]"


def test_parse_card_dispatches_on_type():
    card = parse_card({"type": "logistics", "courier_company": "顺丰速运"})
    assert isinstance(card, LogisticsCard)

    with pytest.raises(ValidationError):
        parse_card({"type": "coupon"})
    with pytest.raises(ValidationError):
        parse_card({"type": "tracking", "completion_percentage": 120})
