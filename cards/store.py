"""
Card Store — In-memory storage for synthesized cards.

Responsibility:
- Assign ids and creation timestamps on save
- Upsert, retrieve, list and delete cards by id

Lifetime is the process lifetime; no expiry. Concurrent writes to the same id
are last-write-wins.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime

from shared.models import Card, LogisticsCard, OrderCard, TrackingCard

logger = logging.getLogger(__name__)

AnyCard = OrderCard | LogisticsCard | TrackingCard


def card_markup(card: AnyCard) -> str:
    """Inline reference token rendered by the chat front-end."""
    return f"@cards[{card.id},{card.type}]"


class CardStore:
    """Thread-safe card map keyed by card id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cards: dict[str, AnyCard] = {}

    def save(self, card: AnyCard) -> AnyCard:
        """Save or update a card, filling id and created_time when absent."""
        if not card.id:
            card.id = str(uuid.uuid4())
        if card.created_time is None:
            card.created_time = datetime.now()
        with self._lock:
            self._cards[card.id] = card
        logger.debug("Saved message card: %s (%s)", card.id, card.type)
        return card

    def get(self, card_id: str) -> AnyCard | None:
        with self._lock:
            return self._cards.get(card_id)

    def all(self) -> list[AnyCard]:
        with self._lock:
            return list(self._cards.values())

    def by_type(self, card_type: str) -> list[AnyCard]:
        return [card for card in self.all() if card.type == card_type]

    def delete(self, card_id: str) -> bool:
        with self._lock:
            removed = self._cards.pop(card_id, None)
        if removed is not None:
            logger.debug("Deleted message card: %s", card_id)
            return True
        return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._cards)


__all__ = ["AnyCard", "Card", "CardStore", "card_markup"]
