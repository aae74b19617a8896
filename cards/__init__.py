"""Card synthesis and storage."""

from __future__ import annotations

from cards.engine import CardSynthesisEngine
from cards.store import CardStore, card_markup

__all__ = ["CardStore", "CardSynthesisEngine", "card_markup"]
