"""
Entity extraction for card synthesis.

Pure functions over message text: identifiers, courier, status, route and the
small value conversions applied to data provider records. Nothing here does
I/O.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timedelta

from cards import vocabulary

logger = logging.getLogger(__name__)

_ORDER_NUMBER_PATTERN = re.compile(
    r"(?:订单号|订单编号|订单)[:：#\s]*([A-Za-z0-9][A-Za-z0-9-]*)"
)
_TRACKING_LABEL_PATTERN = re.compile(
    r"(?:运单号|快递单号|物流单号|(?<!订)单号|tracking\s*(?:no\.?|number))[:：#\s]*([A-Za-z0-9]{6,})",
    re.IGNORECASE,
)
_TRACKING_BARE_PATTERN = re.compile(r"(?<![A-Za-z0-9])((?:SF|ZTO|YT|STO|YD|JD|EMS)\d{6,})(?![A-Za-z0-9])", re.IGNORECASE)
_CITY = r"[一-龥]{2,8}?"
_ROUTE_PATTERN_ZH = re.compile(
    rf"从\s*({_CITY})\s*(?:发往|寄往|寄到|发到|运往|到)\s*({_CITY})(?=的|[，,。！？\s]|$|快递|包裹|物流)"
)
_ROUTE_PATTERN_EN = re.compile(r"\bfrom\s+([A-Za-z][A-Za-z ]*?)\s+to\s+([A-Za-z][A-Za-z ]*?)(?=[,.!?]|$)", re.IGNORECASE)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


# ─── Orders ────────────────────────────────────────────────────

def extract_order_number(message: str) -> str | None:
    """Return the order identifier following a label token, if any.
    Purely numeric identifiers get the conventional 'OD' prefix.
    """
    match = _ORDER_NUMBER_PATTERN.search(message or "")
    if not match:
        return None
    order_number = match.group(1)
    if order_number.isdigit():
        order_number = f"OD{order_number}"
    return order_number


def synthesize_order_number() -> str:
    return f"OD{_epoch_millis()}"


def is_not_found_marker(order_number: str) -> bool:
    lowered = (order_number or "").lower()
    return any(marker in lowered for marker in vocabulary.ORDER_NOT_FOUND_MARKERS)


def mentions_missing_order(message: str) -> bool:
    return any(phrase in (message or "") for phrase in vocabulary.ORDER_MISSING_PHRASES)


def detect_order_status(message: str) -> str:
    text = message or ""
    for status, keywords in vocabulary.ORDER_STATUS_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return status
    return vocabulary.UNKNOWN_STATUS


def order_status_label(status_code) -> str:
    try:
        code = int(status_code)
    except (TypeError, ValueError):
        return vocabulary.UNKNOWN_STATUS
    return vocabulary.ORDER_STATUS_LABELS.get(code, vocabulary.UNKNOWN_STATUS)


def parse_order_time(raw, now: datetime | None = None) -> datetime:
    """Parse a provider timestamp ('2023-06-01T12:34:56' or '2023-06-01 12:34:56').
    Empty or unparseable values fall back to one day ago.
    """
    now = now or datetime.now()
    fallback = now - timedelta(days=1)
    text = str(raw or "").strip()
    if not text:
        return fallback
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text.replace(" ", "T", 1))
    except ValueError:
        logger.warning("Could not parse order time: %s", text)
        return fallback
    # Cards carry naive local timestamps
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def mask_phone(phone: str) -> str:
    """Keep the first 3 and last 4 digits: 13512345678 -> 135****5678."""
    phone = (phone or "").strip()
    if len(phone) > 7:
        return f"{phone[:3]}****{phone[-4:]}"
    return phone


def product_profile(item_id: int) -> tuple[str, str, str]:
    if item_id <= 0:
        return vocabulary.DEFAULT_PRODUCT
    return vocabulary.PRODUCTS.get(item_id % 10, vocabulary.DEFAULT_PRODUCT)


# ─── Logistics ─────────────────────────────────────────────────

def detect_courier(message: str) -> dict[str, str]:
    text = (message or "").lower()
    for keyword, courier in vocabulary.COURIERS.items():
        if keyword in text:
            return courier
    return vocabulary.COURIERS[vocabulary.DEFAULT_COURIER_KEY]


def extract_tracking_number(message: str) -> str | None:
    text = message or ""
    match = _TRACKING_LABEL_PATTERN.search(text) or _TRACKING_BARE_PATTERN.search(text)
    if not match:
        return None
    return match.group(1).upper()


def synthesize_tracking_number(courier: dict[str, str]) -> str:
    return f"{courier['prefix']}{_epoch_millis()}"


def detect_logistics_status(message: str) -> str:
    text = message or ""
    for status, keywords in vocabulary.LOGISTICS_STATUS_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return status
    return vocabulary.UNKNOWN_STATUS


def logistics_update(status: str, now: datetime | None = None) -> tuple[str, datetime | None]:
    """Latest-update text and estimated delivery time for a logistics status."""
    now = now or datetime.now()
    text, offset_days = vocabulary.LOGISTICS_STATUS_PROFILE.get(
        status, vocabulary.LOGISTICS_STATUS_PROFILE[vocabulary.UNKNOWN_STATUS]
    )
    if offset_days is None:
        return text, None
    return text, now + timedelta(days=offset_days)


# ─── Tracking ──────────────────────────────────────────────────

def extract_route(message: str) -> tuple[str, str]:
    """Origin and destination from 'X到Y' / 'from X to Y', else the defaults."""
    text = message or ""
    match = _ROUTE_PATTERN_ZH.search(text) or _ROUTE_PATTERN_EN.search(text)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return vocabulary.DEFAULT_ORIGIN, vocabulary.DEFAULT_DESTINATION


def detect_tracking_stage(message: str) -> str:
    text = message or ""
    for stage, keywords in vocabulary.TRACKING_STAGE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return stage
    return vocabulary.DEFAULT_TRACKING_STAGE


def stage_completion(stage: str) -> int:
    for name, percentage in vocabulary.TRACKING_STAGES:
        if name == stage:
            return percentage
    raise ValueError(f"Unknown tracking stage: {stage}")


def lookup_distance(origin: str, destination: str) -> float:
    if origin == destination:
        return 0.0
    return vocabulary.CITY_DISTANCES_KM.get(frozenset((origin, destination)), vocabulary.DEFAULT_DISTANCE_KM)
