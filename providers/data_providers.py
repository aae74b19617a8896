"""
Data Providers — Order and user lookups backed by registry tools.

Responsibility:
- Resolve the provider tool by name from the live catalog
- Call it and unwrap the {"data": ...} envelope
- Answer None for "not found", a missing tool, or any transport error

The card engine treats these lookups as optional enrichment, so failures are
logged here and never raised.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from providers.tool_client import ToolClient
from registry.catalog import ToolCatalog

logger = logging.getLogger(__name__)

ORDER_BY_NO_TOOL = "getOrderWithLogisticsByOrderNo"
USER_BY_ID_TOOL = "getUserById"
USER_BY_USERNAME_TOOL = "getUserByUsername"


class OrderLookup(Protocol):
    def get_order_by_order_no(self, order_no: str) -> dict[str, Any] | None:
        ...


class UserLookup(Protocol):
    def get_user_by_id(self, user_id: int) -> dict[str, Any] | None:
        ...


class _CatalogToolProvider:
    def __init__(self, catalog: ToolCatalog, tool_client: ToolClient):
        self.catalog = catalog
        self.tool_client = tool_client

    def _fetch(self, tool_name: str, params: dict[str, Any], label: str) -> dict[str, Any] | None:
        tool = self.catalog.tool_by_name(tool_name)
        if tool is None:
            logger.error("Tool not found in catalog: %s", tool_name)
            return None
        try:
            result = self.tool_client.call(tool, params)
        except Exception as e:
            logger.error("Error fetching %s via %s: %s", label, tool_name, e)
            return None

        data = result.get("data")
        if not isinstance(data, dict):
            logger.warning("No %s found via %s", label, tool_name)
            return None
        logger.info("Fetched %s via %s", label, tool_name)
        return data


class OrderDataProvider(_CatalogToolProvider):
    """Order records from the trade center service."""

    def get_order_by_order_no(self, order_no: str) -> dict[str, Any] | None:
        return self._fetch(ORDER_BY_NO_TOOL, {"orderNo": order_no}, f"order {order_no}")


class UserDataProvider(_CatalogToolProvider):
    """User records from the user center service."""

    def get_user_by_id(self, user_id: int) -> dict[str, Any] | None:
        return self._fetch(USER_BY_ID_TOOL, {"id": user_id}, f"user id={user_id}")

    def get_user_by_username(self, username: str) -> dict[str, Any] | None:
        return self._fetch(USER_BY_USERNAME_TOOL, {"username": username}, f"user {username}")
