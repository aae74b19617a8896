"""
ToolClient — Invokes a registry-discovered tool over HTTP.

Responsibility:
- Build the tool endpoint from the tool's connection details
- POST JSON parameters to /api/mcp/tools/{toolName}
- Return the decoded JSON envelope
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from shared.models import ToolInfo

logger = logging.getLogger(__name__)

TOOL_PATH_TEMPLATE = "/api/mcp/tools/{name}"


class ToolCallError(RuntimeError):
    """A tool endpoint could not be reached or answered with an error."""


def tool_endpoint(tool: ToolInfo) -> str:
    details = tool.connection_details
    ip = details.get("ip")
    port = details.get("port")
    if not ip or not port:
        raise ToolCallError(f"Tool '{tool.name}' has no address in its connection details")
    return f"http://{ip}:{port}" + TOOL_PATH_TEMPLATE.format(name=tool.name)


class ToolClient:
    """Synchronous HTTP caller for MCP tool endpoints."""

    def __init__(self, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def call(self, tool: ToolInfo, params: dict[str, Any]) -> dict[str, Any]:
        url = tool_endpoint(tool)
        logger.info("Calling tool %s at %s", tool.name, url)
        try:
            response = self._client.post(url, json=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise ToolCallError(f"Tool '{tool.name}' call failed: {e}") from e
        except ValueError as e:
            raise ToolCallError(f"Tool '{tool.name}' returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise ToolCallError(f"Tool '{tool.name}' returned a non-object payload")
        return payload

    def close(self) -> None:
        self._client.close()
