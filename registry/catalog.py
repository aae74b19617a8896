"""
Tool Catalog — In-memory view of discovered services and tools.

Responsibility:
- Hold the mapping service_name -> ServiceInfo
- Swap the whole mapping atomically on every poll cycle
- Serve read queries as copies, never live references

The poller is the only writer; readers never block on it for longer than a
reference swap.
"""

from __future__ import annotations

import logging
import threading

from shared.models import ServiceInfo, ToolInfo

logger = logging.getLogger(__name__)


class ToolCatalog:
    """Thread-safe registry view, replaced wholesale by the poller."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._services: dict[str, ServiceInfo] = {}

    def replace_all(self, services: list[ServiceInfo]) -> None:
        """Atomically replace the catalog content.
        Insertion order is preserved, so lookups see services in the order given.
        """
        fresh: dict[str, ServiceInfo] = {}
        for service in services:
            fresh[service.service_name] = service
        with self._lock:
            self._services = fresh
        logger.info(
            "Catalog replaced: %d services, %d tools",
            len(fresh),
            sum(len(s.tools) for s in fresh.values()),
        )

    def _snapshot(self) -> list[ServiceInfo]:
        with self._lock:
            return list(self._services.values())

    def all_services(self) -> list[ServiceInfo]:
        return [service.model_copy(deep=True) for service in self._snapshot()]

    def all_tools(self) -> list[ToolInfo]:
        return [
            tool.model_copy(deep=True)
            for service in self._snapshot()
            for tool in service.tools
        ]

    def tools_by_domain(self, domain: str | None) -> list[ToolInfo]:
        """Tools whose owning service's domain equals `domain` (case-insensitive).
        A None or empty domain returns every tool.
        """
        if not domain:
            return self.all_tools()
        wanted = domain.lower()
        return [
            tool.model_copy(deep=True)
            for service in self._snapshot()
            if service.domain.lower() == wanted
            for tool in service.tools
        ]

    def tools_grouped_by_domain(self) -> dict[str, list[ToolInfo]]:
        """Group tools by domain, keeping catalog order within each group."""
        grouped: dict[str, list[ToolInfo]] = {}
        for service in self._snapshot():
            if not service.domain:
                continue
            grouped.setdefault(service.domain, []).extend(
                tool.model_copy(deep=True) for tool in service.tools
            )
        return grouped

    def domains(self) -> list[str]:
        seen: dict[str, None] = {}
        for service in self._snapshot():
            if service.domain:
                seen.setdefault(service.domain, None)
        return list(seen)

    def service_by_name(self, service_name: str) -> ServiceInfo | None:
        with self._lock:
            service = self._services.get(service_name)
        return service.model_copy(deep=True) if service is not None else None

    def tool_by_name(self, tool_name: str) -> ToolInfo | None:
        """First registered wins when several services expose the same name."""
        for service in self._snapshot():
            for tool in service.tools:
                if tool.name == tool_name:
                    return tool.model_copy(deep=True)
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)
