"""
Registry Poller — Periodically syncs the service registry into the Tool Catalog.

Responsibility:
- List services in the configured registry group
- Keep only services matching the configured target domains
- Decode each service's instance metadata into a ServiceInfo
- Replace the catalog content once per cycle

Failure policy:
- Registry unavailable -> cycle is a no-op, the stale catalog keeps serving
- One service failing -> that service is dropped from this cycle only

Scheduling:
- One synchronous poll at start(), then a daemon thread with a fixed delay
  between cycles, so cycles never overlap
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable

from observability.logger import Observability
from registry.catalog import ToolCatalog
from registry.metadata_decoder import DEFAULT_SERVICE_SUFFIX, build_service
from registry.naming_client import RegistryClient
from shared.models import ServiceInfo

logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_POLLING = "polling"


def filter_services_by_domains(service_names: Iterable[str], target_domains: Iterable[str]) -> list[str]:
    """Keep services whose name contains any target domain (case-insensitive).
    An empty target set keeps everything.
    """
    names = list(service_names)
    targets = [domain.lower() for domain in target_domains if domain]
    if not targets:
        return names
    return [name for name in names if any(target in name.lower() for target in targets)]


class RegistryPoller:
    """Owns the periodic refresh of a ToolCatalog."""

    def __init__(
        self,
        client: RegistryClient,
        catalog: ToolCatalog,
        group: str,
        target_domains: list[str] | None = None,
        interval_seconds: float = 30.0,
        service_suffix: str = DEFAULT_SERVICE_SUFFIX,
    ):
        self.client = client
        self.catalog = catalog
        self.group = group
        self.target_domains = list(target_domains or [])
        self.interval_seconds = interval_seconds
        self.service_suffix = service_suffix
        self.observability = Observability("registry_poller")

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = STATE_IDLE
        self.last_poll_at: float | None = None
        self.last_error: str | None = None

    @property
    def state(self) -> str:
        return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> int:
        """Run one discovery cycle. Returns the number of services now in the catalog."""
        self._state = STATE_POLLING
        try:
            with self.observability.measure("registry_poll", {"group": self.group}) as metric:
                try:
                    service_names = self.client.list_services(self.group)
                except Exception as e:
                    self.last_error = str(e)
                    metric["registry_available"] = False
                    logger.error("Failed to list services from registry group '%s': %s", self.group, e)
                    return len(self.catalog)

                filtered = filter_services_by_domains(service_names, self.target_domains)
                logger.debug(
                    "Registry listed %d services, %d match target domains",
                    len(service_names),
                    len(filtered),
                )

                built = self._build_services(filtered)
                self.catalog.replace_all(built)
                self.last_error = None
                metric.update(
                    {
                        "listed": len(service_names),
                        "matched": len(filtered),
                        "services": len(built),
                        "tools": sum(len(s.tools) for s in built),
                    }
                )
                logger.info(
                    "Discovered %d MCP services with a total of %d tools",
                    len(built),
                    sum(len(s.tools) for s in built),
                )
                return len(built)
        finally:
            self.last_poll_at = time.time()
            self._state = STATE_IDLE

    def _build_services(self, service_names: list[str]) -> list[ServiceInfo]:
        built: list[ServiceInfo] = []
        for service_name in service_names:
            try:
                instances = self.client.list_instances(service_name, self.group)
                if not instances:
                    logger.debug("Service '%s' has no instances; skipping", service_name)
                    continue
                service = build_service(service_name, instances, suffix=self.service_suffix)
                built.append(service)
                logger.debug("Processed MCP service: %s with %d tools", service_name, len(service.tools))
            except Exception as e:
                logger.error("Error processing service %s: %s", service_name, e)
        return built

    def force_refresh(self) -> int:
        """Poll immediately on the caller's thread."""
        self.poll_once()
        return len(self.catalog)

    def start(self) -> None:
        """Poll once synchronously, then keep polling in the background."""
        if self.running:
            return
        logger.info(
            "Starting registry poller: group=%s interval=%.1fs target_domains=%s",
            self.group,
            self.interval_seconds,
            self.target_domains or "*",
        )
        self.poll_once()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="registry-poller", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.poll_once()
            except Exception:
                logger.exception("Unexpected error in registry poll cycle")

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
        self._thread = None
        logger.info("Registry poller stopped")
