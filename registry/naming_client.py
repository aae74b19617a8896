"""
NacosNamingClient — HTTP client for the external service registry.

Responsibility:
- List service names in a registry group
- List a service's instances with their key/value metadata
- Normalize registry payloads into RegistryInstance records
- Surface transport failures as RegistryUnavailableError
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from shared.models import RegistryInstance

logger = logging.getLogger(__name__)

SERVICE_LIST_PATH = "/nacos/v1/ns/service/list"
INSTANCE_LIST_PATH = "/nacos/v1/ns/instance/list"
MAX_PAGE_SIZE = 1000


class RegistryUnavailableError(RuntimeError):
    """The service registry could not be reached or returned garbage."""


class RegistryClient(Protocol):
    """What the poller needs from a service registry."""

    def list_services(self, group: str) -> list[str]:
        ...

    def list_instances(self, service_name: str, group: str) -> list[RegistryInstance]:
        ...


class NacosNamingClient:
    """Nacos v1 open API client (naming service)."""

    def __init__(
        self,
        server_addr: str,
        namespace: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = server_addr.rstrip("/")
        self.namespace = namespace
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if self.namespace:
            params = {**params, "namespaceId": self.namespace}
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.error("Registry request failed: %s%s: %s", self.base_url, path, e)
            raise RegistryUnavailableError(f"Registry request to {path} failed: {e}") from e
        except ValueError as e:
            raise RegistryUnavailableError(f"Registry returned invalid JSON for {path}") from e
        if not isinstance(payload, dict):
            raise RegistryUnavailableError(f"Registry payload for {path} must be an object")
        return payload

    def list_services(self, group: str) -> list[str]:
        """List every service name in `group`, following pages until `count` is reached."""
        names: list[str] = []
        page = 1
        while True:
            payload = self._get(
                SERVICE_LIST_PATH,
                {"pageNo": page, "pageSize": MAX_PAGE_SIZE, "groupName": group},
            )
            raw = payload.get("doms")
            batch = [str(name) for name in raw] if isinstance(raw, list) else []
            names.extend(batch)
            try:
                total = int(payload.get("count", len(names)))
            except (TypeError, ValueError):
                total = len(names)
            if not batch or len(names) >= total:
                break
            page += 1
        logger.debug("Registry group '%s' lists %d services", group, len(names))
        return names

    def list_instances(self, service_name: str, group: str) -> list[RegistryInstance]:
        payload = self._get(
            INSTANCE_LIST_PATH,
            {"serviceName": service_name, "groupName": group, "healthyOnly": "false"},
        )
        hosts = payload.get("hosts")
        if not isinstance(hosts, list):
            return []

        instances: list[RegistryInstance] = []
        for host in hosts:
            if not isinstance(host, dict):
                continue
            raw_metadata = host.get("metadata")
            metadata = (
                {str(k): str(v) for k, v in raw_metadata.items() if v is not None}
                if isinstance(raw_metadata, dict)
                else {}
            )
            try:
                instances.append(
                    RegistryInstance(
                        ip=str(host.get("ip", "")),
                        port=int(host.get("port", 0)),
                        metadata=metadata,
                        healthy=bool(host.get("healthy", True)),
                        weight=float(host.get("weight", 1.0)),
                    )
                )
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed instance of '%s': %s", service_name, e)
        return instances

    def close(self) -> None:
        self._client.close()
