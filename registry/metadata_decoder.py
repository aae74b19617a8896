"""
Metadata Decoder — Registry instance metadata -> typed tool records.

Responsibility:
- Derive a service's business domain from its registry name
- Decode the flat `tool-{i}-*` metadata keys into ToolInfo records
- Build a complete ServiceInfo from a service's instance list

Prohibitions:
- No network calls
- Never raises on malformed metadata (fails closed to zero tools)
"""

from __future__ import annotations

import logging
import re

from shared.models import RegistryInstance, ServiceInfo, ToolInfo

logger = logging.getLogger(__name__)

TOOLS_COUNT_KEY = "mcp-tools-count"
PROTOCOL_KEY = "protocol"
VERSION_KEY = "mcp-version"
DEFAULT_PROTOCOL = "MCP"
DEFAULT_VERSION = "v1alpha1"
DEFAULT_SERVICE_SUFFIX = "-mcp"

_TOOL_NAME_KEY = re.compile(r"^tool-(\d+)-name$")


def derive_domain(service_name: str, suffix: str = DEFAULT_SERVICE_SUFFIX) -> str:
    """Strip the conventional suffix, e.g. 'userCenter-mcp' -> 'userCenter'."""
    if suffix:
        return service_name.replace(suffix, "")
    return service_name


def read_tools_count(metadata: dict[str, str]) -> int:
    """Parse the advertised tool count. Missing or malformed -> 0."""
    raw = metadata.get(TOOLS_COUNT_KEY)
    if raw is None:
        return 0
    try:
        count = int(str(raw).strip())
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s=%r", TOOLS_COUNT_KEY, raw)
        return 0
    return max(0, count)


def present_tool_indices(metadata: dict[str, str], count: int) -> list[int]:
    """Indices below `count` that actually carry a tool name, ascending."""
    indices = set()
    for key in metadata:
        match = _TOOL_NAME_KEY.match(key)
        if match and int(match.group(1)) < count:
            indices.add(int(match.group(1)))
    return sorted(indices)


def _optional_text(metadata: dict[str, str], key: str) -> str | None:
    value = metadata.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def decode_tools(
    metadata: dict[str, str],
    instance: RegistryInstance,
    service_name: str,
    domain: str,
) -> list[ToolInfo]:
    """Decode the tools advertised in one instance's metadata.

    Indices whose name key is absent are skipped; registries may publish
    sparse indices.
    """
    metadata = metadata or {}
    protocol = metadata.get(PROTOCOL_KEY, DEFAULT_PROTOCOL)
    version = metadata.get(VERSION_KEY, DEFAULT_VERSION)

    tools: list[ToolInfo] = []
    for index in present_tool_indices(metadata, read_tools_count(metadata)):
        name = metadata.get(f"tool-{index}-name")
        if name is None:
            continue
        tools.append(
            ToolInfo(
                name=name,
                description=metadata.get(f"tool-{index}-description") or "",
                domain=domain,
                service_name=service_name,
                connection_details={
                    "protocol": protocol,
                    "version": version,
                    "ip": instance.ip,
                    "port": str(instance.port),
                    "domain": domain,
                    "serviceName": service_name,
                },
                input_schema=_optional_text(metadata, f"tool-{index}-input-schema"),
                output_schema=_optional_text(metadata, f"tool-{index}-output-schema"),
                documentation=_optional_text(metadata, f"tool-{index}-documentation"),
            )
        )
    return tools


def build_service(
    service_name: str,
    instances: list[RegistryInstance],
    suffix: str = DEFAULT_SERVICE_SUFFIX,
) -> ServiceInfo:
    """Build a ServiceInfo from the registry's instance list.
    Tool metadata is read from the first instance returned.
    """
    if not instances:
        raise ValueError(f"Service '{service_name}' has no instances")

    domain = derive_domain(service_name, suffix)
    primary = instances[0]
    metadata = primary.metadata or {}
    return ServiceInfo(
        service_name=service_name,
        domain=domain,
        protocol=metadata.get(PROTOCOL_KEY, DEFAULT_PROTOCOL),
        mcp_version=metadata.get(VERSION_KEY, DEFAULT_VERSION),
        instances=list(instances),
        tools=decode_tools(metadata, primary, service_name, domain),
    )
