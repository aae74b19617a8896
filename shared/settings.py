"""
Runtime configuration.

Values come from the process environment, after loading a local .env file
(existing environment variables win).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


class Settings(BaseModel):
    model_config = {"frozen": True}

    # Service registry (Nacos)
    nacos_server_addr: str = "http://localhost:8848"
    nacos_namespace: str = ""
    nacos_mcp_group: str = "mcp-server"
    target_domains: list[str] = Field(default_factory=list)
    refresh_interval_seconds: float = 30.0
    service_suffix: str = "-mcp"
    registry_timeout_seconds: float = 10.0
    poller_enabled: bool = True

    # Completion service
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"
    deepseek_max_tokens: int = 2048
    deepseek_temperature: float = 0.7
    completion_timeout_seconds: float = 60.0

    # Data providers
    tool_call_timeout_seconds: float = 10.0

    # Conversation
    conversation_max_history: int = 10

    # HTTP surface
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(override=False)
        server_addr = os.getenv("NACOS_SERVER_ADDR", "http://localhost:8848").strip() or "http://localhost:8848"
        if "://" not in server_addr:
            server_addr = f"http://{server_addr}"
        return cls(
            nacos_server_addr=server_addr,
            nacos_namespace=os.getenv("NACOS_NAMESPACE", "").strip(),
            nacos_mcp_group=os.getenv("NACOS_MCP_GROUP", "mcp-server").strip() or "mcp-server",
            target_domains=_env_list("MCP_CLIENT_DOMAINS"),
            refresh_interval_seconds=max(1.0, float(os.getenv("MCP_CLIENT_REFRESH_INTERVAL_MS", "30000")) / 1000.0),
            service_suffix=os.getenv("MCP_SERVICE_SUFFIX", "-mcp"),
            registry_timeout_seconds=float(os.getenv("REGISTRY_TIMEOUT_SECONDS", "10")),
            poller_enabled=_env_bool("MCP_CLIENT_POLLER_ENABLED", True),
            deepseek_api_key=os.getenv("DEEPSEEK_API_KEY", "").strip(),
            deepseek_base_url=os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com").strip(),
            deepseek_model=os.getenv("DEEPSEEK_MODEL", "deepseek-chat").strip() or "deepseek-chat",
            deepseek_max_tokens=int(os.getenv("DEEPSEEK_MAX_TOKENS", "2048")),
            deepseek_temperature=float(os.getenv("DEEPSEEK_TEMPERATURE", "0.7")),
            completion_timeout_seconds=float(os.getenv("COMPLETION_TIMEOUT_SECONDS", "60")),
            tool_call_timeout_seconds=float(os.getenv("TOOL_CALL_TIMEOUT_SECONDS", "10")),
            conversation_max_history=max(1, int(os.getenv("CONVERSATION_MAX_HISTORY", "10"))),
            api_host=os.getenv("API_HOST", "0.0.0.0").strip() or "0.0.0.0",
            api_port=int(os.getenv("API_PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
