"""
Model Layer — Remote chat-completion client.

Responsibility:
- Call an OpenAI-compatible /v1/chat/completions endpoint (DeepSeek by default)
- Apply the generation policy (model, temperature, max tokens, timeout)
- Return the first choice's text, or None when the provider returned no choices

This is the ONLY place where the LLM is called. No retries: the orchestrator
reports a failed call to the user instead.
"""

import logging
from typing import Any, Protocol

import httpx

from observability.logger import Observability
from shared.models import ModelPolicy

logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """The completion endpoint could not be reached or answered with an error."""


class CompletionClientProtocol(Protocol):
    def complete(
        self,
        messages: list[dict[str, str]],
        policy: ModelPolicy,
        session_id: str | None = None,
    ) -> str | None:
        ...


class CompletionClient:
    """Synchronous OpenAI-compatible chat-completion client."""

    def __init__(
        self,
        base_url: str = "https://api.deepseek.com",
        api_key: str = "",
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        else:
            logger.warning("No completion API key configured; requests will be unauthenticated")

        # Persistent client with connection pooling
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=60.0,  # default, overridden by policy
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            headers=headers,
            transport=transport,
        )
        self.observability = Observability("completion_client")

    def complete(
        self,
        messages: list[dict[str, str]],
        policy: ModelPolicy,
        session_id: str | None = None,
    ) -> str | None:
        obs = self.observability.for_session(session_id)
        with obs.measure(
            "chat_completion",
            {"model": policy.model_name, "message_count": len(messages)},
        ) as metric:
            text = self._call_chat(messages, policy)
            metric["empty"] = text is None
        return text

    def _call_chat(self, messages: list[dict[str, str]], policy: ModelPolicy) -> str | None:
        payload: dict[str, Any] = {
            "model": policy.model_name,
            "messages": messages,
            "temperature": policy.temperature,
            "max_tokens": policy.max_tokens,
            "stream": False,
        }
        logger.debug("Sending chat completion request with %d messages", len(messages))
        try:
            response = self._client.post(
                "/v1/chat/completions",
                json=payload,
                timeout=policy.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise CompletionError(f"Completion request failed: {e}") from e
        except ValueError as e:
            raise CompletionError("Completion endpoint returned invalid JSON") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            logger.warning("Completion response has no choices")
            return None
        message = choices[0].get("message") or {}
        content = message.get("content")
        if content is None:
            return None
        return str(content)

    def close(self):
        """Close persistent connections."""
        self._client.close()
