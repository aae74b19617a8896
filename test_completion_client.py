from __future__ import annotations

import json

import httpx
import pytest

from models.completion_client import CompletionClient, CompletionError
from shared.models import ModelPolicy

POLICY = ModelPolicy(model_name="deepseek-chat", temperature=0.2, max_tokens=512, timeout_seconds=5.0)


def test_complete_posts_openai_payload_with_bearer_key():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "你好"}}]})

    client = CompletionClient(base_url="https://api.example.com/", api_key="sk-test", transport=httpx.MockTransport(handler))
    try:
        text = client.complete([{"role": "user", "content": "hi"}], POLICY, session_id="s1")
    finally:
        client.close()

    assert text == "你好"
    request = captured[0]
    assert request.url == "https://api.example.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    payload = json.loads(request.content)
    assert payload["model"] == "deepseek-chat"
    assert payload["max_tokens"] == 512
    assert payload["temperature"] == 0.2
    assert payload["messages"] == [{"role": "user", "content": "hi"}]


def test_no_choices_returns_none():
    client = CompletionClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})))
    try:
        assert client.complete([{"role": "user", "content": "hi"}], POLICY) is None
    finally:
        client.close()


def test_http_error_raises_completion_error():
    client = CompletionClient(transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "bad key"})))
    try:
        with pytest.raises(CompletionError):
            client.complete([{"role": "user", "content": "hi"}], POLICY)
    finally:
        client.close()
