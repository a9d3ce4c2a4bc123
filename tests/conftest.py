# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Shared test fixtures for the chatgate test suite.

This module provides fixtures for:
- A scripted upstream behind httpx.MockTransport
- A small deterministic model registry
- A FastAPI TestClient wired to the mock upstream
"""

import json
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from chatgate.main import app, get_upstream_client
from chatgate.registry import ModelRegistry, get_model_registry
from chatgate.settings import settings
from chatgate.upstream import UpstreamClient

UPSTREAM_URL = "https://upstream.test/v1/chat/completions"

TEST_ALIASES = {
    "glm": "zai-org/GLM-4.6",
    "deepseek": "deepseek-ai/DeepSeek-V3.2",
    "kimi": "moonshotai/Kimi-K2-Thinking",
}

COMPLETION = {
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "model": "deepseek-ai/DeepSeek-V3.2",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Hi!"},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
}


class MockUpstream:
    """Scripted upstream: returns a fixed response and records every request."""

    def __init__(self) -> None:
        self.status_code = 200
        self.json_body: Any = COMPLETION
        self.text_body: str | None = None
        self.exception: Exception | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        if self.text_body is not None:
            return httpx.Response(self.status_code, text=self.text_body)
        return httpx.Response(self.status_code, json=self.json_body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def last_payload(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def mock_upstream() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
def registry() -> ModelRegistry:
    return ModelRegistry(TEST_ALIASES, default_model="deepseek")


@pytest.fixture
def upstream_client(mock_upstream) -> UpstreamClient:
    return UpstreamClient(url=UPSTREAM_URL, timeout_s=5, transport=mock_upstream.transport())


@pytest.fixture
def gateway_settings(monkeypatch):
    """Deterministic settings for endpoint tests; restored by monkeypatch."""
    monkeypatch.setattr(settings.upstream, "api_key", "test-token")
    monkeypatch.setattr(settings.gateway, "max_tokens_default", 2048)
    monkeypatch.setattr(settings.gateway, "temperature_default", None)
    monkeypatch.setattr(settings.gateway, "response_shape", "completion")
    return settings


@pytest.fixture
def client(gateway_settings, registry, upstream_client):
    """TestClient with the mock upstream and the test registry injected."""
    app.dependency_overrides[get_upstream_client] = lambda: upstream_client
    app.dependency_overrides[get_model_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
