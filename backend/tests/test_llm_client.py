"""
Tests for the OpenRouter client, with httpx.MockTransport standing in for the provider.
"""
import json

import httpx
import pytest

from conftest import FakeProvider, SAMPLE_RESULT
from filesense.core.config import Settings
from filesense.core.errors import (
    EmptyResponseError,
    ResponseParseError,
    UpstreamError,
    UpstreamTimeoutError,
)
from filesense.core.performance import PerformanceMonitor
from filesense.services.llm_client import OpenRouterClient


@pytest.mark.asyncio
@pytest.mark.unit
async def test_complete_json_returns_parsed_content():
    provider = FakeProvider(content=json.dumps(SAMPLE_RESULT))

    result = await provider.client().complete_json("prompt text")

    assert result == SAMPLE_RESULT


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_carries_headers_and_payload():
    provider = FakeProvider(content="{}")
    client = provider.client(model="google/gemini-2.0-flash-001", referer="https://filesense.app", title="FileSense")

    await client.complete_json("prompt text")

    request = provider.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test-key"
    assert request.headers["HTTP-Referer"] == "https://filesense.app"
    assert request.headers["X-Title"] == "FileSense"

    payload = provider.last_payload
    assert payload["model"] == "google/gemini-2.0-flash-001"
    assert payload["messages"][1] == {"role": "user", "content": "prompt text"}
    assert payload["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reply_shape_is_not_validated():
    """Any JSON value comes back as-is."""
    provider = FakeProvider(content='[1, 2, 3]')
    assert await provider.client().complete_json("p") == [1, 2, 3]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_provider_error_status_and_message_propagate():
    provider = FakeProvider(status_code=401, body={"error": {"message": "No auth credentials found", "code": 401}})

    with pytest.raises(UpstreamError) as exc_info:
        await provider.client().complete_json("p")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "No auth credentials found"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_provider_error_without_message_uses_localized_default():
    provider = FakeProvider(status_code=503, raw=b"Service Unavailable")

    with pytest.raises(UpstreamError) as exc_info:
        await provider.client().complete_json("p", language="English")

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "OpenRouter error"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_error_payload_with_success_status():
    provider = FakeProvider(body={"error": {"message": "Rate limited upstream", "code": 429}})

    with pytest.raises(UpstreamError) as exc_info:
        await provider.client().complete_json("p")

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Rate limited upstream"


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("body", [
    {"choices": []},
    {"choices": [{"message": {"content": ""}}]},
    {"choices": [{"message": {"content": None}}]},
    {"choices": [{}]},
    {},
])
async def test_missing_content_is_empty_response(body):
    provider = FakeProvider(body=body)

    with pytest.raises(EmptyResponseError) as exc_info:
        await provider.client().complete_json("p")

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Respuesta vacía del modelo."


@pytest.mark.asyncio
@pytest.mark.unit
async def test_non_json_content_is_parse_error():
    provider = FakeProvider(content="```json\n{not json}\n```")

    with pytest.raises(ResponseParseError) as exc_info:
        await provider.client().complete_json("p", language="English")

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Error analyzing data."


@pytest.mark.asyncio
@pytest.mark.unit
async def test_timeout_maps_to_upstream_timeout():
    provider = FakeProvider(exc=httpx.ReadTimeout("timed out"))

    with pytest.raises(UpstreamTimeoutError) as exc_info:
        await provider.client().complete_json("p")

    assert exc_info.value.status_code == 504


@pytest.mark.asyncio
@pytest.mark.unit
async def test_connection_failure_maps_to_upstream_error():
    provider = FakeProvider(exc=httpx.ConnectError("connection refused"))

    with pytest.raises(UpstreamError) as exc_info:
        await provider.client().complete_json("p")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
@pytest.mark.unit
async def test_request_is_timed():
    PerformanceMonitor.clear_metrics()
    provider = FakeProvider(content="{}")

    await provider.client().complete_json("p")

    assert PerformanceMonitor.get_stats("llm_request")["count"] == 1


@pytest.mark.unit
def test_from_settings():
    settings = Settings(
        openrouter_api_key="sk-abc",
        openrouter_model="openai/gpt-4o-mini",
        openrouter_base_url="https://example.test/api/v1/",
        upstream_timeout_seconds=5,
    )
    client = OpenRouterClient.from_settings(settings)

    assert client.model == "openai/gpt-4o-mini"
    assert client.base_url == "https://example.test/api/v1"
    assert client.timeout == 5
    assert client.headers["Authorization"] == "Bearer sk-abc"
    assert client.headers["X-Title"] == "FileSense"
