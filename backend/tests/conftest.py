"""
Shared fixtures: the app client, a stand-in model provider and sample data.
"""
import json
import os

# Read by get_settings() when main is first imported
os.environ.pop("OPENROUTER_API_KEY", None)
os.environ["RATE_LIMIT_PER_MINUTE"] = "1000"

import httpx
import pytest
from fastapi.testclient import TestClient

from filesense.core.rate_limit import limiter
from filesense.services.llm_client import OpenRouterClient
from main import app
from filesense.api.routes import get_llm_client


SAMPLE_RESULT = {
    "analysisTitle": "Ventas por ciudad",
    "summary": "Lima concentra la mayor parte de las ventas.",
    "kpis": [
        {"title": "Ventas totales", "value": 1500, "subValue": "+12% vs. mes anterior", "trend": "up", "color": "green"},
        {"title": "Devoluciones", "value": "4%", "subValue": "estable", "trend": "neutral", "color": "blue"},
    ],
    "charts": [
        {
            "title": "Ventas por ciudad",
            "type": "bar",
            "description": "Lima lidera.",
            "data": [
                {"label": "Lima", "value": 100},
                {"label": "Cusco", "value": 50},
                {"label": "Arequipa", "value": 2},
            ],
        }
    ],
    "recommendations": [
        {"title": "Expandir en Cusco", "text": "Abrir una segunda tienda.", "impact": "high"},
        {"title": "Revisar precios", "text": "Comparar con la competencia.", "impact": "medium"},
    ],
}

SAMPLE_ROWS = [
    {"age": "30", "city": "Lima"},
    {"age": "40", "city": "Lima"},
    {"age": "", "city": "Cusco"},
]


def chat_completion(content):
    """Provider body carrying content as the first choice's message."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class FakeProvider:
    """Records requests and answers each one with the configured response."""

    def __init__(self, status_code=200, body=None, content=None, raw=None, exc=None):
        if content is not None:
            body = chat_completion(content)
        self.status_code = status_code
        self.body = body
        self.raw = raw
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_payload(self):
        return json.loads(self.requests[-1].content)

    def client(self, **kwargs) -> OpenRouterClient:
        return OpenRouterClient(api_key="sk-test-key", transport=httpx.MockTransport(self), **kwargs)


@pytest.fixture
def client():
    """Create a test client."""
    limiter.reset()
    return TestClient(app)


@pytest.fixture
def sample_result():
    return json.loads(json.dumps(SAMPLE_RESULT))


@pytest.fixture
def sample_rows():
    return [dict(row) for row in SAMPLE_ROWS]


@pytest.fixture
def use_provider():
    """
    Route the API's model calls to a FakeProvider.

    Usage:
        provider = use_provider(content=json.dumps({...}))
    """
    def _install(**kwargs) -> FakeProvider:
        provider = FakeProvider(**kwargs)
        app.dependency_overrides[get_llm_client] = lambda: provider.client()
        return provider

    yield _install
    app.dependency_overrides.pop(get_llm_client, None)
