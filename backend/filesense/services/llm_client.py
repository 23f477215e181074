"""
Client for the hosted model (OpenRouter chat-completions API).

Every failure is raised as one of the AnalysisError subclasses so the API
layer can turn it into a status code. Nothing is retried.
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx

from filesense.core.config import Settings
from filesense.core.errors import (
    EmptyResponseError,
    ResponseParseError,
    UpstreamError,
    UpstreamTimeoutError,
)
from filesense.core.performance import track_performance
from filesense.services.prompt import build_chat_payload

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """Thin async wrapper around POST {base_url}/chat/completions."""

    def __init__(
        self,
        api_key: str,
        model: str = "google/gemini-2.0-flash-001",
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "http://localhost:3000",
        title: str = "FileSense",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.referer = referer
        self.title = title
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "OpenRouterClient":
        return cls(
            api_key=settings.openrouter_api_key,
            model=settings.openrouter_model,
            base_url=settings.openrouter_base_url,
            referer=settings.openrouter_referer,
            title=settings.app_title,
            timeout=settings.upstream_timeout_seconds,
            transport=transport,
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
        }

    async def _post(self, payload: Dict[str, Any], language: Optional[str]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self.headers,
                    json=payload,
                )
        except httpx.TimeoutException as e:
            logger.error(f"Model request timed out after {self.timeout}s: {e}")
            raise UpstreamTimeoutError(language=language) from e
        except httpx.HTTPError as e:
            logger.error(f"Model request failed: {e}")
            raise UpstreamError(language=language) from e

    @track_performance("llm_request")
    async def complete_json(self, prompt: str, language: Optional[str] = None) -> Any:
        """
        Send prompt and return the model's reply parsed as JSON.

        The parsed value is returned as-is; its shape is not checked here.

        Raises:
            UpstreamError: non-success status (carrying the provider's status
                code and error message) or transport failure
            EmptyResponseError: success status but no message content
            ResponseParseError: message content is not valid JSON
        """
        response = await self._post(build_chat_payload(prompt, self.model), language)

        try:
            result = response.json()
        except ValueError:
            result = None

        if not response.is_success:
            logger.error(
                f"Model provider returned {response.status_code}: {response.text[:500]}"
            )
            message = _provider_error_message(result)
            raise UpstreamError(message, status_code=response.status_code, language=language)

        content = _message_content(result)
        if content is None and _provider_error_message(result):
            # error payload delivered with a 200
            logger.error(f"Model provider returned an error payload: {response.text[:500]}")
            raise UpstreamError(
                _provider_error_message(result),
                status_code=_provider_error_status(result),
                language=language,
            )
        logger.debug(f"Model raw content: {content[:500] if content else content!r}")

        if not content:
            raise EmptyResponseError(language=language)

        try:
            return json.loads(content)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Model content is not valid JSON: {e}")
            raise ResponseParseError(language=language) from e


def _provider_error_message(result: Any) -> Optional[str]:
    if isinstance(result, dict):
        error = result.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return None


def _provider_error_status(result: Any) -> int:
    code = result["error"].get("code")
    if isinstance(code, int) and 400 <= code <= 599:
        return code
    return UpstreamError.status_code


def _message_content(result: Any) -> Optional[str]:
    """choices[0].message.content, or None when any step is missing."""
    if not isinstance(result, dict):
        return None
    choices = result.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return None
    return message.get("content")
