"""
Remote Classifier Providers
===========================

HTTP providers for hosted chat-completion APIs (OpenAI, Anthropic, Groq).

GUARANTEES:
- invoke() returns ProviderResponse, never raises
- Transport, status and envelope failures map to explicit error codes
- The raw classifier text is returned untouched; JSON/schema checks
  belong to the gateway
"""

from __future__ import annotations
from abc import abstractmethod
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx

from ..prompts import CanonicalPrompt, SYSTEM_PROMPT
from .base import (
    AnalysisProvider,
    InvocationParams,
    ProviderErrorCode,
    ProviderResponse,
    ProviderVersion,
)

logger = logging.getLogger(__name__)


class RemoteProvider(AnalysisProvider):
    """
    Shared HTTP plumbing for remote providers.

    Subclasses declare the endpoint, the model per speed tier and how to
    build the request body and pull text out of the response envelope.
    """

    name = "remote"
    endpoint = ""
    api_version = "v1"
    models: Dict[str, str] = {}
    default_tier = "smart"

    def __init__(
        self,
        api_key: str,
        endpoint: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            api_key: Provider API key
            endpoint: Override for the API URL
            client: Shared AsyncClient; a per-call client is used when absent
            transport: Transport for per-call clients (tests use MockTransport)
        """
        if not api_key:
            raise ValueError(f"{self.name} provider requires an API key")
        self._api_key = api_key
        self._endpoint = endpoint or self.endpoint
        self._client = client
        self._transport = transport

    @property
    def provider_id(self) -> str:
        return self.name

    def model_for(self, speed_tier: str) -> str:
        return self.models.get(speed_tier) or self.models[self.default_tier]

    def get_version(self, speed_tier: str = "smart") -> ProviderVersion:
        return ProviderVersion(
            provider_id=self.name,
            model_id=self.model_for(speed_tier),
            api_version=self.api_version,
        )

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """Auth and version headers."""

    @abstractmethod
    def _body(self, prompt: CanonicalPrompt, params: InvocationParams) -> Dict[str, Any]:
        """Vendor request body for one prompt."""

    @abstractmethod
    def _extract_text(self, data: Any) -> str:
        """Classifier text from the decoded envelope; KeyError/IndexError/TypeError when malformed."""

    async def _post(self, body: Dict[str, Any], timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(
                self._endpoint, json=body, headers=self._headers(), timeout=timeout
            )
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            return await client.post(self._endpoint, json=body, headers=self._headers())

    async def invoke(
        self,
        prompt: CanonicalPrompt,
        params: InvocationParams
    ) -> ProviderResponse:
        invoked_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        version = self.get_version(params.speed_tier)

        def elapsed() -> float:
            return (time.perf_counter() - start) * 1000

        def fail(code: ProviderErrorCode, message: str) -> ProviderResponse:
            logger.debug("%s invocation failed: %s (%s)", self.name, code.value, message)
            return ProviderResponse.failure(
                code, message, provider_version=version,
                invoked_at=invoked_at, latency_ms=elapsed()
            )

        try:
            response = await self._post(self._body(prompt, params), params.timeout_seconds)
        except httpx.TimeoutException:
            return fail(ProviderErrorCode.TIMEOUT, f"Timed out after {params.timeout_seconds}s")
        except httpx.HTTPError as e:
            return fail(ProviderErrorCode.NETWORK_ERROR, str(e) or type(e).__name__)

        if response.status_code == 429:
            return fail(ProviderErrorCode.RATE_LIMITED, "HTTP 429")
        if not 200 <= response.status_code < 300:
            return fail(ProviderErrorCode.API_ERROR, f"{self.name} API error: {response.status_code}")

        try:
            text = self._extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            return fail(ProviderErrorCode.INVALID_RESPONSE, f"Malformed response envelope: {e}")

        if not isinstance(text, str):
            return fail(ProviderErrorCode.INVALID_RESPONSE, "Response text is not a string")

        return ProviderResponse(
            success=True,
            content=text,
            provider_version=version,
            invoked_at=invoked_at,
            latency_ms=elapsed(),
        )

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()


class OpenAIProvider(RemoteProvider):
    """OpenAI chat completions in JSON mode."""

    name = "openai"
    endpoint = "https://api.openai.com/v1/chat/completions"
    models = {
        "fast": "gpt-3.5-turbo",
        "smart": "gpt-4-turbo-preview",
        "balanced": "gpt-4-turbo-preview",
    }

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _body(self, prompt: CanonicalPrompt, params: InvocationParams) -> Dict[str, Any]:
        return {
            "model": self.model_for(params.speed_tier),
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt.prompt_text},
            ],
            "temperature": params.temperature,
            "response_format": {"type": "json_object"},
        }

    def _extract_text(self, data: Any) -> str:
        return data["choices"][0]["message"]["content"]


class AnthropicProvider(RemoteProvider):
    """Anthropic messages API."""

    name = "anthropic"
    endpoint = "https://api.anthropic.com/v1/messages"
    api_version = "2023-06-01"
    models = {
        "fast": "claude-3-haiku-20240307",
        "smart": "claude-3-opus-20240229",
        "balanced": "claude-3-sonnet-20240229",
    }

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self._api_key,
            "anthropic-version": self.api_version,
        }

    def _body(self, prompt: CanonicalPrompt, params: InvocationParams) -> Dict[str, Any]:
        return {
            "model": self.model_for(params.speed_tier),
            "messages": [
                {
                    "role": "user",
                    "content": f"You are an expert historian. {prompt.prompt_text}\n\nRespond with valid JSON only.",
                },
            ],
            "max_tokens": params.max_tokens,
        }

    def _extract_text(self, data: Any) -> str:
        return data["content"][0]["text"]


class GroqProvider(OpenAIProvider):
    """Groq OpenAI-compatible endpoint; one model for every tier."""

    name = "groq"
    endpoint = "https://api.groq.com/openai/v1/chat/completions"
    models = {
        "fast": "mixtral-8x7b-32768",
        "smart": "mixtral-8x7b-32768",
        "balanced": "mixtral-8x7b-32768",
    }
    default_tier = "fast"

    def _body(self, prompt: CanonicalPrompt, params: InvocationParams) -> Dict[str, Any]:
        return {
            "model": self.model_for(params.speed_tier),
            "messages": [
                {"role": "system", "content": "You are an expert historian. Always respond with valid JSON."},
                {"role": "user", "content": prompt.prompt_text},
            ],
            "temperature": params.temperature,
        }


REMOTE_PROVIDERS: Dict[str, type] = {
    OpenAIProvider.name: OpenAIProvider,
    AnthropicProvider.name: AnthropicProvider,
    GroqProvider.name: GroqProvider,
}


def build_remote_providers(
    api_keys: Dict[str, Optional[str]],
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Tuple[RemoteProvider, ...]:
    """Instantiate each remote provider that has an API key configured."""
    providers = []
    for name, cls in REMOTE_PROVIDERS.items():
        key = api_keys.get(name)
        if key:
            providers.append(cls(api_key=key, transport=transport))
            logger.info("%s provider configured", name)
    return tuple(providers)
