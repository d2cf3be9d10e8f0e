"""
Provider Tests
==============

Remote providers are exercised against httpx.MockTransport; no network.

INVARIANTS TESTED:
1. invoke() never raises; transport/status/envelope failures map to codes
2. Request shape per provider (headers, model per speed tier)
"""

import json
import random

import httpx
import pytest

from gateway.contracts import AnalysisRequest, PatternKind
from gateway.prompts import CanonicalPrompt
from gateway.providers.base import InvocationParams, ProviderErrorCode
from gateway.providers.heuristic import HeuristicProvider
from gateway.providers.mock import MockProvider
from gateway.providers.remote import (
    AnthropicProvider,
    GroqProvider,
    OpenAIProvider,
    RemoteProvider,
    build_remote_providers,
)
from gateway.schemas import parse_payload
from tests.fixtures import three_region_events


def make_prompt(kind: PatternKind = PatternKind.SYNCHRONICITY) -> CanonicalPrompt:
    return CanonicalPrompt.create(AnalysisRequest(kind, tuple(three_region_events())))


def openai_envelope(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


class TestOpenAIProvider:

    @pytest.mark.asyncio
    async def test_success_returns_raw_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=openai_envelope('{"ok": true}'))

        provider = OpenAIProvider("sk-test", transport=httpx.MockTransport(handler))
        response = await provider.invoke(make_prompt(), InvocationParams(speed_tier="fast"))

        assert response.success
        assert response.content == '{"ok": true}'
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-3.5-turbo"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert seen["body"]["temperature"] == 0.3
        assert response.provider_version.model_id == "gpt-3.5-turbo"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,code", [
        (429, ProviderErrorCode.RATE_LIMITED),
        (500, ProviderErrorCode.API_ERROR),
        (401, ProviderErrorCode.API_ERROR),
    ])
    async def test_error_status(self, status, code):
        transport = httpx.MockTransport(lambda request: httpx.Response(status, json={}))
        provider = OpenAIProvider("sk-test", transport=transport)

        response = await provider.invoke(make_prompt(), InvocationParams())

        assert not response.success
        assert response.error_code == code

    @pytest.mark.asyncio
    async def test_malformed_envelope(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
        provider = OpenAIProvider("sk-test", transport=transport)

        response = await provider.invoke(make_prompt(), InvocationParams())
        assert response.error_code == ProviderErrorCode.INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_non_json_envelope(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        provider = OpenAIProvider("sk-test", transport=transport)

        response = await provider.invoke(make_prompt(), InvocationParams())
        assert response.error_code == ProviderErrorCode.INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = OpenAIProvider("sk-test", transport=httpx.MockTransport(handler))
        response = await provider.invoke(make_prompt(), InvocationParams())
        assert response.error_code == ProviderErrorCode.NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = OpenAIProvider("sk-test", transport=httpx.MockTransport(handler))
        response = await provider.invoke(make_prompt(), InvocationParams())
        assert response.error_code == ProviderErrorCode.TIMEOUT

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            OpenAIProvider("")


class TestAnthropicProvider:

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"content": [{"text": '{"ok": 1}'}]})

        provider = AnthropicProvider("ak-test", transport=httpx.MockTransport(handler))
        response = await provider.invoke(make_prompt(), InvocationParams(speed_tier="balanced"))

        assert response.success and response.content == '{"ok": 1}'
        assert seen["headers"]["x-api-key"] == "ak-test"
        assert seen["headers"]["anthropic-version"] == "2023-06-01"
        assert seen["body"]["max_tokens"] == 2000
        assert seen["body"]["model"] == "claude-3-sonnet-20240229"


class TestGroqProvider:

    @pytest.mark.asyncio
    async def test_single_model_for_all_tiers(self):
        models = []

        def handler(request: httpx.Request) -> httpx.Response:
            models.append(json.loads(request.content)["model"])
            return httpx.Response(200, json=openai_envelope("{}"))

        provider = GroqProvider("gk-test", transport=httpx.MockTransport(handler))
        for tier in ("fast", "smart", "balanced"):
            await provider.invoke(make_prompt(), InvocationParams(speed_tier=tier))

        assert set(models) == {"mixtral-8x7b-32768"}


def test_build_remote_providers_skips_missing_keys():
    providers = build_remote_providers({"openai": "k", "anthropic": None, "groq": ""})
    assert [p.provider_id for p in providers] == ["openai"]

def test_remote_base_requires_vendor_hooks():
    with pytest.raises(TypeError):
        RemoteProvider("k")

    class HeadersOnly(RemoteProvider):
        def _headers(self):
            return {}

    with pytest.raises(TypeError):
        HeadersOnly("k")


class TestLocalProviders:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", list(PatternKind))
    async def test_heuristic_output_is_schema_valid(self, kind):
        provider = HeuristicProvider(random.Random(5))
        response = await provider.invoke(make_prompt(kind), InvocationParams())

        assert response.success
        parse_payload(kind, json.loads(response.content))
        assert not provider.available
        assert not provider.caches_results

    @pytest.mark.asyncio
    async def test_mock_without_script_fails_explicitly(self):
        provider = MockProvider({})
        response = await provider.invoke(make_prompt(), InvocationParams())

        assert not response.success
        assert response.error_code == ProviderErrorCode.API_ERROR
        assert provider.call_count == 1
