"""
Mock Analysis Provider
======================

Scripted provider for testing.

GUARANTEES:
- Same pattern kind → same scripted response
- Explicit failure modes can be triggered
- No external dependencies
"""

from __future__ import annotations
import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from ..contracts import PatternKind
from ..prompts import CanonicalPrompt
from .base import (
    AnalysisProvider,
    InvocationParams,
    ProviderErrorCode,
    ProviderResponse,
    ProviderVersion,
)


class MockProvider(AnalysisProvider):
    """
    Scripted mock provider for testing.

    Responses are looked up by pattern kind. A dict is serialized to JSON, a
    string is returned verbatim (useful for malformed-output tests).
    """

    def __init__(
        self,
        responses: Optional[Dict[PatternKind, Union[Dict[str, Any], str]]] = None,
        latency_ms: float = 0.0,
        failure_mode: Optional[ProviderErrorCode] = None,
        name: str = "mock",
        available: bool = True
    ):
        """
        Args:
            responses: Scripted content per pattern kind
            latency_ms: Simulated latency (awaited, so timeouts can be exercised)
            failure_mode: If set, all invocations fail with this error
            name: Registry name
            available: Reported availability
        """
        self._responses = dict(responses or {})
        self._latency_ms = latency_ms
        self._failure_mode = failure_mode
        self._name = name
        self._available = available
        self._version = ProviderVersion(
            provider_id=name,
            model_id="mock-scripted-v1",
            api_version="1.0.0",
        )
        self.calls: List[CanonicalPrompt] = []

    @property
    def provider_id(self) -> str:
        return self._name

    @property
    def available(self) -> bool:
        return self._available

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def get_version(self, speed_tier: str = "smart") -> ProviderVersion:
        return self._version

    async def invoke(
        self,
        prompt: CanonicalPrompt,
        params: InvocationParams
    ) -> ProviderResponse:
        invoked_at = datetime.now(timezone.utc)
        self.calls.append(prompt)

        if self._latency_ms:
            await asyncio.sleep(self._latency_ms / 1000.0)

        if self._failure_mode is not None:
            return ProviderResponse.failure(
                self._failure_mode,
                f"Mock provider configured to fail: {self._failure_mode.value}",
                provider_version=self._version,
                invoked_at=invoked_at,
                latency_ms=self._latency_ms,
            )

        scripted = self._responses.get(prompt.pattern_kind)
        if scripted is None:
            return ProviderResponse.failure(
                ProviderErrorCode.API_ERROR,
                f"No scripted response for {prompt.pattern_kind.value}",
                provider_version=self._version,
                invoked_at=invoked_at,
                latency_ms=self._latency_ms,
            )

        content = scripted if isinstance(scripted, str) else json.dumps(scripted, sort_keys=True)
        return ProviderResponse(
            success=True,
            content=content,
            provider_version=self._version,
            invoked_at=invoked_at,
            latency_ms=self._latency_ms,
        )
