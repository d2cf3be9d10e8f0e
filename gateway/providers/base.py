"""
Analysis Provider Abstraction Layer
===================================

Abstract interface for pattern-classification providers (OpenAI, Anthropic,
Groq, heuristic fallback, mock).

CONTRACT:
- One invoke() per pattern question; no state carried between calls
- invoke() never raises; the gateway owns timeouts, validation and fallback
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from ..prompts import CanonicalPrompt


class ProviderErrorCode(Enum):
    """Explicit failure codes for provider invocations."""
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    INVALID_RESPONSE = "invalid_response"
    API_ERROR = "api_error"
    NETWORK_ERROR = "network_error"
    SCHEMA_MISMATCH = "schema_mismatch"


@dataclass(frozen=True)
class ProviderVersion:
    """Immutable provider version info."""
    provider_id: str       # "openai" | "anthropic" | "groq" | "fallback" | "mock"
    model_id: str          # model resolved for the requested speed tier
    api_version: str


@dataclass(frozen=True)
class ProviderResponse:
    """
    Immutable response from a provider.

    success=True carries content; success=False carries error_code.
    content is the raw JSON text of the classifier answer.
    """
    success: bool
    content: Optional[str] = None

    error_code: Optional[ProviderErrorCode] = None
    error_message: Optional[str] = None

    provider_version: Optional[ProviderVersion] = None
    invoked_at: Optional[datetime] = None
    latency_ms: float = 0.0

    def __post_init__(self):
        if self.success and self.content is None:
            raise ValueError("Successful response must have content")
        if not self.success and self.error_code is None:
            raise ValueError("Failed response must have error_code")

    @staticmethod
    def failure(
        error_code: ProviderErrorCode,
        message: str,
        provider_version: Optional[ProviderVersion] = None,
        invoked_at: Optional[datetime] = None,
        latency_ms: float = 0.0
    ) -> ProviderResponse:
        return ProviderResponse(
            success=False,
            error_code=error_code,
            error_message=message,
            provider_version=provider_version,
            invoked_at=invoked_at,
            latency_ms=latency_ms,
        )


@dataclass(frozen=True)
class InvocationParams:
    """Frozen invocation parameters."""
    speed_tier: str = "smart"
    temperature: float = 0.3
    max_tokens: int = 2000
    timeout_seconds: float = 30.0


class AnalysisProvider(ABC):
    """
    Abstract analysis provider interface.

    A failed call comes back as ProviderResponse.failure with one of:
    - TIMEOUT: no answer within params.timeout_seconds
    - RATE_LIMITED: vendor answered HTTP 429
    - INVALID_RESPONSE: malformed envelope or non-JSON answer
    - API_ERROR: any other non-2xx vendor status
    - NETWORK_ERROR: transport failure before a status arrived
    - SCHEMA_MISMATCH: JSON answer of the wrong shape (set by the gateway)
    """

    @abstractmethod
    async def invoke(
        self,
        prompt: CanonicalPrompt,
        params: InvocationParams
    ) -> ProviderResponse:
        """
        Ask the classifier one pattern question.

        Returns the raw answer text on success; never raises.
        """

    @abstractmethod
    def get_version(self, speed_tier: str = "smart") -> ProviderVersion:
        """Get provider version info."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique provider identifier (registry name)."""

    @property
    def available(self) -> bool:
        """Whether this provider is backed by a real classifier."""
        return True

    @property
    def caches_results(self) -> bool:
        """Whether the gateway may cache this provider's successful results."""
        return True

    async def aclose(self):
        """Release transport resources. No-op by default."""
