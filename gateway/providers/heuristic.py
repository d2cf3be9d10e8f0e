"""
Heuristic Provider
==================

Registry entry for the deterministic fallback heuristics, so "fallback" can
be selected as the active provider like any other.

Reported as not available (no real classifier behind it) and its results are
not cached, matching the gateway's treatment of fallback output.
"""

from __future__ import annotations
import random
import time
from datetime import datetime, timezone
from typing import Optional

from ..fallback import run_fallback
from ..prompts import CanonicalPrompt
from .base import (
    AnalysisProvider,
    InvocationParams,
    ProviderResponse,
    ProviderVersion,
)


FALLBACK_PROVIDER_ID = "fallback"


class HeuristicProvider(AnalysisProvider):
    """Runs the fallback heuristics over the prompt's events."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._version = ProviderVersion(
            provider_id=FALLBACK_PROVIDER_ID,
            model_id="heuristic-v1",
            api_version="1.0.0",
        )

    @property
    def provider_id(self) -> str:
        return FALLBACK_PROVIDER_ID

    @property
    def available(self) -> bool:
        return False

    @property
    def caches_results(self) -> bool:
        return False

    def get_version(self, speed_tier: str = "smart") -> ProviderVersion:
        return self._version

    async def invoke(
        self,
        prompt: CanonicalPrompt,
        params: InvocationParams
    ) -> ProviderResponse:
        invoked_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        payload = run_fallback(prompt.pattern_kind, prompt.events, self._rng)
        return ProviderResponse(
            success=True,
            content=payload.model_dump_json(by_alias=True),
            provider_version=self._version,
            invoked_at=invoked_at,
            latency_ms=(time.perf_counter() - start) * 1000,
        )
