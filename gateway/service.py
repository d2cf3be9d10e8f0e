"""
AI Analysis Gateway
===================

Single entry point for pattern classification: cache, active provider,
deterministic fallback.

GUARANTEES:
===========
1. analyze() never raises; every failure path ends in a fallback result
2. A live cache entry is returned without invoking any provider
3. Provider calls carry an explicit timeout
4. Fallback results are never cached
5. switch_provider() is a single reference swap; in-flight calls finish
   against the provider they captured
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union
import asyncio
import json
import logging
import random

import httpx
from pydantic import ValidationError

from discovery.contracts.events import HistoricalEvent
from .cache import AnalysisCache, Clock
from .contracts import (
    AnalysisRequest,
    AnalysisResult,
    PatternKind,
    ProviderStatus,
    SpeedTier,
)
from .fallback import run_fallback
from .prompts import CanonicalPrompt
from .providers.base import (
    AnalysisProvider,
    InvocationParams,
    ProviderErrorCode,
    ProviderResponse,
)
from .providers.heuristic import FALLBACK_PROVIDER_ID, HeuristicProvider
from .providers.remote import build_remote_providers
from .schemas import parse_payload

logger = logging.getLogger(__name__)


@dataclass
class GatewayConfig:
    """Configuration for the analysis gateway."""
    active_provider: str = "openai"
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    cache_ttl_seconds: float = 3600.0
    provider_timeout_seconds: float = 30.0
    single_flight: bool = True


class AnalysisGateway:
    """
    Provider registry + result cache + fallback substitution.

    Clock, rng, TTL and the provider registry are injected; nothing here is
    module-level state. The "fallback" heuristic provider is always
    registered.
    """

    def __init__(
        self,
        providers: Iterable[AnalysisProvider] = (),
        active_provider: str = FALLBACK_PROVIDER_ID,
        cache: Optional[AnalysisCache] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        ttl_seconds: float = 3600.0,
        timeout_seconds: float = 30.0,
        single_flight: bool = True
    ):
        self._rng = rng or random.Random()
        self._clock = clock or datetime.now
        self._cache = cache if cache is not None else AnalysisCache(ttl_seconds, clock=self._clock)
        self._timeout = timeout_seconds
        self._single_flight = single_flight
        self._inflight: Dict[str, asyncio.Future] = {}

        self._providers: Dict[str, AnalysisProvider] = {}
        for provider in providers:
            self._providers[provider.provider_id] = provider
        if FALLBACK_PROVIDER_ID not in self._providers:
            self._providers[FALLBACK_PROVIDER_ID] = HeuristicProvider(self._rng)

        if active_provider not in self._providers:
            logger.warning(
                "Provider %r is not configured, using %s", active_provider, FALLBACK_PROVIDER_ID
            )
            active_provider = FALLBACK_PROVIDER_ID
        self._active = active_provider
        logger.info("Analysis gateway active provider: %s", self._active)

    @staticmethod
    def from_config(
        config: Optional[GatewayConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> AnalysisGateway:
        """Build a gateway with every remote provider that has an API key."""
        config = config or GatewayConfig()
        providers = build_remote_providers(
            {
                "openai": config.openai_api_key,
                "anthropic": config.anthropic_api_key,
                "groq": config.groq_api_key,
            },
            transport=transport,
        )
        return AnalysisGateway(
            providers=providers,
            active_provider=config.active_provider,
            clock=clock,
            rng=rng,
            ttl_seconds=config.cache_ttl_seconds,
            timeout_seconds=config.provider_timeout_seconds,
            single_flight=config.single_flight,
        )

    # =========================================================================
    # REGISTRY
    # =========================================================================

    @property
    def active_provider(self) -> str:
        return self._active

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    def provider_names(self) -> List[str]:
        return list(self._providers)

    def switch_provider(self, name: str) -> bool:
        """Make name the active provider. False (and no change) if unknown."""
        if name not in self._providers:
            logger.warning("Cannot switch to unknown provider %r", name)
            return False
        self._active = name
        logger.info("Switched to %s provider", name)
        return True

    def get_provider_status(self) -> Dict[str, ProviderStatus]:
        return {
            name: ProviderStatus(available=provider.available, active=name == self._active)
            for name, provider in self._providers.items()
        }

    # =========================================================================
    # ANALYSIS
    # =========================================================================

    async def analyze(
        self,
        events: Sequence[HistoricalEvent],
        pattern_kind: Union[PatternKind, str],
        speed_tier: Union[SpeedTier, str] = SpeedTier.SMART
    ) -> AnalysisResult:
        """
        Classify events for pattern_kind.

        Never raises: provider failures of any kind resolve to the
        deterministic fallback for that kind.
        """
        request = AnalysisRequest(
            pattern_kind=PatternKind(pattern_kind),
            events=tuple(events),
            speed_tier=SpeedTier(speed_tier),
        )

        cached = self._cache.get(request.fingerprint)
        if cached is not None:
            logger.debug("Returning cached %s analysis", request.pattern_kind.value)
            return cached

        provider = self._providers[self._active]

        if not self._single_flight:
            return await self._resolve(request, provider)

        key = f"{provider.provider_id}:{request.fingerprint}"
        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._resolve(request, provider))
            self._inflight[key] = pending
            pending.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            logger.debug("Joining in-flight %s analysis", request.pattern_kind.value)

        return await asyncio.shield(pending)

    async def _resolve(self, request: AnalysisRequest, provider: AnalysisProvider) -> AnalysisResult:
        prompt = CanonicalPrompt.create(request)
        params = InvocationParams(
            speed_tier=request.speed_tier.value,
            timeout_seconds=self._timeout,
        )

        logger.debug("Using %s for %s analysis", provider.provider_id, request.pattern_kind.value)
        response = await self._invoke(provider, prompt, params)

        if response.success:
            try:
                payload = parse_payload(request.pattern_kind, json.loads(response.content))
            except json.JSONDecodeError as e:
                response = ProviderResponse.failure(
                    ProviderErrorCode.INVALID_RESPONSE, f"Non-JSON content: {e}"
                )
            except ValidationError as e:
                response = ProviderResponse.failure(
                    ProviderErrorCode.SCHEMA_MISMATCH, f"{e.error_count()} schema error(s)"
                )
            else:
                result = AnalysisResult(
                    pattern_kind=request.pattern_kind,
                    payload=payload,
                    confidence=payload.quality,
                    provider_id=provider.provider_id,
                )
                if provider.caches_results:
                    self._cache.put(request.fingerprint, result)
                return result

        logger.warning(
            "%s failed for %s analysis (%s: %s), using fallback",
            provider.provider_id,
            request.pattern_kind.value,
            response.error_code.value,
            response.error_message,
        )
        return self._fallback(request)

    async def _invoke(
        self,
        provider: AnalysisProvider,
        prompt: CanonicalPrompt,
        params: InvocationParams
    ) -> ProviderResponse:
        try:
            return await asyncio.wait_for(provider.invoke(prompt, params), timeout=self._timeout)
        except asyncio.TimeoutError:
            return ProviderResponse.failure(
                ProviderErrorCode.TIMEOUT, f"No response within {self._timeout}s"
            )
        except Exception as e:
            # Contract violation: providers report failures in ProviderResponse
            logger.exception("Provider %s raised during invoke", provider.provider_id)
            return ProviderResponse.failure(ProviderErrorCode.API_ERROR, str(e))

    def _fallback(self, request: AnalysisRequest) -> AnalysisResult:
        payload = run_fallback(request.pattern_kind, request.events, self._rng)
        return AnalysisResult(
            pattern_kind=request.pattern_kind,
            payload=payload,
            confidence=payload.quality,
            provider_id=FALLBACK_PROVIDER_ID,
        )

    async def aclose(self):
        for provider in self._providers.values():
            await provider.aclose()
