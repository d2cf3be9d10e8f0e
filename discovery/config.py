"""
Configuration
=============

Dataclass configuration for every layer, plus the environment reader used
by the entry points.

Environment variables:
    AI_PROVIDER, OPENAI_API_KEY, ANTHROPIC_API_KEY, GROQ_API_KEY,
    ANALYSIS_CACHE_TTL, PROVIDER_TIMEOUT_SECONDS,
    WIKIDATA_ENDPOINT, WIKIDATA_CACHE_TTL,
    AKASHA_ENDPOINT, AKASHA_STORAGE_PATH,
    CHRONOSPHERE_SEED
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import logging
import os

from gateway.service import GatewayConfig
from preservation.contracts import PreservationConfig
from sources.contracts import DEFAULT_WIKIDATA_ENDPOINT, EventSourceConfig

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Discovery engine settings."""
    recent_batches: int = 5
    seed: Optional[int] = None
    preserve: bool = True
    symbolic_features: bool = True
    ghost_loop_detector: bool = True


@dataclass
class ChronosphereConfig:
    """Unified configuration for the whole system."""
    gateway: GatewayConfig = None
    sources: EventSourceConfig = None
    preservation: PreservationConfig = None
    engine: EngineConfig = None

    def __post_init__(self):
        self.gateway = self.gateway or GatewayConfig()
        self.sources = self.sources or EventSourceConfig()
        self.preservation = self.preservation or PreservationConfig()
        self.engine = self.engine or EngineConfig()

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> ChronosphereConfig:
        env = os.environ if environ is None else environ

        seed = _env_number(env, "CHRONOSPHERE_SEED", None, int)
        return ChronosphereConfig(
            gateway=GatewayConfig(
                active_provider=env.get("AI_PROVIDER") or "openai",
                openai_api_key=env.get("OPENAI_API_KEY") or None,
                anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
                groq_api_key=env.get("GROQ_API_KEY") or None,
                cache_ttl_seconds=_env_number(env, "ANALYSIS_CACHE_TTL", 3600.0, float),
                provider_timeout_seconds=_env_number(env, "PROVIDER_TIMEOUT_SECONDS", 30.0, float),
            ),
            sources=EventSourceConfig(
                endpoint=env.get("WIKIDATA_ENDPOINT") or DEFAULT_WIKIDATA_ENDPOINT,
                cache_ttl_seconds=_env_number(env, "WIKIDATA_CACHE_TTL", 3600.0, float),
            ),
            preservation=PreservationConfig(
                endpoint=env.get("AKASHA_ENDPOINT") or None,
                storage_path=env.get("AKASHA_STORAGE_PATH") or "./data/akasha",
            ),
            engine=EngineConfig(seed=seed),
        )


def _env_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default
