"""
AI Analysis Gateway
===================

Provider abstraction, response caching and deterministic fallback for the
four classifier kinds (synchronicity, network, collapse, anomaly).

Usage:
    from gateway import AnalysisGateway, PatternKind
    gateway = AnalysisGateway.from_config(config)
    result = await gateway.analyze(events, PatternKind.NETWORK)
"""

from .cache import AnalysisCache
from .contracts import (
    AnalysisRequest,
    AnalysisResult,
    PatternKind,
    ProviderStatus,
    SpeedTier,
)
from .service import AnalysisGateway, GatewayConfig

__all__ = [
    'AnalysisCache', 'AnalysisRequest', 'AnalysisResult', 'PatternKind',
    'ProviderStatus', 'SpeedTier', 'AnalysisGateway', 'GatewayConfig',
]
