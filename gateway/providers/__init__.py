"""
Analysis Providers
==================

Pluggable classifier backends behind one async invoke() capability.
"""

from .base import (
    AnalysisProvider,
    InvocationParams,
    ProviderErrorCode,
    ProviderResponse,
    ProviderVersion,
)
from .heuristic import FALLBACK_PROVIDER_ID, HeuristicProvider
from .mock import MockProvider
from .remote import (
    AnthropicProvider,
    GroqProvider,
    OpenAIProvider,
    RemoteProvider,
    build_remote_providers,
)

__all__ = [
    'AnalysisProvider', 'InvocationParams', 'ProviderErrorCode', 'ProviderResponse',
    'ProviderVersion', 'FALLBACK_PROVIDER_ID', 'HeuristicProvider', 'MockProvider',
    'AnthropicProvider', 'GroqProvider', 'OpenAIProvider', 'RemoteProvider',
    'build_remote_providers',
]
