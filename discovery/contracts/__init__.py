"""
Discovery Contracts Package

Immutable types shared by sources, the gateway, analyzers and the engine.
"""

from .events import (
    EventType,
    Coordinates,
    HistoricalEvent,
    TimeRange,
    EventQuery,
)
from .discoveries import (
    DiscoveryKind,
    QualityBand,
    Discovery,
    DiscoveryParameters,
    DiscoveryMetrics,
    DiscoveryBatch,
    clamp_unit,
    random_suffix,
)

__all__ = [
    'EventType', 'Coordinates', 'HistoricalEvent', 'TimeRange', 'EventQuery',
    'DiscoveryKind', 'QualityBand', 'Discovery', 'DiscoveryParameters',
    'DiscoveryMetrics', 'DiscoveryBatch', 'clamp_unit', 'random_suffix',
]
