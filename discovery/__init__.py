"""
Discovery Package
=================

Pattern analyzers, the discovery engine (aggregator) and its thin HTTP surface.

DIRECTION OF DEPENDENCY:
========================
sources → discovery.contracts ← gateway ← discovery.analyzers ← discovery.engine

The engine imports the gateway, and the gateway imports these contracts, so
the engine is imported lazily here.
"""

from .contracts import (
    HistoricalEvent,
    Discovery,
    DiscoveryBatch,
    DiscoveryParameters,
    TimeRange,
)

__all__ = [
    'HistoricalEvent', 'Discovery', 'DiscoveryBatch', 'DiscoveryParameters', 'TimeRange',
]


def get_engine(config=None):
    """
    Build a discovery engine (lazy import to avoid circular dependencies).

    Usage:
        from discovery import get_engine
        engine = get_engine()
        batch = await engine.discover(DiscoveryParameters(), TimeRange(-500, -400))
    """
    from .engine import DiscoveryEngine
    return DiscoveryEngine.from_config(config)
