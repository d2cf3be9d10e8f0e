"""
Pattern Analyzers
=================

Five independent analyzers, run concurrently by the discovery engine.
"""

from .base import EventIndex, PatternAnalyzer
from .synchronicity import SynchronicityAnalyzer
from .network import NetworkAnalyzer
from .collapse import CollapseAnalyzer
from .anomaly import AnomalyAnalyzer
from .ghost_loop import GhostLoopAnalyzer

__all__ = [
    'EventIndex', 'PatternAnalyzer', 'SynchronicityAnalyzer', 'NetworkAnalyzer',
    'CollapseAnalyzer', 'AnomalyAnalyzer', 'GhostLoopAnalyzer',
]
