"""
Discovery Core
==============

Pure computation used by the analyzers: geometry and time bucketing,
symbolic text features, ghost-loop detection and diffusion topology.
"""

from .geometry import (
    haversine_km,
    time_bucket,
    group_by_time_window,
    classify_region,
    extract_regions,
    civilization_key,
    group_by_civilization,
    diffusion_velocity,
)
from .ghost_loops import GhostLoopDetector
from .symbolic import SymbolicProcessor, MaterialCulturePatternDetector
from .topology import DiffusionGraph

__all__ = [
    'haversine_km', 'time_bucket', 'group_by_time_window', 'classify_region',
    'extract_regions', 'civilization_key', 'group_by_civilization', 'diffusion_velocity',
    'GhostLoopDetector', 'SymbolicProcessor', 'MaterialCulturePatternDetector',
    'DiffusionGraph',
]
