"""
Preservation
============

Knowledge-store collaborators for discovered patterns: local SQLite store,
remote AKASHA store with pending-record sync, the periodic sync task and
seven-dimension event enrichment.
"""

from .contracts import (
    KnowledgeStore,
    PreservationConfig,
    PreservationError,
    PreservationFilter,
    PreservationReceipt,
    PreservationRecord,
    preservation_level,
)
from .local import LocalKnowledgeStore
from .akasha import AkashaKnowledgeStore
from .enrichment import local_enrichment
from .sync import PeriodicTask

__all__ = [
    'KnowledgeStore', 'PreservationConfig', 'PreservationError', 'PreservationFilter',
    'PreservationReceipt', 'PreservationRecord', 'preservation_level',
    'LocalKnowledgeStore', 'AkashaKnowledgeStore', 'PeriodicTask', 'local_enrichment',
]
