"""
Event Sources
=============

Collaborators that supply historical events to the discovery engine.
"""

from .contracts import EventSource, EventSourceConfig, EventSourceError
from .static import StaticEventSource, fallback_events
from .wikidata import WikidataEventSource

__all__ = [
    'EventSource', 'EventSourceConfig', 'EventSourceError',
    'StaticEventSource', 'fallback_events', 'WikidataEventSource',
]
