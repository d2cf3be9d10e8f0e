"""
Event Source Contracts
======================

Interface the discovery engine consumes to obtain historical events.

GUARANTEES:
- Queries return finite, ordered, non-streaming lists
- Failures raise EventSourceError; the engine substitutes its fallback dataset
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from discovery.contracts.events import Coordinates, EventQuery, HistoricalEvent


DEFAULT_WIKIDATA_ENDPOINT = "https://query.wikidata.org/sparql"


class EventSourceError(Exception):
    """Event source could not produce events (transport, status or parse failure)."""


@dataclass
class EventSourceConfig:
    """Configuration for the Wikidata event source."""
    endpoint: str = DEFAULT_WIKIDATA_ENDPOINT
    cache_ttl_seconds: float = 3600.0
    timeout_seconds: float = 30.0
    user_agent: str = "ChronoSphere/1.0 (https://github.com/aerware/chronosphere)"


class EventSource(ABC):
    """Abstract provider of historical events."""

    @abstractmethod
    async def query_events(self, query: EventQuery) -> List[HistoricalEvent]:
        """
        Return events matching query.

        Raises EventSourceError on failure.
        """

    @abstractmethod
    async def query_nearby(
        self,
        center: Coordinates,
        radius_km: float,
        start_year: int,
        end_year: int,
        limit: int = 500
    ) -> List[HistoricalEvent]:
        """Geo-tagged events within radius_km of center, nearest first."""

    @abstractmethod
    async def query_related(self, event_id: str, year_radius: int = 100) -> List[HistoricalEvent]:
        """Events dated within year_radius years of event_id, excluding it."""

    @abstractmethod
    async def get_event(self, event_id: str) -> Optional[HistoricalEvent]:
        """One event by id; None when unknown."""

    async def aclose(self):
        """Release transport resources. No-op by default."""
