"""In-memory event source and the fixed fallback dataset."""

from __future__ import annotations
from typing import Iterable, List, Optional

from discovery.contracts.events import (
    Coordinates,
    EventQuery,
    EventType,
    HistoricalEvent,
)
from discovery.core.geometry import haversine_km
from .contracts import EventSource


def fallback_events(start_year: int, end_year: int) -> List[HistoricalEvent]:
    """
    Small fixed dataset used when the event source fails.

    Events are anchored at start_year; end_year is accepted for symmetry with
    the source query and not used.
    """
    return [
        HistoricalEvent(
            id="Q47064",
            title="Bronze Age collapse",
            year=start_year,
            date=f"{start_year}-01-01",
            type=EventType.COLLAPSE,
            coordinates=Coordinates(35.0, 33.0),
            category="historical period",
            description="The Late Bronze Age collapse was a time of widespread societal collapse",
            confidence=0.89,
            source="fallback",
        ),
        HistoricalEvent(
            id="Q208823",
            title="Sea Peoples",
            year=start_year + 50,
            date=f"{start_year + 50}-01-01",
            type=EventType.MIGRATION,
            coordinates=Coordinates(31.0, 35.0),
            category="historical event",
            description="The Sea Peoples were a confederacy of naval raiders",
            confidence=0.73,
            source="fallback",
        ),
        HistoricalEvent(
            id="Q180299",
            title="Trojan War",
            year=start_year + 20,
            date=f"{start_year + 20}-01-01",
            type=EventType.CONFLICT,
            coordinates=Coordinates(39.95, 26.24),
            category="war",
            description="Legendary war between the Greeks and Troy",
            confidence=0.65,
            source="fallback",
        ),
    ]


class StaticEventSource(EventSource):
    """Serves a fixed event list, filtered by year range, types and limit."""

    def __init__(self, events: Iterable[HistoricalEvent] = ()):
        self._events = list(events)
        self.queries: List[EventQuery] = []

    async def query_events(self, query: EventQuery) -> List[HistoricalEvent]:
        self.queries.append(query)
        wanted = {t.lower() for t in query.event_types}

        selected = [
            e for e in self._events
            if query.start_year <= e.year <= query.end_year
            and (not wanted or e.type.value in wanted)
        ]
        return selected[:query.limit]

    async def query_nearby(
        self,
        center: Coordinates,
        radius_km: float,
        start_year: int,
        end_year: int,
        limit: int = 500
    ) -> List[HistoricalEvent]:
        distances = [
            (haversine_km(center, e.coordinates), n, e)
            for n, e in enumerate(self._events)
            if e.coordinates is not None and start_year <= e.year <= end_year
        ]
        nearby = sorted((d, n, e) for d, n, e in distances if d <= radius_km)
        return [e for _, _, e in nearby][:limit]

    async def query_related(self, event_id: str, year_radius: int = 100) -> List[HistoricalEvent]:
        main = await self.get_event(event_id)
        if main is None:
            return []
        return [
            e for e in self._events
            if e.id != event_id and abs(e.year - main.year) <= year_radius
        ]

    async def get_event(self, event_id: str) -> Optional[HistoricalEvent]:
        return next((e for e in self._events if e.id == event_id), None)
