"""
Historical Event Contracts
==========================

Immutable event records consumed by every analyzer and by the gateway.

BOUNDARY ENFORCEMENT:
=====================
- Events are owned by the event source; the core NEVER mutates them
- All types are frozen dataclasses
- Years are signed integers (negative = BCE)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from enum import Enum


class EventType(Enum):
    """Coarse event classification shared by sources, prompts and analyzers."""
    CONFLICT = "conflict"
    COLLAPSE = "collapse"
    TRADE = "trade"
    MIGRATION = "migration"
    DISCOVERY = "discovery"
    CULTURAL = "cultural"
    DISASTER = "disaster"
    EVENT = "event"

    @classmethod
    def parse(cls, value: Any) -> EventType:
        """Parse a raw type label, defaulting to EVENT for unknown labels."""
        if isinstance(value, EventType):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.EVENT


@dataclass(frozen=True)
class Coordinates:
    """WGS84 latitude/longitude pair in degrees."""
    lat: float
    lng: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class HistoricalEvent:
    """
    Immutable, dated, optionally geo-tagged historical event.

    INVARIANTS:
    - id is non-empty
    - confidence in [0, 1]
    """
    id: str
    title: str
    year: int
    type: EventType = EventType.EVENT
    coordinates: Optional[Coordinates] = None
    country: str = ""
    category: str = ""
    description: str = ""
    confidence: float = 1.0

    # Provenance metadata (not used by the analyzers)
    date: str = ""
    source: str = ""
    url: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("HistoricalEvent id must be a non-empty string")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Event confidence must be in [0, 1], got {self.confidence}")

    def prompt_view(self) -> Dict[str, Any]:
        """Fields serialized into classifier prompts."""
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "location": self.coordinates.to_dict() if self.coordinates else None,
            "type": self.type.value,
            "description": self.description,
        }

    def reference(self) -> Dict[str, Any]:
        """Compact reference embedded in discoveries."""
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "location": self.coordinates.to_dict() if self.coordinates else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "type": self.type.value,
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "country": self.country,
            "category": self.category,
            "description": self.description,
            "confidence": self.confidence,
            "date": self.date,
            "source": self.source,
            "url": self.url,
            "region": self.region,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> HistoricalEvent:
        """Build an event from a loosely-typed mapping (API payloads, fixtures)."""
        coords = data.get("coordinates")
        return HistoricalEvent(
            id=str(data["id"]),
            title=data.get("title", ""),
            year=int(data.get("year", 0)),
            type=EventType.parse(data.get("type", "event")),
            coordinates=Coordinates(float(coords["lat"]), float(coords["lng"])) if coords else None,
            country=data.get("country") or "",
            category=data.get("category") or "",
            description=data.get("description") or "",
            confidence=float(data.get("confidence", 1.0)),
            date=data.get("date") or "",
            source=data.get("source") or "",
            url=data.get("url"),
            region=data.get("region"),
        )


@dataclass(frozen=True)
class TimeRange:
    """Inclusive year range (negative years are BCE)."""
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Invalid time range: {self.start} > {self.end}")

    def contains(self, year: int) -> bool:
        return self.start <= year <= self.end


@dataclass(frozen=True)
class EventQuery:
    """Parameters handed to an event source."""
    start_year: int
    end_year: int
    region: str = "global"
    event_types: Tuple[str, ...] = field(default_factory=tuple)
    limit: int = 1000

    def cache_key(self) -> str:
        return f"{self.start_year}_{self.end_year}_{self.region}_{'_'.join(self.event_types)}_{self.limit}"
