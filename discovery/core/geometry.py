"""
Geometry & Time Utilities
=========================

Pure functions: great-circle distance, time bucketing, coarse region and
civilization classification. No state, no I/O.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import math

from ..contracts.events import Coordinates, HistoricalEvent


EARTH_RADIUS_KM = 6371.0

UNKNOWN_CIVILIZATION = "Unknown"

REGION_EUROPE = "Europe"
REGION_ASIA = "Asia"
REGION_AFRICA = "Africa"
REGION_SOUTH_AMERICA = "South America"
REGION_NORTH_AMERICA = "North America"
REGION_OCEANIA = "Oceania"
REGION_OTHER = "Other"


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """
    Great-circle distance in kilometres.

    Symmetric bit-for-bit: the pair is put in canonical order first.
    """
    if (a.lat, a.lng) > (b.lat, b.lng):
        a, b = b, a

    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def time_bucket(year: int, window: int) -> int:
    """floor(year / window) * window, BCE years included."""
    return (year // window) * window


def group_by_time_window(
    events: Iterable[HistoricalEvent],
    window: int
) -> Dict[int, List[HistoricalEvent]]:
    """Group events by bucket start year, buckets in first-seen order."""
    groups: Dict[int, List[HistoricalEvent]] = {}
    for event in events:
        groups.setdefault(time_bucket(event.year, window), []).append(event)
    return groups


def classify_region(coordinates: Coordinates) -> str:
    """Fixed bounding-box classifier; first matching box wins."""
    lat, lng = coordinates.lat, coordinates.lng

    if lat > 35 and -15 < lng < 40:
        return REGION_EUROPE
    if 20 < lat < 50 and 60 < lng < 140:
        return REGION_ASIA
    if lat < 0 and -20 < lng < 50:
        return REGION_AFRICA
    if -60 < lat < 15 and -85 < lng < -30:
        return REGION_SOUTH_AMERICA
    if lat > 15 and -130 < lng < -60:
        return REGION_NORTH_AMERICA
    if lat < -10 and lng > 110:
        return REGION_OCEANIA
    return REGION_OTHER


def extract_regions(events: Iterable[HistoricalEvent]) -> List[str]:
    """
    Distinct regions in first-seen order.

    A source-assigned region wins over the classified one; events with
    neither are skipped.
    """
    regions: List[str] = []
    for event in events:
        if not event.region and event.coordinates is None:
            continue
        region = event_region(event)
        if region not in regions:
            regions.append(region)
    return regions


def event_region(event: HistoricalEvent) -> str:
    """Source-assigned region, else the classified one, else 'global'."""
    if event.region:
        return event.region
    if event.coordinates is not None:
        return classify_region(event.coordinates)
    return "global"


def civilization_key(event: HistoricalEvent) -> str:
    """Country, else category, else the literal 'Unknown'."""
    return event.country or event.category or UNKNOWN_CIVILIZATION


def group_by_civilization(events: Iterable[HistoricalEvent]) -> Dict[str, List[HistoricalEvent]]:
    groups: Dict[str, List[HistoricalEvent]] = {}
    for event in events:
        groups.setdefault(civilization_key(event), []).append(event)
    return groups


def year_span(events: Sequence[HistoricalEvent]) -> Optional[Tuple[int, int]]:
    """(min, max) year, or None for an empty sequence."""
    if not events:
        return None
    years = [e.year for e in events]
    return min(years), max(years)


def diffusion_velocity(events: Sequence[HistoricalEvent]) -> float:
    """
    km/year between the earliest- and latest-dated events.

    0 when fewer than two events, either endpoint lacks coordinates, or the
    year gap is 0.
    """
    if len(events) < 2:
        return 0.0

    ordered = sorted(events, key=lambda e: e.year)
    first, last = ordered[0], ordered[-1]
    if first.coordinates is None or last.coordinates is None:
        return 0.0

    gap = abs(last.year - first.year)
    if gap == 0:
        return 0.0
    return haversine_km(first.coordinates, last.coordinates) / gap
