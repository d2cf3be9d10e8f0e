"""
Deterministic Fallback Analysis
===============================

Heuristic stand-ins for the four classifier kinds, used when the active
provider fails or returns malformed output.

GUARANTEES:
===========
- Pure given (events, rng): same events + same rng state → same output
- Output validates against the same schema as provider output
- Empty input → schema-valid empty result
"""

from __future__ import annotations
from typing import Callable, Dict, List, Sequence
import random

from pydantic import BaseModel

from discovery.contracts.events import EventType, HistoricalEvent
from discovery.core.geometry import group_by_time_window, haversine_km
from .contracts import PatternKind
from .schemas import (
    AnomalyItem,
    AnomalyResponse,
    CollapseIndicator,
    CollapseResponse,
    NetworkItem,
    NetworkResponse,
    SynchronicityItem,
    SynchronicityResponse,
)


SYNCHRONICITY_WINDOW = 50
NETWORK_MAX_DISTANCE_KM = 2000.0
NETWORK_MAX_YEAR_GAP = 100
MAX_NETWORKS = 5
MAX_COLLAPSE_INDICATORS = 5
MAX_ANOMALIES = 3

COLLAPSE_KEYWORDS: Dict[str, tuple] = {
    "elite_overproduction": ("elite", "nobility", "aristocracy", "wealth"),
    "resource_depletion": ("famine", "drought", "depletion", "shortage"),
    "climate": ("climate", "weather", "drought", "flood"),
    "social": ("revolt", "rebellion", "unrest", "uprising"),
    "military": ("invasion", "war", "defeat", "conquest"),
    "economic": ("trade", "collapse", "crisis", "debt"),
}

ANOMALY_EXPLANATIONS = [
    "Missing historical context",
    "Convergent development",
    "Unknown connection",
]


def synchronicity_fallback(
    events: Sequence[HistoricalEvent],
    rng: random.Random
) -> SynchronicityResponse:
    """Single-type 50-year buckets of at least three events."""
    items: List[SynchronicityItem] = []

    for period, group in group_by_time_window(events, SYNCHRONICITY_WINDOW).items():
        types = {e.type for e in group}
        if len(group) < 3 or len(types) != 1:
            continue

        event_type = next(iter(types)).value
        items.append(SynchronicityItem(
            events=[e.id for e in group],
            type="philosophical_awakening" if event_type == EventType.CULTURAL.value else event_type,
            description=f"Multiple {event_type} events occurred simultaneously around {period}",
            probability=min(0.3 + 0.1 * len(group), 0.8),
            significance="Suggests potential shared causation or communication",
        ))

    return SynchronicityResponse(
        synchronicities=items,
        confidence=0.6 if items else 0.3,
        explanation=(
            "Pattern matching identified potential synchronicities based on temporal clustering"
            if items else
            "No clear synchronicities detected in the provided events"
        ),
    )


def network_fallback(
    events: Sequence[HistoricalEvent],
    rng: random.Random
) -> NetworkResponse:
    """Pairwise proximity links: < 2000 km apart and < 100 years apart."""
    networks: List[NetworkItem] = []

    for i, first in enumerate(events):
        if first.coordinates is None:
            continue
        for second in events[i + 1:]:
            if second.coordinates is None:
                continue

            distance = haversine_km(first.coordinates, second.coordinates)
            if distance >= NETWORK_MAX_DISTANCE_KM or abs(first.year - second.year) >= NETWORK_MAX_YEAR_GAP:
                continue

            is_trade = EventType.TRADE in (first.type, second.type)
            networks.append(NetworkItem(
                type="trade" if is_trade else "cultural",
                nodes=[first.title, second.title],
                period=f"{min(first.year, second.year)}-{max(first.year, second.year)}",
                evidence=["Geographic proximity", "Temporal overlap"],
                strength=max(0.3, 1 - distance / NETWORK_MAX_DISTANCE_KM),
            ))

    return NetworkResponse(
        networks=networks[:MAX_NETWORKS],
        routes=[],
        confidence=0.5 if networks else 0.2,
    )


def collapse_fallback(
    events: Sequence[HistoricalEvent],
    rng: random.Random
) -> CollapseResponse:
    """Keyword indicators over title + description."""
    indicators: List[CollapseIndicator] = []

    for event in events:
        text = f"{event.title} {event.description}".lower()
        for indicator_type, keywords in COLLAPSE_KEYWORDS.items():
            if any(keyword in text for keyword in keywords):
                indicators.append(CollapseIndicator(
                    type=indicator_type,
                    severity=0.5 + rng.random() * 0.3,
                    events=[event.id],
                    description=f"{indicator_type.replace('_', ' ')} indicator detected",
                ))

    # Risk counts every match, including the ones truncated below
    return CollapseResponse(
        indicators=indicators[:MAX_COLLAPSE_INDICATORS],
        risk_level=min(0.15 * len(indicators), 0.9),
        pattern="Systemic collapse pattern" if len(indicators) >= 3 else "Isolated stress indicators",
        timeline="50-100 years",
        parallels=["Bronze Age Collapse", "Fall of Rome"],
    )


def anomaly_fallback(
    events: Sequence[HistoricalEvent],
    rng: random.Random
) -> AnomalyResponse:
    """Random score per event in [0.3, 0.8); scores above 0.5 are reported."""
    anomalies: List[AnomalyItem] = []

    for event in events:
        score = rng.random() * 0.5 + 0.3
        if score > 0.5:
            anomalies.append(AnomalyItem(
                event=event.id,
                type="unexplained",
                anomaly_score=score,
                description="Event shows unusual patterns compared to historical baseline",
                possible_explanations=list(ANOMALY_EXPLANATIONS),
            ))

    return AnomalyResponse(anomalies=anomalies[:MAX_ANOMALIES], confidence=0.4)


FALLBACKS: Dict[PatternKind, Callable[[Sequence[HistoricalEvent], random.Random], BaseModel]] = {
    PatternKind.SYNCHRONICITY: synchronicity_fallback,
    PatternKind.NETWORK: network_fallback,
    PatternKind.COLLAPSE: collapse_fallback,
    PatternKind.ANOMALY: anomaly_fallback,
}


def run_fallback(
    pattern_kind: PatternKind,
    events: Sequence[HistoricalEvent],
    rng: random.Random
) -> BaseModel:
    """Dispatch to the fallback for pattern_kind."""
    return FALLBACKS[pattern_kind](list(events), rng)
