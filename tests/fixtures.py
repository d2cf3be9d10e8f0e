"""
Shared Test Fixtures

Explicit events, scripted classifier responses, a controllable clock and an
event-loop responsiveness counter.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
import asyncio
import random
import time

from discovery.contracts.events import Coordinates, EventType, HistoricalEvent
from gateway.contracts import PatternKind
from gateway.providers.mock import MockProvider
from gateway.service import AnalysisGateway


# =============================================================================
# FIXED TIMESTAMPS / CLOCK
# =============================================================================

EPOCH = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = EPOCH):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now = self.now + timedelta(seconds=seconds)


# =============================================================================
# LOCATIONS (one per classified region)
# =============================================================================

EUROPE = (48.0, 10.0)
ASIA = (35.0, 100.0)
AFRICA = (-10.0, 20.0)
SOUTH_AMERICA = (-10.0, -60.0)

ATHENS = (37.98, 23.72)
CORINTH = (37.94, 22.93)
SPARTA = (37.07, 22.43)


def make_event(
    event_id: str = "e1",
    title: Optional[str] = None,
    year: int = -500,
    event_type: EventType = EventType.EVENT,
    location: Optional[Tuple[float, float]] = None,
    country: str = "",
    category: str = "",
    description: str = "",
    region: Optional[str] = None,
) -> HistoricalEvent:
    """Factory for test HistoricalEvent."""
    return HistoricalEvent(
        id=event_id,
        title=title if title is not None else f"Event {event_id}",
        year=year,
        type=event_type,
        coordinates=Coordinates(*location) if location else None,
        country=country,
        category=category,
        description=description,
        region=region,
    )


def three_region_events(years=(-550, -520, -510)):
    """Three events in one century bucket, in Europe, Asia and Africa."""
    return [
        make_event("e1", "Rise of Greek philosophy", years[0], EventType.CULTURAL, EUROPE),
        make_event("e2", "Teaching of the Buddha", years[1], EventType.CULTURAL, ASIA),
        make_event("e3", "Kingdom of Kush flourishes", years[2], EventType.CULTURAL, AFRICA),
    ]


# =============================================================================
# SCRIPTED CLASSIFIER RESPONSES
# =============================================================================

SYNCHRONICITY_RESPONSE: Dict[str, Any] = {
    "synchronicities": [{
        "events": ["e1", "e2", "e3"],
        "type": "philosophical_awakening",
        "description": "Parallel philosophical movements",
        "probability": 0.8,
        "significance": "Axial age",
    }],
    "confidence": 0.85,
    "explanation": "Independent emergence of ethical philosophy",
}

NETWORK_RESPONSE: Dict[str, Any] = {
    "networks": [
        {"type": "trade", "nodes": ["Athens", "Corinth"], "period": "-500 to -480",
         "evidence": ["Pottery finds"], "strength": 0.8},
        {"type": "cultural", "nodes": ["Corinth", "Sparta"], "period": "-480",
         "evidence": [], "strength": 0.6},
        {"type": "migration", "nodes": ["Nowhere"], "strength": 0.2},
    ],
    "routes": [{"from": "Athens", "to": "Corinth", "type": "sea", "goods": ["olive oil"]}],
    "confidence": 0.7,
}

COLLAPSE_RESPONSE: Dict[str, Any] = {
    "indicators": [
        {"type": "climate", "severity": 0.7, "events": ["eg1"], "description": "Drought"},
        {"type": "military", "severity": 0.8, "events": ["Sea Peoples raid"], "description": "Invasion"},
        {"type": "economic", "severity": 0.6, "events": ["h1"], "description": "Trade halt"},
    ],
    "riskLevel": 0.75,
    "pattern": "Systems collapse",
    "timeline": "50 years",
    "parallels": ["Fall of Rome"],
}

ANOMALY_RESPONSE: Dict[str, Any] = {
    "anomalies": [
        {"event": "e1", "type": "technological", "anomalyScore": 0.9,
         "description": "Too early", "possibleExplanations": ["Lost knowledge"]},
        {"event": "e2", "type": "cultural", "anomalyScore": 0.5, "description": "Minor"},
        {"event": "Mystery artifact", "type": "unexplained", "anomalyScore": 0.8},
    ],
    "confidence": 0.65,
}

ALL_RESPONSES = {
    PatternKind.SYNCHRONICITY: SYNCHRONICITY_RESPONSE,
    PatternKind.NETWORK: NETWORK_RESPONSE,
    PatternKind.COLLAPSE: COLLAPSE_RESPONSE,
    PatternKind.ANOMALY: ANOMALY_RESPONSE,
}


def scripted_gateway(responses=None, clock=None, seed: int = 7, **kwargs):
    """Gateway whose active provider is a MockProvider. Returns (gateway, provider)."""
    provider = MockProvider(responses if responses is not None else ALL_RESPONSES, **kwargs)
    gateway = AnalysisGateway(
        providers=[provider],
        active_provider=provider.provider_id,
        clock=clock,
        rng=random.Random(seed),
    )
    return gateway, provider


def fallback_gateway(seed: int = 7) -> AnalysisGateway:
    """Gateway with only the heuristic provider."""
    return AnalysisGateway(rng=random.Random(seed))


# =============================================================================
# EVENT LOOP RESPONSIVENESS
# =============================================================================

def slowed(method, delay: float = 0.2):
    """Wrap a blocking method so each call sleeps the calling thread first."""
    def wrapper(*args, **kwargs):
        time.sleep(delay)
        return method(*args, **kwargs)
    return wrapper


async def ticks_during(awaitable) -> Tuple[Any, int]:
    """Await awaitable while a sibling coroutine counts 10ms ticks. Returns (result, ticks)."""
    ticks = 0
    done = asyncio.Event()

    async def ticker():
        nonlocal ticks
        while not done.is_set():
            ticks += 1
            await asyncio.sleep(0.01)

    task = asyncio.create_task(ticker())
    try:
        result = await awaitable
    finally:
        done.set()
        await task
    return result, ticks
