"""
Seven-Dimension Enrichment
==========================

Annotates an event with the knowledge store's seven dimensions: temporal,
spatial, causal, semantic, plus entropic, harmonic and quantum scores drawn
from the injected rng.

local_enrichment() is what a store returns when the remote enrichment
service is absent; merge_enrichment() folds a remote answer into the event.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict
import math
import random

from discovery.contracts.events import EventType, HistoricalEvent
from discovery.core.geometry import classify_region
from .contracts import RECORD_DIMENSIONS


# (exclusive upper year bound, epoch)
EPOCHS = (
    (-500, "ancient"),
    (500, "classical"),
    (1500, "medieval"),
    (1900, "modern"),
)

# (lat, lng, radius in degrees)
TRADE_HUBS = (
    (30.0, 35.0, 15.0),   # Mediterranean
    (25.0, 80.0, 20.0),   # Indian Ocean
    (35.0, 105.0, 25.0),  # Silk Road
    (0.0, -70.0, 15.0),   # Amazon
    (20.0, -95.0, 10.0),  # Mesoamerica
)

CAUSE_MARKERS = ("caused by", "due to", "because of", "resulted from")
EFFECT_MARKERS = ("led to", "caused", "resulted in", "triggered")

SEMANTIC_CATEGORIES = {
    "conflict": ("war", "battle", "conflict", "invasion", "siege"),
    "culture": ("art", "philosophy", "religion", "literature", "music"),
    "technology": ("invention", "discovery", "innovation", "technology"),
    "politics": ("empire", "kingdom", "dynasty", "republic", "democracy"),
    "disaster": ("collapse", "disaster", "famine", "plague", "earthquake"),
}


def epoch(year: int) -> str:
    for bound, name in EPOCHS:
        if year < bound:
            return name
    return "contemporary"


def classify_continent(lat: float, lng: float) -> str:
    if -30 < lng < 60 and -40 < lat < 75:
        return "Afro-Eurasia"
    if -170 < lng < -30:
        return "Americas"
    if lng > 100 and lat < -10:
        return "Australia"
    return "Unknown"


def trade_connectivity(lat: float, lng: float) -> float:
    """Summed proximity to historical trade hubs, capped at 1."""
    connectivity = 0.0
    for hub_lat, hub_lng, radius in TRADE_HUBS:
        distance = math.hypot(lat - hub_lat, lng - hub_lng)
        if distance < radius:
            connectivity += (radius - distance) / radius
    return min(connectivity, 1.0)


def temporal_dimension(event: HistoricalEvent) -> Dict[str, Any]:
    year = event.year
    return {
        "year": year,
        "century": year // 100,
        # Floor of the signed remainder: -555 is decade -6
        "decade": int(math.fmod(year, 100) // 10),
        "epoch": epoch(year),
        "cyclical": math.sin(year * math.pi / 500),
    }


def spatial_dimension(event: HistoricalEvent) -> Dict[str, Any]:
    if event.coordinates is None:
        return {"region": event.region or "unknown", "connectivity": 0.0}

    lat, lng = event.coordinates.lat, event.coordinates.lng
    return {
        "latitude": lat,
        "longitude": lng,
        "region": classify_region(event.coordinates),
        "hemisphere": "northern" if lat > 0 else "southern",
        "continent": classify_continent(lat, lng),
        "connectivity": trade_connectivity(lat, lng),
    }


def causal_dimension(event: HistoricalEvent) -> Dict[str, Any]:
    text = event.description.lower()
    causes = [m for m in CAUSE_MARKERS if m in text]
    effects = [m for m in EFFECT_MARKERS if m in text]

    if event.type == EventType.COLLAPSE:
        causal_type = "destructive"
    elif event.type == EventType.DISCOVERY:
        causal_type = "creative"
    else:
        causal_type = "neutral"

    return {
        "hasCauses": bool(causes),
        "hasEffects": bool(effects),
        "causalStrength": min((len(causes) + len(effects)) / 6, 1.0),
        "causalType": causal_type,
    }


def semantic_dimension(event: HistoricalEvent) -> Dict[str, Any]:
    text = f"{event.title} {event.description}".lower()
    words = text.split()
    return {
        "categories": {
            name: sum(1 for k in keywords if k in text) / len(keywords)
            for name, keywords in SEMANTIC_CATEGORIES.items()
        },
        "complexity": len(words) / 100,
        "uniqueness": len(set(words)) / len(words) if words else 0.0,
    }


def local_enrichment(event: HistoricalEvent, rng: random.Random, now: datetime) -> Dict[str, Any]:
    dimensions = {
        "temporal": temporal_dimension(event),
        "spatial": spatial_dimension(event),
        "causal": causal_dimension(event),
        "semantic": semantic_dimension(event),
        "entropic": rng.random(),
        "harmonic": rng.random(),
        "quantum": rng.random(),
    }

    data = event.to_dict()
    data.update({
        "dimensions": dimensions,
        "enriched": True,
        "enrichmentTimestamp": int(now.timestamp() * 1000),
    })
    return data


def enrichment_request(event: HistoricalEvent) -> Dict[str, Any]:
    """Body of POST /api/enrich on the remote store."""
    return {
        "content": event.to_dict(),
        "target_dimensions": RECORD_DIMENSIONS,
        "enrichment_type": "historical",
        "include_temporal": True,
        "include_spatial": True,
        "include_causal": True,
        "include_semantic": True,
    }


def merge_enrichment(event: HistoricalEvent, enriched: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Event dict updated with the remote answer. The remote id becomes akasha.preservationId."""
    data = event.to_dict()
    data.update({k: v for k, v in enriched.items() if k != "id"})
    data["akasha"] = {
        "enriched": True,
        "dimensions": enriched.get("dimensions") or {},
        "preservationId": enriched.get("id"),
        "timestamp": int(now.timestamp() * 1000),
    }
    return data
