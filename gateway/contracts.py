"""
Gateway Contracts
=================

Typed request/result types for the AI analysis gateway.

INVARIANTS:
===========
- Same pattern kind + same set of events (by identity) → same fingerprint,
  regardless of event order
- AnalysisResult has the same shape whether it came from a provider or from
  the deterministic fallback
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence, Tuple
from enum import Enum
import hashlib
import json

from pydantic import BaseModel

from discovery.contracts.events import HistoricalEvent


class PatternKind(Enum):
    """Classifier task kinds; each has its own prompt, schema and fallback."""
    SYNCHRONICITY = "synchronicity"
    NETWORK = "network"
    COLLAPSE = "collapse"
    ANOMALY = "anomaly"


class SpeedTier(Enum):
    """Quality/latency selector forwarded to providers, never interpreted here."""
    FAST = "fast"
    SMART = "smart"
    BALANCED = "balanced"


def fingerprint_events(pattern_kind: PatternKind, events: Sequence[HistoricalEvent]) -> str:
    """
    Cache key for (pattern kind, event subset).

    Only the fields a prompt carries are hashed, in id order, so insertion
    order and provenance metadata (confidence, source, url) never change the key.
    """
    serialized = sorted(
        (e.id, json.dumps(e.prompt_view(), sort_keys=True)) for e in events
    )
    content = f"{pattern_kind.value}|[{','.join(s for _, s in serialized)}]"
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


@dataclass(frozen=True)
class AnalysisRequest:
    """One gateway call: pattern kind, event subset and speed tier."""
    pattern_kind: PatternKind
    events: Tuple[HistoricalEvent, ...]
    speed_tier: SpeedTier = SpeedTier.SMART
    fingerprint: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'events', tuple(self.events))
        object.__setattr__(self, 'fingerprint', fingerprint_events(self.pattern_kind, self.events))


@dataclass(frozen=True)
class AnalysisResult:
    """
    Parsed classifier output.

    payload is the pydantic model for pattern_kind (see gateway.schemas);
    confidence is the kind's quality scalar (riskLevel for collapse).
    """
    pattern_kind: PatternKind
    payload: BaseModel
    confidence: float
    provider_id: str

    @property
    def from_fallback(self) -> bool:
        return self.provider_id == "fallback"

    def to_dict(self) -> dict:
        return self.payload.model_dump(by_alias=True)


@dataclass(frozen=True)
class ProviderStatus:
    """Registry view of one provider."""
    available: bool
    active: bool

    def to_dict(self) -> dict:
        return {"available": self.available, "active": self.active}
