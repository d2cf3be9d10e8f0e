"""
Discovery Contracts
===================

Output types of the analyzers and the aggregator.

INVARIANTS:
===========
- Discovery.confidence is always clamped to [0, 1]
- Discovery ids are unique within a DiscoveryBatch
- DiscoveryMetrics.total == sum(DiscoveryMetrics.per_kind.values())
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple
from enum import Enum
import logging
import random
import string

logger = logging.getLogger(__name__)


SPEED_TIERS = ("fast", "smart", "balanced")


def clamp_unit(value: float) -> float:
    """Clamp a score into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


_BASE36 = string.digits + string.ascii_lowercase


def random_suffix(rng: random.Random, length: int = 9) -> str:
    """Base-36 suffix used in generated ids."""
    return "".join(rng.choice(_BASE36) for _ in range(length))


class DiscoveryKind(Enum):
    """Discovery kinds, in analyzer emission order."""
    SYNCHRONICITY = "synchronicity"
    NETWORK = "network"
    COLLAPSE = "collapse"
    ANOMALY = "anomaly"
    GHOST_LOOP = "ghost_loop"


# Plural keys of metrics.byType on the wire
BY_TYPE_KEYS = {
    DiscoveryKind.SYNCHRONICITY: "synchronicities",
    DiscoveryKind.NETWORK: "networks",
    DiscoveryKind.COLLAPSE: "collapses",
    DiscoveryKind.ANOMALY: "anomalies",
    DiscoveryKind.GHOST_LOOP: "ghostLoops",
}


class QualityBand(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @staticmethod
    def from_average(average_confidence: float) -> QualityBand:
        """high iff > 0.7, medium iff in (0.5, 0.7], low otherwise."""
        if average_confidence > 0.7:
            return QualityBand.HIGH
        if average_confidence > 0.5:
            return QualityBand.MEDIUM
        return QualityBand.LOW


@dataclass(frozen=True)
class Discovery:
    """
    A single detected pattern.

    Created only by analyzers; the aggregator stamps id and created_at.
    Confidence is clamped at construction.
    """
    kind: DiscoveryKind
    confidence: float
    events: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    payload: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, 'confidence', clamp_unit(self.confidence))
        object.__setattr__(self, 'events', tuple(self.events))

    def stamped(self, discovery_id: str, created_at: datetime) -> Discovery:
        """Return a copy carrying the batch-assigned id and timestamp."""
        return replace(self, id=discovery_id, created_at=created_at)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.payload)
        data.update({
            "id": self.id,
            "type": self.kind.value,
            "confidence": self.confidence,
            "events": [dict(e) for e in self.events],
            "timestamp": int(self.created_at.timestamp() * 1000) if self.created_at else None,
        })
        return data


@dataclass(frozen=True)
class DiscoveryParameters:
    """
    Analyzer and query parameters for one discover() call.

    Thresholds outside [0, 1] are clamped (and logged), never rejected.
    """
    time_window_radius: int = 50
    synchronicity_threshold: float = 0.75
    network_density: float = 0.5
    anomaly_detection: float = 0.7
    region: str = "global"
    event_types: Tuple[str, ...] = field(default_factory=tuple)
    limit: int = 1000
    speed_tier: str = "smart"

    def __post_init__(self):
        for name in ("synchronicity_threshold", "network_density", "anomaly_detection"):
            value = float(getattr(self, name))
            clamped = clamp_unit(value)
            if clamped != value:
                logger.warning("Parameter %s=%s outside [0, 1], clamped to %s", name, value, clamped)
            object.__setattr__(self, name, clamped)

        if int(self.time_window_radius) <= 0:
            logger.warning("time_window_radius=%s is not positive, using 50", self.time_window_radius)
            object.__setattr__(self, 'time_window_radius', 50)
        else:
            object.__setattr__(self, 'time_window_radius', int(self.time_window_radius))

        if self.speed_tier not in SPEED_TIERS:
            logger.warning("Unknown speed tier %r, using 'smart'", self.speed_tier)
            object.__setattr__(self, 'speed_tier', "smart")

        object.__setattr__(self, 'event_types', tuple(self.event_types))

    @staticmethod
    def from_mapping(
        data: Mapping[str, Any],
        base: Optional[DiscoveryParameters] = None
    ) -> DiscoveryParameters:
        """Build parameters from camelCase request fields; absent fields come from base."""
        defaults = base or DiscoveryParameters()

        def pick(key: str, default: Any) -> Any:
            value = data.get(key)
            return default if value is None else value

        return DiscoveryParameters(
            time_window_radius=int(pick("timeWindowRadius", defaults.time_window_radius)),
            synchronicity_threshold=float(pick("synchronicityThreshold", defaults.synchronicity_threshold)),
            network_density=float(pick("networkDensity", defaults.network_density)),
            anomaly_detection=float(pick("anomalyDetection", defaults.anomaly_detection)),
            region=pick("region", defaults.region),
            event_types=tuple(pick("eventTypes", defaults.event_types)),
            limit=int(pick("limit", defaults.limit)),
            speed_tier=pick("speedTier", defaults.speed_tier),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeWindowRadius": self.time_window_radius,
            "synchronicityThreshold": self.synchronicity_threshold,
            "networkDensity": self.network_density,
            "anomalyDetection": self.anomaly_detection,
            "region": self.region,
            "eventTypes": list(self.event_types),
            "limit": self.limit,
            "speedTier": self.speed_tier,
        }


@dataclass(frozen=True)
class DiscoveryMetrics:
    """Aggregate scores for a batch."""
    total: int
    per_kind: Dict[str, int]
    average_confidence: float
    quality_band: QualityBand

    @staticmethod
    def compute(discoveries: Tuple[Discovery, ...]) -> DiscoveryMetrics:
        per_kind = {kind.value: 0 for kind in DiscoveryKind}
        for discovery in discoveries:
            per_kind[discovery.kind.value] += 1

        total = sum(per_kind.values())
        average = sum(d.confidence for d in discoveries) / total if total else 0.0

        return DiscoveryMetrics(
            total=total,
            per_kind=per_kind,
            average_confidence=average,
            quality_band=QualityBand.from_average(average),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "byType": {
                BY_TYPE_KEYS[kind]: self.per_kind.get(kind.value, 0) for kind in DiscoveryKind
            },
            "averageConfidence": self.average_confidence,
            "quality": self.quality_band.value,
        }


@dataclass(frozen=True)
class DiscoveryBatch:
    """Ranked discoveries of one discover() call."""
    discoveries: Tuple[Discovery, ...]
    metrics: DiscoveryMetrics
    events_analyzed: int
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discoveries": [d.to_dict() for d in self.discoveries],
            "metrics": self.metrics.to_dict(),
            "eventsAnalyzed": self.events_analyzed,
            "timestamp": int(self.timestamp.timestamp() * 1000),
        }
