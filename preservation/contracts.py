"""
Knowledge Store Contracts
=========================

Interface the discovery engine uses to persist discoveries, and the record
format written to every store.

INVARIANTS:
===========
- A record is built from a stamped Discovery and never modified afterwards
- verification_required iff confidence < 0.7
- preservation_level is a pure function of confidence
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
import json

from discovery.contracts.discoveries import Discovery
from discovery.contracts.events import HistoricalEvent


RECORD_TYPE = "historical_discovery"
RECORD_SOURCE = "ChronoSphere"
RECORD_DIMENSIONS = 7
VERIFICATION_THRESHOLD = 0.7


class PreservationError(Exception):
    """A knowledge store could not persist or query records."""


def preservation_level(confidence: float) -> str:
    if confidence > 0.9:
        return "permanent"
    if confidence > 0.7:
        return "century"
    if confidence > 0.5:
        return "decade"
    return "temporary"


@dataclass(frozen=True)
class PreservationRecord:
    """One discovery in knowledge-store wire format."""
    subtype: str
    content: Dict[str, Any]
    confidence: float
    timestamp_ms: int

    @property
    def preservation_level(self) -> str:
        return preservation_level(self.confidence)

    @property
    def verification_required(self) -> bool:
        return self.confidence < VERIFICATION_THRESHOLD

    @staticmethod
    def from_discovery(discovery: Discovery, now: datetime) -> PreservationRecord:
        return PreservationRecord(
            subtype=discovery.kind.value,
            content=discovery.to_dict(),
            confidence=discovery.confidence,
            timestamp_ms=int(now.timestamp() * 1000),
        )

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> PreservationRecord:
        metadata = data.get("metadata") or {}
        return PreservationRecord(
            subtype=data.get("subtype", ""),
            content=data.get("content") or {},
            confidence=float(metadata.get("confidence", 0.0)),
            timestamp_ms=int(metadata.get("timestamp", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": RECORD_TYPE,
            "subtype": self.subtype,
            "content": self.content,
            "dimensions": RECORD_DIMENSIONS,
            "metadata": {
                "timestamp": self.timestamp_ms,
                "source": RECORD_SOURCE,
                "confidence": self.confidence,
                "preservation_level": self.preservation_level,
            },
            "verification_required": self.verification_required,
        }


@dataclass(frozen=True)
class PreservationReceipt:
    """
    Outcome of preserve().

    status: "remote" (accepted by the remote store), "local" (written to the
    local store only) or "pending" (local, queued for remote sync)
    """
    id: str
    status: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "status": self.status}


@dataclass(frozen=True)
class PreservationFilter:
    """Query over preserved records."""
    type: Optional[str] = None
    min_confidence: Optional[float] = None
    query: str = ""
    limit: int = 100

    def matches(self, record: Dict[str, Any]) -> bool:
        content = record.get("content") or {}
        if self.type and content.get("type") != self.type:
            return False
        if self.min_confidence and (content.get("confidence") or 0) < self.min_confidence:
            return False
        if self.query:
            if self.query.lower() not in json.dumps(record).lower():
                return False
        return True


@dataclass
class PreservationConfig:
    """Configuration for the knowledge stores."""
    endpoint: Optional[str] = None
    storage_path: str = "./data/akasha"
    timeout_seconds: float = 5.0
    sync_interval_seconds: float = 30.0
    max_sync_attempts: int = 3


class KnowledgeStore(ABC):
    """Abstract persistence target for discoveries."""

    @abstractmethod
    async def preserve(self, record: PreservationRecord) -> PreservationReceipt:
        """Persist record. Raises PreservationError on failure."""

    @abstractmethod
    async def query(self, search: PreservationFilter) -> List[Dict[str, Any]]:
        """Records matching search, in store order."""

    @abstractmethod
    async def enrich(self, event: HistoricalEvent) -> Dict[str, Any]:
        """Event as a dict with its seven enrichment dimensions."""

    async def aclose(self):
        """Release resources. No-op by default."""
