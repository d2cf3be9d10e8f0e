"""
Analyzer Base
=============

Shared shape of the five pattern analyzers.

GUARANTEES:
- analyze(events, parameters) → list of Discovery in emission order
- Empty input returns [] without touching the gateway
- Analyzers never mutate events and never see each other's output
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, TYPE_CHECKING

from ..contracts.discoveries import Discovery, DiscoveryKind, DiscoveryParameters
from ..contracts.events import HistoricalEvent

if TYPE_CHECKING:
    from gateway.service import AnalysisGateway


class EventIndex:
    """Resolves classifier event references by id, then by title."""

    def __init__(self, events: Sequence[HistoricalEvent]):
        self._by_id: Dict[str, HistoricalEvent] = {}
        self._by_title: Dict[str, HistoricalEvent] = {}
        for event in events:
            self._by_id.setdefault(event.id, event)
            if event.title:
                self._by_title.setdefault(event.title, event)

    def resolve(self, reference: str) -> Optional[HistoricalEvent]:
        return self._by_id.get(reference) or self._by_title.get(reference)

    def resolve_all(self, references: Iterable[str]) -> List[HistoricalEvent]:
        """Resolved events, unresolvable references dropped, duplicates collapsed."""
        resolved: Dict[str, HistoricalEvent] = {}
        for reference in references:
            event = self.resolve(reference)
            if event is not None:
                resolved.setdefault(event.id, event)
        return list(resolved.values())


class PatternAnalyzer(ABC):
    """Base for the five analyzers."""

    kind: DiscoveryKind

    def __init__(self, gateway: Optional[AnalysisGateway] = None):
        self._gateway = gateway

    async def analyze(
        self,
        events: Sequence[HistoricalEvent],
        parameters: DiscoveryParameters
    ) -> List[Discovery]:
        if not events:
            return []
        return await self._analyze(list(events), parameters)

    @abstractmethod
    async def _analyze(
        self,
        events: List[HistoricalEvent],
        parameters: DiscoveryParameters
    ) -> List[Discovery]:
        """Analyze a non-empty event list."""

    @property
    def detector_available(self) -> bool:
        """Whether the optional local detector for this analyzer is present."""
        return False


def references(events: Iterable[HistoricalEvent]) -> List[dict]:
    return [e.reference() for e in events]
