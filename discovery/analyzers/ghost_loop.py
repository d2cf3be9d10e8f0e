"""Ghost-loop analyzer: recurring event-type structure, no classifier call."""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from ..contracts.discoveries import Discovery, DiscoveryKind, DiscoveryParameters
from ..contracts.events import HistoricalEvent
from ..core.geometry import event_region
from ..core.ghost_loops import GhostLoopDetector
from .base import PatternAnalyzer, references

MIN_CLUSTER_SIZE = 4


class GhostLoopAnalyzer(PatternAnalyzer):
    """
    With a detector: window patterns then recurring sequences, both emitted.
    Without one: (year, region) groups of more than three events become
    temporal clusters.
    """

    kind = DiscoveryKind.GHOST_LOOP

    def __init__(self, gateway=None, detector: Optional[GhostLoopDetector] = None):
        super().__init__(gateway)
        self._detector = detector

    @property
    def detector_available(self) -> bool:
        return self._detector is not None

    async def _analyze(
        self,
        events: List[HistoricalEvent],
        parameters: DiscoveryParameters
    ) -> List[Discovery]:
        if self._detector is None:
            return self._temporal_clusters(events)

        discoveries = []
        for pattern in self._detector.find_patterns(events):
            discoveries.append(Discovery(
                kind=self.kind,
                confidence=pattern.strength,
                events=references(pattern.events),
                payload={
                    "subType": "pattern",
                    "pattern": list(pattern.types),
                    "strength": pattern.strength,
                    "year": pattern.year,
                },
            ))

        for recurring in self._detector.find_recurring(events):
            discoveries.append(Discovery(
                kind=self.kind,
                confidence=recurring.confidence,
                events=references(recurring.sequence),
                payload={
                    "subType": "recurring",
                    "sequence": [e.title for e in recurring.sequence],
                    "types": list(recurring.types),
                    "repetitions": recurring.repetitions,
                    "period": recurring.period,
                },
            ))

        return discoveries

    def _temporal_clusters(self, events: List[HistoricalEvent]) -> List[Discovery]:
        groups: Dict[Tuple[int, str], List[HistoricalEvent]] = {}
        for event in events:
            groups.setdefault((event.year, event_region(event)), []).append(event)

        discoveries = []
        for (year, region), group in groups.items():
            if len(group) < MIN_CLUSTER_SIZE:
                continue
            discoveries.append(Discovery(
                kind=self.kind,
                confidence=min(0.9, len(group) / 10),
                events=references(group),
                payload={
                    "subType": "temporal_cluster",
                    "year": year,
                    "region": region,
                },
            ))
        return discoveries
