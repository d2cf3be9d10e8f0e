"""Synchronicity analyzer: same-window events across disconnected regions."""

from __future__ import annotations
from typing import List, Optional
import logging

from gateway.contracts import PatternKind
from ..contracts.discoveries import Discovery, DiscoveryKind, DiscoveryParameters
from ..contracts.events import HistoricalEvent
from ..core.geometry import extract_regions, group_by_time_window
from ..core.symbolic import SymbolicProcessor
from .base import PatternAnalyzer, references

logger = logging.getLogger(__name__)

MIN_EVENTS = 3
MIN_REGIONS = 3


class SynchronicityAnalyzer(PatternAnalyzer):
    """
    Buckets events by time_window_radius; each bucket with at least three
    events in at least three regions is sent to the classifier, and kept if
    the classifier confidence reaches synchronicity_threshold.
    """

    kind = DiscoveryKind.SYNCHRONICITY

    def __init__(self, gateway, symbolic: Optional[SymbolicProcessor] = None):
        super().__init__(gateway)
        self._symbolic = symbolic

    @property
    def detector_available(self) -> bool:
        return self._symbolic is not None

    async def _analyze(
        self,
        events: List[HistoricalEvent],
        parameters: DiscoveryParameters
    ) -> List[Discovery]:
        discoveries = []
        buckets = group_by_time_window(events, parameters.time_window_radius)

        for period, group in buckets.items():
            if len(group) < MIN_EVENTS:
                continue
            regions = extract_regions(group)
            if len(regions) < MIN_REGIONS:
                continue

            similarities = self._symbolic.find_similarities(group) if self._symbolic else []
            result = await self._gateway.analyze(group, PatternKind.SYNCHRONICITY, parameters.speed_tier)
            if result.confidence < parameters.synchronicity_threshold:
                logger.debug("Bucket %s below threshold (%.2f)", period, result.confidence)
                continue

            payload = result.payload
            discoveries.append(Discovery(
                kind=self.kind,
                confidence=result.confidence,
                events=references(group),
                payload={
                    "period": period,
                    "pattern": payload.synchronicities[0].type if payload.synchronicities else "unknown",
                    "description": payload.explanation,
                    "regions": regions,
                    "semanticSimilarity": similarities[0].similarity if similarities else 0.0,
                    "provider": result.provider_id,
                },
            ))

        return discoveries
