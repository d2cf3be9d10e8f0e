"""Collapse analyzer: civilizations carrying several stress indicators."""

from __future__ import annotations
from typing import List

from gateway.contracts import PatternKind
from ..contracts.discoveries import Discovery, DiscoveryKind, DiscoveryParameters
from ..contracts.events import HistoricalEvent
from ..core.geometry import group_by_civilization, year_span
from .base import PatternAnalyzer, references

MIN_INDICATORS = 3
MIN_MATCHED_INDICATORS = 2


def collapse_confidence(matched: int) -> float:
    return min(0.25 * matched, 0.95)


class CollapseAnalyzer(PatternAnalyzer):
    """
    One classifier call. With at least three indicators overall, every
    civilization (country, else category, else "Unknown") whose events are
    referenced by at least two indicators becomes a discovery.
    """

    kind = DiscoveryKind.COLLAPSE

    async def _analyze(
        self,
        events: List[HistoricalEvent],
        parameters: DiscoveryParameters
    ) -> List[Discovery]:
        result = await self._gateway.analyze(events, PatternKind.COLLAPSE, parameters.speed_tier)
        payload = result.payload
        if len(payload.indicators) < MIN_INDICATORS:
            return []

        discoveries = []
        for civilization, members in group_by_civilization(events).items():
            keys = {e.id for e in members} | {e.title for e in members if e.title}
            matched = [
                indicator for indicator in payload.indicators
                if any(ref in keys for ref in indicator.events)
            ]
            if len(matched) < MIN_MATCHED_INDICATORS:
                continue

            start, end = year_span(members)
            discoveries.append(Discovery(
                kind=self.kind,
                confidence=collapse_confidence(len(matched)),
                events=references(members),
                payload={
                    "civilization": civilization,
                    "period": f"{start} to {end}",
                    "indicators": [
                        {"type": i.type, "severity": i.severity, "description": i.description}
                        for i in matched
                    ],
                    "riskLevel": payload.risk_level,
                    "pattern": payload.pattern,
                    "timeline": payload.timeline,
                    "parallels": list(payload.parallels),
                    "provider": result.provider_id,
                },
            ))

        return discoveries
