"""Anomaly analyzer: events scored as out of place by the classifier."""

from __future__ import annotations
from typing import List
import logging

from gateway.contracts import PatternKind
from ..contracts.discoveries import Discovery, DiscoveryKind, DiscoveryParameters
from ..contracts.events import HistoricalEvent
from .base import EventIndex, PatternAnalyzer

logger = logging.getLogger(__name__)


class AnomalyAnalyzer(PatternAnalyzer):
    """One discovery per classifier anomaly scoring at least anomaly_detection."""

    kind = DiscoveryKind.ANOMALY

    async def _analyze(
        self,
        events: List[HistoricalEvent],
        parameters: DiscoveryParameters
    ) -> List[Discovery]:
        result = await self._gateway.analyze(events, PatternKind.ANOMALY, parameters.speed_tier)
        index = EventIndex(events)

        discoveries = []
        for anomaly in result.payload.anomalies:
            if anomaly.anomaly_score < parameters.anomaly_detection:
                continue

            event = index.resolve(anomaly.event)
            if event is None:
                logger.debug("Anomaly references unknown event %r", anomaly.event)
                reference = {"id": None, "title": anomaly.event, "year": None, "location": None}
            else:
                reference = event.reference()

            discoveries.append(Discovery(
                kind=self.kind,
                confidence=result.confidence,
                events=[reference],
                payload={
                    "anomalyType": anomaly.type,
                    "score": anomaly.anomaly_score,
                    "description": anomaly.description,
                    "explanations": list(anomaly.possible_explanations),
                    "provider": result.provider_id,
                },
            ))

        return discoveries
