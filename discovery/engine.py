"""
Discovery Engine
================

Aggregator: fetches events, runs the five analyzers concurrently, stamps,
ranks and scores their output, and hands the batch to the knowledge store.

DESIGN PRINCIPLES:
==================
1. Analyzers are independent; none observes another's results
2. Ranking is a stable sort on confidence (ties keep emission order)
3. Persistence is best-effort and never delays or fails discover()
4. Retained batches are context only, not authoritative storage
"""

from __future__ import annotations
from collections import deque
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set
import asyncio
import logging
import random

import httpx

from gateway.service import AnalysisGateway
from preservation.akasha import AkashaKnowledgeStore
from preservation.contracts import KnowledgeStore, PreservationError, PreservationRecord
from preservation.enrichment import local_enrichment
from preservation.local import LocalKnowledgeStore
from sources.contracts import EventSource, EventSourceError
from sources.static import fallback_events
from sources.wikidata import WikidataEventSource
from .analyzers import (
    AnomalyAnalyzer,
    CollapseAnalyzer,
    GhostLoopAnalyzer,
    NetworkAnalyzer,
    PatternAnalyzer,
    SynchronicityAnalyzer,
)
from .config import ChronosphereConfig
from .contracts.discoveries import (
    Discovery,
    DiscoveryBatch,
    DiscoveryMetrics,
    DiscoveryParameters,
    random_suffix,
)
from .contracts.events import EventQuery, HistoricalEvent, TimeRange
from .core.ghost_loops import GhostLoopDetector
from .core.symbolic import MaterialCulturePatternDetector, SymbolicProcessor

logger = logging.getLogger(__name__)


def default_analyzers(
    gateway: AnalysisGateway,
    symbolic_features: bool = True,
    ghost_loop_detector: bool = True
) -> List[PatternAnalyzer]:
    """The five analyzers in emission order."""
    symbolic = SymbolicProcessor() if symbolic_features else None
    return [
        SynchronicityAnalyzer(gateway, symbolic=symbolic),
        NetworkAnalyzer(
            gateway,
            material_culture=MaterialCulturePatternDetector(symbolic) if symbolic else None,
        ),
        CollapseAnalyzer(gateway),
        AnomalyAnalyzer(gateway),
        GhostLoopAnalyzer(detector=GhostLoopDetector() if ghost_loop_detector else None),
    ]


class DiscoveryEngine:
    """
    Runs one discovery pass per discover() call.

    FLOW:
    =====
    1. Event source query (fixed fallback dataset on EventSourceError)
    2. Five analyzers under asyncio.gather
    3. Stamp ids/timestamps, stable-sort by confidence, compute metrics
    4. Schedule background persistence, retain the batch
    """

    def __init__(
        self,
        gateway: AnalysisGateway,
        source: EventSource,
        store: Optional[KnowledgeStore] = None,
        analyzers: Optional[Sequence[PatternAnalyzer]] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        recent_batches: int = 5,
        parameters: Optional[DiscoveryParameters] = None
    ):
        self._gateway = gateway
        self._source = source
        self._store = store
        self._analyzers = list(analyzers) if analyzers is not None else default_analyzers(gateway)
        self._rng = rng or random.Random()
        self._clock = clock or datetime.now
        self._recent: deque = deque(maxlen=max(recent_batches, 0))
        self._persistence: Set[asyncio.Future] = set()
        self._defaults = parameters or DiscoveryParameters()

    @staticmethod
    def from_config(
        config: Optional[ChronosphereConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> DiscoveryEngine:
        """Wire gateway, Wikidata source and knowledge store from configuration."""
        config = config or ChronosphereConfig()
        master = random.Random(config.engine.seed)

        gateway = AnalysisGateway.from_config(
            config.gateway, rng=random.Random(master.random()), transport=transport
        )
        source = WikidataEventSource(
            config.sources, rng=random.Random(master.random()), transport=transport
        )

        store: Optional[KnowledgeStore] = None
        if config.engine.preserve:
            local = LocalKnowledgeStore(
                config.preservation.storage_path, rng=random.Random(master.random())
            )
            if config.preservation.endpoint:
                store = AkashaKnowledgeStore(
                    config.preservation.endpoint, local, config.preservation, transport=transport
                )
            else:
                store = local

        return DiscoveryEngine(
            gateway=gateway,
            source=source,
            store=store,
            analyzers=default_analyzers(
                gateway,
                symbolic_features=config.engine.symbolic_features,
                ghost_loop_detector=config.engine.ghost_loop_detector,
            ),
            rng=random.Random(master.random()),
            recent_batches=config.engine.recent_batches,
        )

    @property
    def gateway(self) -> AnalysisGateway:
        return self._gateway

    @property
    def source(self) -> EventSource:
        return self._source

    @property
    def store(self) -> Optional[KnowledgeStore]:
        return self._store

    @property
    def default_parameters(self) -> DiscoveryParameters:
        """Parameters discover() uses when called without any."""
        return self._defaults

    def update_parameters(self, data: Mapping[str, Any]) -> DiscoveryParameters:
        """Overlay camelCase fields on the current defaults and keep the result."""
        self._defaults = DiscoveryParameters.from_mapping(data, base=self._defaults)
        logger.info("Default parameters updated: %s", self._defaults.to_dict())
        return self._defaults

    # =========================================================================
    # DISCOVERY
    # =========================================================================

    async def discover(
        self,
        parameters: Optional[DiscoveryParameters],
        time_range: TimeRange
    ) -> DiscoveryBatch:
        parameters = parameters or self._defaults
        logger.info("Starting discovery: %s to %s", time_range.start, time_range.end)

        events = await self._fetch_events(parameters, time_range)
        logger.info("Processing %d historical events", len(events))

        results = await asyncio.gather(
            *(analyzer.analyze(events, parameters) for analyzer in self._analyzers)
        )

        now = self._clock()
        stamped = self._stamp([d for batch in results for d in batch], now)
        ranked = tuple(sorted(stamped, key=lambda d: d.confidence, reverse=True))

        batch = DiscoveryBatch(
            discoveries=ranked,
            metrics=DiscoveryMetrics.compute(ranked),
            events_analyzed=len(events),
            timestamp=now,
        )
        self._recent.append(batch)

        if self._store is not None and ranked:
            self._schedule_persistence(ranked, now)

        logger.info(
            "Discovery complete: %d discoveries (%s)",
            batch.metrics.total, batch.metrics.quality_band.value
        )
        return batch

    async def _fetch_events(
        self,
        parameters: DiscoveryParameters,
        time_range: TimeRange
    ) -> List[HistoricalEvent]:
        query = EventQuery(
            start_year=time_range.start,
            end_year=time_range.end,
            region=parameters.region,
            event_types=parameters.event_types,
            limit=parameters.limit,
        )
        try:
            return await self._source.query_events(query)
        except EventSourceError as e:
            logger.warning("Event source failed (%s), using fallback historical data", e)
            return fallback_events(time_range.start, time_range.end)

    async def enriched_events(
        self,
        parameters: Optional[DiscoveryParameters],
        time_range: TimeRange,
        max_enriched: int = 50
    ) -> Dict[str, Any]:
        """
        Query events and enrich the first max_enriched with the seven
        dimensions. total counts every event the source returned.
        """
        parameters = parameters or self._defaults
        events = await self._fetch_events(parameters, time_range)
        enriched = await asyncio.gather(*(self._enrich(e) for e in events[:max_enriched]))
        return {
            "events": list(enriched),
            "total": len(events),
            "source": (events[0].source if events else "") or "wikidata",
        }

    async def _enrich(self, event: HistoricalEvent) -> Dict[str, Any]:
        if self._store is not None:
            try:
                return await self._store.enrich(event)
            except PreservationError as e:
                logger.warning("Enrichment of %s failed (%s), using local dimensions", event.id, e)
        return local_enrichment(event, self._rng, self._clock())

    def _stamp(self, discoveries: List[Discovery], now: datetime) -> List[Discovery]:
        """Assign f"{kind}_{millis}_{suffix}" ids, unique within the batch."""
        millis = int(now.timestamp() * 1000)
        used: Set[str] = set()
        stamped = []
        for discovery in discoveries:
            discovery_id = f"{discovery.kind.value}_{millis}_{random_suffix(self._rng)}"
            while discovery_id in used:
                discovery_id = f"{discovery.kind.value}_{millis}_{random_suffix(self._rng)}"
            used.add(discovery_id)
            stamped.append(discovery.stamped(discovery_id, now))
        return stamped

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _schedule_persistence(self, discoveries: Sequence[Discovery], now: datetime):
        task = asyncio.ensure_future(self._persist(discoveries, now))
        self._persistence.add(task)
        task.add_done_callback(self._persistence.discard)

    async def _persist(self, discoveries: Sequence[Discovery], now: datetime):
        for discovery in discoveries:
            record = PreservationRecord.from_discovery(discovery, now)
            try:
                await self._store.preserve(record)
            except PreservationError as e:
                logger.warning("Failed to preserve %s: %s", discovery.id, e)
            except Exception:
                logger.exception("Unexpected error preserving %s", discovery.id)

    async def wait_for_persistence(self):
        """Wait until every scheduled persistence task has finished."""
        while self._persistence:
            await asyncio.gather(*list(self._persistence))

    # =========================================================================
    # STATUS
    # =========================================================================

    def recent_batches(self) -> List[DiscoveryBatch]:
        """Retained batches, oldest first."""
        return list(self._recent)

    def get_status(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {
            "ai": {name: s.to_dict() for name, s in self._gateway.get_provider_status().items()},
            "activeProvider": self._gateway.active_provider,
            "detectors": {a.kind.value: a.detector_available for a in self._analyzers},
            "recentBatches": len(self._recent),
            "pendingPersistence": len(self._persistence),
            "cache": self._gateway.cache.get_stats().to_dict(),
            "ready": True,
        }
        if isinstance(self._store, AkashaKnowledgeStore):
            status["preservation"] = self._store.get_status()
        elif isinstance(self._store, LocalKnowledgeStore):
            status["preservation"] = {"connected": False, "local": self._store.get_stats()}
        return status

    async def aclose(self):
        await self.wait_for_persistence()
        await self._gateway.aclose()
        await self._source.aclose()
        if self._store is not None:
            await self._store.aclose()
