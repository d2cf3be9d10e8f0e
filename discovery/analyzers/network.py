"""Network analyzer: reconstructed trade/cultural/migration networks."""

from __future__ import annotations
from typing import List, Optional

from gateway.contracts import PatternKind
from ..contracts.discoveries import Discovery, DiscoveryKind, DiscoveryParameters
from ..contracts.events import HistoricalEvent
from ..core.geometry import diffusion_velocity
from ..core.symbolic import MaterialCulturePatternDetector
from ..core.topology import DiffusionGraph
from .base import EventIndex, PatternAnalyzer, references


class NetworkAnalyzer(PatternAnalyzer):
    """
    One classifier call over the whole set. Networks with strength at or
    above network_density are kept, with diffusion velocity over the
    resolved member events, the size of their diffusion cluster and the
    structural metrics of the graph all kept networks form.

    The optional material-culture detector adds networks from symbolic
    features, gated by the same density.
    """

    kind = DiscoveryKind.NETWORK

    def __init__(self, gateway, material_culture: Optional[MaterialCulturePatternDetector] = None):
        super().__init__(gateway)
        self._material_culture = material_culture

    @property
    def detector_available(self) -> bool:
        return self._material_culture is not None

    async def _analyze(
        self,
        events: List[HistoricalEvent],
        parameters: DiscoveryParameters
    ) -> List[Discovery]:
        result = await self._gateway.analyze(events, PatternKind.NETWORK, parameters.speed_tier)
        payload = result.payload
        index = EventIndex(events)

        kept = [n for n in payload.networks if n.strength >= parameters.network_density]
        graph = DiffusionGraph.build(n.nodes for n in kept)
        metrics = graph.compute_metrics().to_dict()
        routes = [r.model_dump(by_alias=True) for r in payload.routes]

        discoveries = []
        for network in kept:
            members = index.resolve_all(network.nodes)
            discoveries.append(Discovery(
                kind=self.kind,
                confidence=result.confidence,
                events=references(members),
                payload={
                    "networkType": network.type,
                    "nodes": list(network.nodes),
                    "period": network.period,
                    "evidence": list(network.evidence),
                    "strength": network.strength,
                    "velocity": diffusion_velocity(members),
                    "routes": routes,
                    "clusterSize": graph.cluster_size(network.nodes),
                    "diffusionGraph": metrics,
                    "provider": result.provider_id,
                },
            ))

        if self._material_culture is not None:
            for pattern in self._material_culture.find_patterns(events):
                if pattern.confidence < parameters.network_density:
                    continue
                discoveries.append(Discovery(
                    kind=self.kind,
                    confidence=pattern.confidence,
                    events=references(pattern.members),
                    payload={
                        "networkType": "material_culture",
                        "pattern": pattern.label,
                        "strength": pattern.strength,
                        "similarity": pattern.similarity,
                    },
                ))

        return discoveries
