"""
Pattern Analyzer Tests
======================

Analyzers run against a scripted gateway; no network.

INVARIANTS TESTED:
1. Empty input → [] without a gateway call
2. Each analyzer's gating rule (buckets, thresholds, indicator matching)
3. Payload shape and event references
"""

import pytest

from discovery.analyzers import (
    AnomalyAnalyzer,
    CollapseAnalyzer,
    GhostLoopAnalyzer,
    NetworkAnalyzer,
    SynchronicityAnalyzer,
)
from discovery.contracts.discoveries import DiscoveryKind, DiscoveryParameters
from discovery.contracts.events import EventType
from discovery.core.geometry import diffusion_velocity
from discovery.core.ghost_loops import GhostLoopDetector
from discovery.core.symbolic import MaterialCulturePatternDetector, SymbolicProcessor
from gateway.contracts import PatternKind
from tests.fixtures import (
    ASIA,
    ATHENS,
    CORINTH,
    EUROPE,
    SPARTA,
    NETWORK_RESPONSE,
    make_event,
    scripted_gateway,
    three_region_events,
)


@pytest.mark.asyncio
@pytest.mark.parametrize("analyzer_cls", [
    SynchronicityAnalyzer, NetworkAnalyzer, CollapseAnalyzer, AnomalyAnalyzer, GhostLoopAnalyzer,
])
async def test_empty_input_skips_gateway(analyzer_cls):
    gateway, provider = scripted_gateway()
    analyzer = analyzer_cls(gateway)

    assert await analyzer.analyze([], DiscoveryParameters()) == []
    assert provider.call_count == 0


class TestSynchronicityAnalyzer:

    @pytest.mark.asyncio
    async def test_three_regions_in_one_century_bucket(self):
        gateway, provider = scripted_gateway()
        analyzer = SynchronicityAnalyzer(gateway)

        discoveries = await analyzer.analyze(
            three_region_events(), DiscoveryParameters(time_window_radius=100)
        )

        assert len(discoveries) == 1
        discovery = discoveries[0]
        assert discovery.kind == DiscoveryKind.SYNCHRONICITY
        assert discovery.confidence == pytest.approx(0.85)
        assert discovery.payload["period"] == -600
        assert discovery.payload["regions"] == ["Europe", "Asia", "Africa"]
        assert discovery.payload["pattern"] == "philosophical_awakening"
        assert [e["id"] for e in discovery.events] == ["e1", "e2", "e3"]
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_below_threshold_dropped(self):
        gateway, _ = scripted_gateway()
        analyzer = SynchronicityAnalyzer(gateway)

        discoveries = await analyzer.analyze(
            three_region_events(),
            DiscoveryParameters(time_window_radius=100, synchronicity_threshold=0.9),
        )
        assert discoveries == []

    @pytest.mark.asyncio
    async def test_two_regions_never_sent(self):
        gateway, provider = scripted_gateway()
        events = [
            make_event("a", year=-550, location=EUROPE),
            make_event("b", year=-540, location=EUROPE),
            make_event("c", year=-530, location=ASIA),
        ]

        assert await SynchronicityAnalyzer(gateway).analyze(
            events, DiscoveryParameters(time_window_radius=100)
        ) == []
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_window_splits_bucket(self):
        gateway, provider = scripted_gateway()
        events = three_region_events(years=(-560, -540, -510))

        discoveries = await SynchronicityAnalyzer(gateway).analyze(
            events, DiscoveryParameters(time_window_radius=50)
        )
        assert discoveries == []
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_semantic_similarity_with_processor(self):
        gateway, _ = scripted_gateway()
        events = [
            make_event("e1", "Temple built", -550, location=EUROPE, description="stone temple built"),
            make_event("e2", "Temple built", -520, location=ASIA, description="stone temple built"),
            make_event("e3", "Kush", -510, location=(-10.0, 20.0), description="river kingdom"),
        ]
        analyzer = SynchronicityAnalyzer(gateway, symbolic=SymbolicProcessor())

        discoveries = await analyzer.analyze(events, DiscoveryParameters(time_window_radius=100))

        assert analyzer.detector_available
        assert discoveries[0].payload["semanticSimilarity"] == pytest.approx(1.0)


class TestNetworkAnalyzer:

    def events(self):
        return [
            make_event("a", "Athens", -500, EventType.TRADE, ATHENS),
            make_event("b", "Corinth", -480, EventType.TRADE, CORINTH),
            make_event("c", "Sparta", -470, EventType.CONFLICT, SPARTA),
        ]

    @pytest.mark.asyncio
    async def test_networks_gated_by_density(self):
        gateway, provider = scripted_gateway()
        discoveries = await NetworkAnalyzer(gateway).analyze(self.events(), DiscoveryParameters())

        assert provider.call_count == 1
        assert [d.payload["networkType"] for d in discoveries] == ["trade", "cultural"]
        assert all(d.confidence == pytest.approx(0.7) for d in discoveries)

    @pytest.mark.asyncio
    async def test_payload_velocity_routes_and_cluster(self):
        gateway, _ = scripted_gateway()
        events = self.events()
        trade = (await NetworkAnalyzer(gateway).analyze(events, DiscoveryParameters()))[0]

        assert [e["id"] for e in trade.events] == ["a", "b"]
        assert trade.payload["velocity"] == pytest.approx(diffusion_velocity(events[:2]))
        assert trade.payload["routes"][0]["from"] == "Athens"
        assert trade.payload["clusterSize"] == 3
        assert trade.payload["diffusionGraph"] == {
            "nodes": 3, "edges": 2, "density": pytest.approx(0.6667), "components": 1,
        }
        assert trade.payload["strength"] == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_higher_density_keeps_fewer(self):
        gateway, _ = scripted_gateway()
        discoveries = await NetworkAnalyzer(gateway).analyze(
            self.events(), DiscoveryParameters(network_density=0.7)
        )
        assert len(discoveries) == 1
        assert discoveries[0].payload["clusterSize"] == 2

    @pytest.mark.asyncio
    async def test_material_culture_patterns_added(self):
        gateway, _ = scripted_gateway({
            PatternKind.NETWORK: {"networks": [], "confidence": 0.3},
        })
        events = [
            make_event("a", year=-500, event_type=EventType.TRADE, description="bronze ingot trade"),
            make_event("b", year=-490, event_type=EventType.TRADE, description="bronze ingot trade"),
            make_event("c", year=-480, event_type=EventType.CONFLICT, description="siege"),
        ]
        analyzer = NetworkAnalyzer(gateway, material_culture=MaterialCulturePatternDetector())

        discoveries = await analyzer.analyze(events, DiscoveryParameters())

        assert len(discoveries) == 1
        assert discoveries[0].payload["networkType"] == "material_culture"
        assert discoveries[0].payload["pattern"] == "trade"
        assert discoveries[0].confidence == pytest.approx(1.0)


class TestCollapseAnalyzer:

    def events(self):
        return [
            make_event("eg1", "Nile drought", -1180, country="Egypt"),
            make_event("eg2", "Sea Peoples raid", -1177, country="Egypt"),
            make_event("h1", "Hattusa burned", -1180, country="Hittite Empire"),
        ]

    @pytest.mark.asyncio
    async def test_civilization_with_two_indicators(self):
        gateway, _ = scripted_gateway()
        discoveries = await CollapseAnalyzer(gateway).analyze(self.events(), DiscoveryParameters())

        assert len(discoveries) == 1
        discovery = discoveries[0]
        assert discovery.payload["civilization"] == "Egypt"
        assert discovery.payload["period"] == "-1180 to -1177"
        assert [i["type"] for i in discovery.payload["indicators"]] == ["climate", "military"]
        assert discovery.confidence == pytest.approx(0.5)
        assert discovery.payload["riskLevel"] == pytest.approx(0.75)

    @pytest.mark.asyncio
    async def test_fewer_than_three_indicators_yields_nothing(self):
        gateway, _ = scripted_gateway({PatternKind.COLLAPSE: {
            "indicators": [
                {"type": "climate", "severity": 0.7, "events": ["eg1"]},
                {"type": "military", "severity": 0.8, "events": ["eg2"]},
            ],
            "riskLevel": 0.5,
        }})
        assert await CollapseAnalyzer(gateway).analyze(self.events(), DiscoveryParameters()) == []

    @pytest.mark.asyncio
    async def test_confidence_caps_at_095(self):
        indicators = [
            {"type": "social", "severity": 0.5, "events": ["eg1"]} for _ in range(5)
        ]
        gateway, _ = scripted_gateway({PatternKind.COLLAPSE: {
            "indicators": indicators, "riskLevel": 0.9,
        }})
        discoveries = await CollapseAnalyzer(gateway).analyze(self.events(), DiscoveryParameters())
        assert discoveries[0].confidence == pytest.approx(0.95)


class TestAnomalyAnalyzer:

    @pytest.mark.asyncio
    async def test_scores_gated_and_references_resolved(self):
        gateway, _ = scripted_gateway()
        events = [make_event("e1", "Antikythera mechanism", -100), make_event("e2")]

        discoveries = await AnomalyAnalyzer(gateway).analyze(events, DiscoveryParameters())

        assert len(discoveries) == 2
        known, unknown = discoveries
        assert known.events[0]["id"] == "e1"
        assert known.payload["score"] == pytest.approx(0.9)
        assert known.payload["explanations"] == ["Lost knowledge"]
        assert known.confidence == pytest.approx(0.65)
        assert unknown.events[0]["id"] is None
        assert unknown.events[0]["title"] == "Mystery artifact"

    @pytest.mark.asyncio
    async def test_threshold_parameter(self):
        gateway, _ = scripted_gateway()
        events = [make_event("e1"), make_event("e2")]
        discoveries = await AnomalyAnalyzer(gateway).analyze(
            events, DiscoveryParameters(anomaly_detection=0.85)
        )
        assert len(discoveries) == 1


class TestGhostLoopAnalyzer:

    @pytest.mark.asyncio
    async def test_temporal_clusters_without_detector(self):
        events = [make_event(f"e{i}", year=-500, location=EUROPE) for i in range(4)]
        events += [make_event(f"x{i}", year=-400, location=EUROPE) for i in range(3)]

        discoveries = await GhostLoopAnalyzer().analyze(events, DiscoveryParameters())

        assert len(discoveries) == 1
        assert discoveries[0].payload == {"subType": "temporal_cluster", "year": -500, "region": "Europe"}
        assert discoveries[0].confidence == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_detector_patterns_and_recurring(self):
        events = [
            make_event("a", year=-500, event_type=EventType.CONFLICT),
            make_event("b", year=-490, event_type=EventType.TRADE),
            make_event("c", year=-480, event_type=EventType.CONFLICT),
            make_event("d", year=-470, event_type=EventType.TRADE),
        ]
        analyzer = GhostLoopAnalyzer(detector=GhostLoopDetector())
        discoveries = await analyzer.analyze(events, DiscoveryParameters())

        sub_types = [d.payload["subType"] for d in discoveries]
        assert sub_types[0] == "pattern"
        assert "recurring" in sub_types
        assert analyzer.detector_available

        pattern = discoveries[0]
        assert pattern.payload["pattern"] == ["conflict", "trade"]
        assert pattern.confidence == pytest.approx(1.0)
