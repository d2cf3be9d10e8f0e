"""Contract validation tests: events, parameters, discoveries, configuration."""

from datetime import datetime

import pytest

from discovery.config import ChronosphereConfig
from discovery.contracts.discoveries import (
    Discovery,
    DiscoveryKind,
    DiscoveryMetrics,
    DiscoveryParameters,
    QualityBand,
)
from discovery.contracts.events import Coordinates, EventType, HistoricalEvent, TimeRange


class TestEventContracts:

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            HistoricalEvent(id="", title="x", year=1)

    def test_confidence_range_enforced(self):
        with pytest.raises(ValueError):
            HistoricalEvent(id="a", title="x", year=1, confidence=1.5)

    @pytest.mark.parametrize("lat,lng", [(91.0, 0.0), (0.0, -181.0)])
    def test_coordinates_range_enforced(self, lat, lng):
        with pytest.raises(ValueError):
            Coordinates(lat, lng)

    def test_inverted_time_range_rejected(self):
        with pytest.raises(ValueError):
            TimeRange(-400, -500)

    def test_unknown_type_label_parses_to_event(self):
        assert EventType.parse("coronation") == EventType.EVENT
        assert EventType.parse("Conflict") == EventType.CONFLICT

    def test_from_dict(self):
        event = HistoricalEvent.from_dict({
            "id": 7, "title": "Marathon", "year": "-490",
            "type": "conflict", "coordinates": {"lat": 38.1, "lng": 23.97},
        })
        assert event.id == "7"
        assert event.year == -490
        assert event.type == EventType.CONFLICT
        assert event.coordinates == Coordinates(38.1, 23.97)


class TestParameters:

    def test_defaults(self):
        parameters = DiscoveryParameters()
        assert parameters.time_window_radius == 50
        assert parameters.synchronicity_threshold == 0.75
        assert parameters.network_density == 0.5
        assert parameters.anomaly_detection == 0.7

    def test_thresholds_clamped(self):
        parameters = DiscoveryParameters(synchronicity_threshold=2.0, network_density=-1.0)
        assert parameters.synchronicity_threshold == 1.0
        assert parameters.network_density == 0.0

    def test_non_positive_radius_replaced(self):
        assert DiscoveryParameters(time_window_radius=0).time_window_radius == 50

    def test_unknown_speed_tier_replaced(self):
        assert DiscoveryParameters(speed_tier="ludicrous").speed_tier == "smart"

    def test_from_mapping_reads_camel_case(self):
        parameters = DiscoveryParameters.from_mapping({
            "timeWindowRadius": 100,
            "anomalyDetection": 0.9,
            "eventTypes": ["conflict"],
            "speedTier": "fast",
            "unrelated": True,
        })
        assert parameters.time_window_radius == 100
        assert parameters.anomaly_detection == 0.9
        assert parameters.event_types == ("conflict",)
        assert parameters.speed_tier == "fast"
        assert parameters.synchronicity_threshold == 0.75


class TestDiscoveryContracts:

    def test_confidence_clamped(self):
        assert Discovery(kind=DiscoveryKind.ANOMALY, confidence=1.7).confidence == 1.0
        assert Discovery(kind=DiscoveryKind.ANOMALY, confidence=-0.2).confidence == 0.0

    @pytest.mark.parametrize("average,band", [
        (0.71, QualityBand.HIGH),
        (0.7, QualityBand.MEDIUM),
        (0.51, QualityBand.MEDIUM),
        (0.5, QualityBand.LOW),
        (0.0, QualityBand.LOW),
    ])
    def test_quality_band_boundaries(self, average, band):
        assert QualityBand.from_average(average) == band

    def test_to_dict_merges_payload(self):
        created = datetime(2026, 1, 1)
        discovery = Discovery(
            kind=DiscoveryKind.COLLAPSE, confidence=0.5, payload={"civilization": "Egypt"}
        ).stamped("collapse_1_abc", created)

        data = discovery.to_dict()
        assert data["id"] == "collapse_1_abc"
        assert data["type"] == "collapse"
        assert data["civilization"] == "Egypt"
        assert data["timestamp"] == int(created.timestamp() * 1000)

    def test_metrics_count_every_kind(self):
        metrics = DiscoveryMetrics.compute((
            Discovery(kind=DiscoveryKind.NETWORK, confidence=0.8),
            Discovery(kind=DiscoveryKind.NETWORK, confidence=0.6),
        ))
        assert metrics.per_kind["network"] == 2
        assert metrics.per_kind["ghost_loop"] == 0
        assert metrics.to_dict()["quality"] == "medium"

    def test_metrics_by_type_uses_plural_keys(self):
        metrics = DiscoveryMetrics.compute((
            Discovery(kind=DiscoveryKind.GHOST_LOOP, confidence=0.4),
            Discovery(kind=DiscoveryKind.ANOMALY, confidence=0.9),
        ))
        assert metrics.to_dict()["byType"] == {
            "synchronicities": 0,
            "networks": 0,
            "collapses": 0,
            "anomalies": 1,
            "ghostLoops": 1,
        }


class TestConfiguration:

    def test_defaults(self):
        config = ChronosphereConfig()
        assert config.gateway.active_provider == "openai"
        assert config.sources.cache_ttl_seconds == 3600.0
        assert config.preservation.endpoint is None
        assert config.engine.recent_batches == 5

    def test_from_env(self):
        config = ChronosphereConfig.from_env({
            "AI_PROVIDER": "groq",
            "GROQ_API_KEY": "gk",
            "ANALYSIS_CACHE_TTL": "60",
            "WIKIDATA_ENDPOINT": "http://localhost:9999/sparql",
            "AKASHA_ENDPOINT": "http://localhost:8080",
            "AKASHA_STORAGE_PATH": "/tmp/akasha",
            "CHRONOSPHERE_SEED": "42",
        })
        assert config.gateway.active_provider == "groq"
        assert config.gateway.groq_api_key == "gk"
        assert config.gateway.openai_api_key is None
        assert config.gateway.cache_ttl_seconds == 60.0
        assert config.sources.endpoint == "http://localhost:9999/sparql"
        assert config.preservation.endpoint == "http://localhost:8080"
        assert config.preservation.storage_path == "/tmp/akasha"
        assert config.engine.seed == 42

    def test_invalid_numbers_fall_back_to_defaults(self):
        config = ChronosphereConfig.from_env({
            "ANALYSIS_CACHE_TTL": "soon", "CHRONOSPHERE_SEED": "x",
        })
        assert config.gateway.cache_ttl_seconds == 3600.0
        assert config.engine.seed is None
