"""
Local Knowledge Store Tests

INVARIANTS TESTED:
1. Records persist across store instances
2. Sync bookkeeping changes status, never deletes
3. Filters by type, confidence and text
4. SQLite work never blocks the event loop
"""

import random
from datetime import datetime

import pytest

from discovery.contracts.discoveries import Discovery, DiscoveryKind
from preservation.contracts import PreservationFilter, PreservationRecord
from preservation.local import LocalKnowledgeStore
from tests.fixtures import FakeClock, slowed, ticks_during

NOW = datetime(2026, 3, 1, 12, 0, 0)


def make_record(kind=DiscoveryKind.ANOMALY, confidence=0.8, **payload) -> PreservationRecord:
    discovery = Discovery(kind=kind, confidence=confidence, payload=payload).stamped(
        f"{kind.value}_1_abc", NOW
    )
    return PreservationRecord.from_discovery(discovery, NOW)


@pytest.fixture
def store(tmp_path):
    return LocalKnowledgeStore(tmp_path, clock=FakeClock(NOW), rng=random.Random(1))


class TestRecordFormat:

    def test_wire_format(self):
        data = make_record(confidence=0.95).to_dict()

        assert data["type"] == "historical_discovery"
        assert data["subtype"] == "anomaly"
        assert data["dimensions"] == 7
        assert data["metadata"]["source"] == "ChronoSphere"
        assert data["metadata"]["preservation_level"] == "permanent"
        assert data["metadata"]["timestamp"] == int(NOW.timestamp() * 1000)
        assert data["verification_required"] is False

    def test_round_trip(self):
        record = make_record(confidence=0.6)
        assert PreservationRecord.from_dict(record.to_dict()) == record


class TestLocalStore:

    @pytest.mark.asyncio
    async def test_preserve_returns_local_receipt(self, store):
        receipt = await store.preserve(make_record())

        assert receipt.status == "local"
        assert receipt.id.startswith(f"akasha_{int(NOW.timestamp() * 1000)}_")
        assert store.get_stats()["local"] == 1

    def test_persists_across_instances(self, tmp_path, store):
        store.store(make_record())
        reopened = LocalKnowledgeStore(tmp_path)
        assert len(reopened.query_sync(PreservationFilter())) == 1

    def test_query_filters(self, store):
        store.store(make_record(DiscoveryKind.ANOMALY, 0.9, description="Antikythera gears"))
        store.store(make_record(DiscoveryKind.ANOMALY, 0.4, description="Odd pottery"))
        store.store(make_record(DiscoveryKind.NETWORK, 0.8, networkType="trade"))

        assert len(store.query_sync(PreservationFilter(type="anomaly"))) == 2
        assert len(store.query_sync(PreservationFilter(min_confidence=0.7))) == 2
        assert len(store.query_sync(PreservationFilter(query="antikythera"))) == 1
        assert len(store.query_sync(PreservationFilter(limit=1))) == 1

    def test_pending_bookkeeping(self, store):
        first = store.store(make_record(), pending=True)
        store.store(make_record(), pending=True)
        assert first.status == "pending"

        pending = store.pending()
        assert [p[0] for p in pending][0] == first.id
        assert pending[0][1] == make_record()

        store.mark_synced(first.id)
        stats = store.get_stats()
        assert stats["pending"] == 1
        assert stats["synced"] == 1
        assert len(store.query_sync(PreservationFilter())) == 2

    def test_abandoned_after_max_attempts(self, store):
        receipt = store.store(make_record(), pending=True)

        assert store.record_failed_attempt(receipt.id, max_attempts=3) == 1
        assert store.record_failed_attempt(receipt.id, max_attempts=3) == 2
        assert store.pending()
        assert store.record_failed_attempt(receipt.id, max_attempts=3) == 3

        assert store.pending() == []
        assert store.get_stats()["abandoned"] == 1

    def test_unknown_record_attempt_ignored(self, store):
        assert store.record_failed_attempt("missing", max_attempts=3) == 0


class TestEventLoopResponsiveness:

    @pytest.mark.asyncio
    async def test_loop_keeps_running_during_preserve(self, store, monkeypatch):
        monkeypatch.setattr(store, "store", slowed(store.store))

        receipt, ticks = await ticks_during(store.preserve(make_record()))

        assert receipt.status == "local"
        assert ticks >= 5

    @pytest.mark.asyncio
    async def test_loop_keeps_running_during_query(self, store, monkeypatch):
        store.store(make_record())
        monkeypatch.setattr(store, "query_sync", slowed(store.query_sync))

        results, ticks = await ticks_during(store.query(PreservationFilter()))

        assert len(results) == 1
        assert ticks >= 5
