"""Static event source and fallback dataset tests."""

import pytest

from discovery.contracts.events import Coordinates, EventQuery, EventType
from sources.static import StaticEventSource, fallback_events
from tests.fixtures import ATHENS, CORINTH, EUROPE, SPARTA, make_event


class TestFallbackDataset:

    def test_anchored_at_start_year(self):
        events = fallback_events(-1200, -1000)

        assert [e.id for e in events] == ["Q47064", "Q208823", "Q180299"]
        assert [e.year for e in events] == [-1200, -1150, -1180]
        assert all(e.source == "fallback" for e in events)
        assert all(e.coordinates is not None for e in events)

    def test_types(self):
        types = [e.type for e in fallback_events(0, 100)]
        assert types == [EventType.COLLAPSE, EventType.MIGRATION, EventType.CONFLICT]


class TestStaticEventSource:

    @pytest.mark.asyncio
    async def test_filters_year_type_and_limit(self):
        source = StaticEventSource([
            make_event("a", year=-600, event_type=EventType.TRADE),
            make_event("b", year=-500, event_type=EventType.CONFLICT),
            make_event("c", year=-450, event_type=EventType.TRADE),
            make_event("d", year=-300, event_type=EventType.TRADE),
        ])

        in_range = await source.query_events(EventQuery(start_year=-550, end_year=-400))
        assert [e.id for e in in_range] == ["b", "c"]

        trade = await source.query_events(
            EventQuery(start_year=-700, end_year=0, event_types=("trade",), limit=2)
        )
        assert [e.id for e in trade] == ["a", "c"]
        assert len(source.queries) == 2


class TestStaticLookups:

    def source(self):
        return StaticEventSource([
            make_event("a", year=-500, location=SPARTA),
            make_event("b", year=-480, location=ATHENS),
            make_event("c", year=-470, location=CORINTH),
            make_event("d", year=-490),
            make_event("e", year=-300, location=EUROPE),
        ])

    @pytest.mark.asyncio
    async def test_nearby_nearest_first(self):
        nearby = await self.source().query_nearby(Coordinates(*ATHENS), 200, -600, -400)
        assert [e.id for e in nearby] == ["b", "c", "a"]

    @pytest.mark.asyncio
    async def test_nearby_radius_years_and_limit(self):
        source = self.source()
        assert [e.id for e in await source.query_nearby(Coordinates(*ATHENS), 10, -600, -400)] == ["b"]
        assert await source.query_nearby(Coordinates(*EUROPE), 50, -600, -400) == []
        assert len(await source.query_nearby(Coordinates(*ATHENS), 200, -600, -400, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_related_within_year_radius(self):
        related = await self.source().query_related("a", year_radius=25)
        assert [e.id for e in related] == ["b", "d"]
        assert await self.source().query_related("missing") == []

    @pytest.mark.asyncio
    async def test_get_event(self):
        source = self.source()
        assert (await source.get_event("c")).id == "c"
        assert await source.get_event("missing") is None
