"""
Wikidata Event Source

Queries the Wikidata SPARQL endpoint for dated historical events.

PRINCIPLES:
===========
1. One POST per uncached query; results cached for the TTL
2. Failures raise EventSourceError, never return partial data
3. Parse with maximum tolerance: bad coordinates are dropped, not fatal
4. BCE dates are handled explicitly (Python datetimes stop at year 1)
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import logging
import random
import re

import httpx

from discovery.contracts.events import Coordinates, EventQuery, EventType, HistoricalEvent
from .contracts import EventSource, EventSourceConfig, EventSourceError

logger = logging.getLogger(__name__)


DEFAULT_EVENT_CLASSES = (
    "Q178561",   # battle
    "Q198",      # war
    "Q3839081",  # disaster
    "Q1190554",  # occurrence
    "Q13418847", # historical event
    "Q2334719",  # historical period
    "Q1656682",  # event
    "Q3241121",  # archaeological culture
    "Q839954",   # archaeological site
)

_QID = re.compile(r"Q\d+")
_POINT = re.compile(r"Point\(([-\d.]+) ([-\d.]+)\)")
_YEAR = re.compile(r"^([+-]?\d+)-")

# Keyword classifier; first matching rule wins
_TYPE_KEYWORDS: Tuple[Tuple[EventType, Tuple[str, ...]], ...] = (
    (EventType.CONFLICT, ("battle", "war", "conflict")),
    (EventType.COLLAPSE, ("collapse", "fall", "decline")),
    (EventType.TRADE, ("trade", "route", "merchant")),
    (EventType.MIGRATION, ("migration", "movement", "exodus")),
    (EventType.DISCOVERY, ("discovery", "invention", "innovation")),
    (EventType.CULTURAL, ("philosophy", "religion", "spiritual")),
    (EventType.DISASTER, ("disaster", "earthquake", "volcano")),
)


def classify_event_type(type_label: str, title: str, description: str) -> EventType:
    text = f"{type_label} {title} {description}".lower()
    for event_type, keywords in _TYPE_KEYWORDS:
        if any(k in text for k in keywords):
            return event_type
    return EventType.EVENT


def parse_year(value: str) -> int:
    """Signed year from an xsd:dateTime literal; 0 when unparseable."""
    match = _YEAR.match(value or "")
    return int(match.group(1)) if match else 0


def parse_point(value: str) -> Optional[Coordinates]:
    """WKT 'Point(lng lat)' → Coordinates, None when missing or out of range."""
    match = _POINT.search(value or "")
    if not match:
        return None
    try:
        return Coordinates(lat=float(match.group(2)), lng=float(match.group(1)))
    except ValueError:
        return None


def _xsd_date(year: int, month_day: str) -> str:
    return f"{'-' if year < 0 else ''}{abs(year)}-{month_day}"


_PREFIXES = """
PREFIX wd: <http://www.wikidata.org/entity/>
PREFIX wdt: <http://www.wikidata.org/prop/direct/>
PREFIX wikibase: <http://wikiba.se/ontology#>
PREFIX bd: <http://www.bigdata.com/rdf#>
PREFIX schema: <http://schema.org/>
PREFIX xsd: <http://www.w3.org/2001/XMLSchema#>"""


def build_sparql(
    start_year: int,
    end_year: int,
    event_classes: Sequence[str],
    limit: int
) -> str:
    """SPARQL for events of the given classes dated within [start_year, end_year]."""
    start_date = _xsd_date(start_year, "01-01")
    end_date = _xsd_date(end_year, "12-31")
    type_filter = " ".join(f"?event wdt:P31/wdt:P279* wd:{q}." for q in event_classes)

    return f"""{_PREFIXES}

SELECT DISTINCT ?event ?eventLabel ?date ?coords ?description ?typeLabel ?countryLabel ?image WHERE {{
  {{ {type_filter} }}

  ?event wdt:P585 ?date.
  FILTER(?date >= "{start_date}"^^xsd:dateTime && ?date <= "{end_date}"^^xsd:dateTime)

  OPTIONAL {{ ?event wdt:P625 ?coords. }}
  OPTIONAL {{ ?event schema:description ?description FILTER (lang(?description) = "en") }}
  OPTIONAL {{ ?event wdt:P31 ?type. }}
  OPTIONAL {{ ?event wdt:P17 ?country. }}
  OPTIONAL {{ ?event wdt:P18 ?image. }}

  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "en". }}
}}
ORDER BY ?date
LIMIT {limit}"""


def build_nearby_sparql(
    center: Coordinates,
    radius_km: float,
    start_year: int,
    end_year: int,
    limit: int
) -> str:
    """SPARQL for dated occurrences within radius_km of center, nearest first."""
    return f"""{_PREFIXES}
PREFIX geo: <http://www.opengis.net/ont/geosparql#>
PREFIX geof: <http://www.opengis.net/def/function/geosparql/>

SELECT ?event ?eventLabel ?date ?coords ?distance WHERE {{
  ?event wdt:P31/wdt:P279* wd:Q1190554.
  ?event wdt:P625 ?coords.
  ?event wdt:P585 ?date.

  BIND(geof:distance(?coords, "Point({float(center.lng)} {float(center.lat)})"^^geo:wktLiteral) AS ?distance)
  FILTER(?distance <= {float(radius_km)})
  FILTER(?date >= "{_xsd_date(start_year, '01-01')}"^^xsd:dateTime && ?date <= "{_xsd_date(end_year, '12-31')}"^^xsd:dateTime)

  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "en". }}
}}
ORDER BY ?distance
LIMIT {int(limit)}"""


def build_related_sparql(event_id: str, year_radius: int, limit: int = 100) -> str:
    """SPARQL for events dated within year_radius years of event_id (a Q-id)."""
    return f"""{_PREFIXES}

SELECT ?event ?eventLabel ?date ?coords WHERE {{
  wd:{event_id} wdt:P585 ?mainDate.
  ?event wdt:P585 ?date.

  FILTER(ABS(YEAR(?date) - YEAR(?mainDate)) <= {int(year_radius)})
  FILTER(?event != wd:{event_id})

  OPTIONAL {{ ?event wdt:P625 ?coords. }}

  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "en". }}
}}
LIMIT {int(limit)}"""


def build_details_sparql(event_id: str) -> str:
    """SPARQL for one event (a Q-id) with its description, type and country."""
    return f"""{_PREFIXES}

SELECT ?event ?eventLabel ?date ?coords ?description ?typeLabel ?countryLabel WHERE {{
  BIND(wd:{event_id} AS ?event)

  OPTIONAL {{ ?event wdt:P585 ?date. }}
  OPTIONAL {{ ?event wdt:P625 ?coords. }}
  OPTIONAL {{ ?event schema:description ?description FILTER (lang(?description) = "en") }}
  OPTIONAL {{ ?event wdt:P31 ?type. }}
  OPTIONAL {{ ?event wdt:P17 ?country. }}

  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "en". }}
}}
LIMIT 1"""


class WikidataEventSource(EventSource):
    """
    SPARQL-backed event source.

    GUARANTEES:
    ===========
    1. Cached results are returned until cache_ttl_seconds elapse; expired
       entries are pruned on every write
    2. Unlabeled events are dropped
    3. Event types given as Q-ids narrow the SPARQL class filter; other
       labels (e.g. "conflict") filter the classified results
    4. Ids that are not Q-ids never reach the endpoint
    """

    def __init__(
        self,
        config: Optional[EventSourceConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._config = config or EventSourceConfig()
        self._clock = clock or datetime.now
        self._rng = rng or random.Random()
        self._transport = transport
        self._cache: Dict[str, Tuple[List[HistoricalEvent], datetime]] = {}

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    async def query_events(self, query: EventQuery) -> List[HistoricalEvent]:
        key = query.cache_key()
        cached = self._cached(key)
        if cached is not None:
            return cached

        classes = [t for t in query.event_types if _QID.fullmatch(t)] or list(DEFAULT_EVENT_CLASSES)
        labels = {t.lower() for t in query.event_types if not _QID.fullmatch(t)}
        sparql = build_sparql(query.start_year, query.end_year, classes, query.limit)

        logger.info("Querying Wikidata for events %s to %s", query.start_year, query.end_year)
        events = await self._select(sparql)

        if labels:
            events = [e for e in events if e.type.value in labels]

        self._remember(key, events)
        logger.info("Found %d historical events", len(events))
        return list(events)

    async def query_nearby(
        self,
        center: Coordinates,
        radius_km: float,
        start_year: int,
        end_year: int,
        limit: int = 500
    ) -> List[HistoricalEvent]:
        key = f"nearby_{center.lat}_{center.lng}_{radius_km}_{start_year}_{end_year}_{limit}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        logger.info("Querying Wikidata within %skm of (%s, %s)", radius_km, center.lat, center.lng)
        events = await self._select(build_nearby_sparql(center, radius_km, start_year, end_year, limit))
        self._remember(key, events)
        return list(events)

    async def query_related(self, event_id: str, year_radius: int = 100) -> List[HistoricalEvent]:
        if not _QID.fullmatch(event_id):
            return []
        key = f"related_{event_id}_{year_radius}"
        cached = self._cached(key)
        if cached is not None:
            return cached

        events = await self._select(build_related_sparql(event_id, year_radius))
        self._remember(key, events)
        return list(events)

    async def get_event(self, event_id: str) -> Optional[HistoricalEvent]:
        if not _QID.fullmatch(event_id):
            return None
        events = await self._select(build_details_sparql(event_id))
        return events[0] if events else None

    def _cached(self, key: str) -> Optional[List[HistoricalEvent]]:
        cached = self._cache.get(key)
        if cached is None:
            return None
        events, stored_at = cached
        if self._expired(stored_at):
            del self._cache[key]
            return None
        logger.debug("Returning cached Wikidata results for %s", key)
        return list(events)

    def _remember(self, key: str, events: List[HistoricalEvent]):
        for stale in [k for k, (_, stored_at) in self._cache.items() if self._expired(stored_at)]:
            del self._cache[stale]
        self._cache[key] = (events, self._clock())

    def _expired(self, stored_at: datetime) -> bool:
        return (self._clock() - stored_at).total_seconds() >= self._config.cache_ttl_seconds

    async def _select(self, sparql: str) -> List[HistoricalEvent]:
        data = await self._post(sparql)
        try:
            return self.parse_results(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise EventSourceError(f"Malformed Wikidata response: {e}") from e

    async def _post(self, sparql: str) -> Any:
        headers = {
            "Content-Type": "application/sparql-query",
            "Accept": "application/json",
            "User-Agent": self._config.user_agent,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self._config.endpoint, content=sparql, headers=headers)
        except httpx.HTTPError as e:
            raise EventSourceError(f"Wikidata request failed: {e}") from e

        if response.status_code != 200:
            raise EventSourceError(f"Wikidata query failed: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise EventSourceError(f"Wikidata returned non-JSON body: {e}") from e

    def parse_results(self, data: Any) -> List[HistoricalEvent]:
        bindings = (data.get("results") or {}).get("bindings") or []

        def value(binding: Dict[str, Any], name: str) -> str:
            return (binding.get(name) or {}).get("value") or ""

        events = []
        for binding in bindings:
            title = value(binding, "eventLabel")
            uri = value(binding, "event")
            if not title or not uri:
                continue

            type_label = value(binding, "typeLabel")
            description = value(binding, "description")
            date = value(binding, "date")
            events.append(HistoricalEvent(
                id=uri.rsplit("/", 1)[-1],
                title=title,
                year=parse_year(date),
                type=classify_event_type(type_label, title, description),
                coordinates=parse_point(value(binding, "coords")),
                country=value(binding, "countryLabel"),
                category=type_label or "historical event",
                description=description,
                confidence=0.7 + self._rng.random() * 0.3,
                date=date,
                source="wikidata",
                url=uri,
            ))
        return events
