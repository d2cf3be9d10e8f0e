"""
AKASHA Knowledge Store
======================

Remote preservation service client with a local fallback.

GUARANTEES:
- preserve() never loses a record: remote failure writes it locally as
  pending
- sync_pending() retries pending records, abandoning one after
  max_sync_attempts failures
- query() and enrich() fall back to the local store when the remote is
  unreachable
- Local SQLite work never runs on the event loop thread
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import asyncio
import logging

import httpx

from discovery.contracts.events import HistoricalEvent
from .contracts import (
    KnowledgeStore,
    PreservationConfig,
    PreservationFilter,
    PreservationReceipt,
    PreservationRecord,
)
from .enrichment import enrichment_request, merge_enrichment
from .local import LocalKnowledgeStore

logger = logging.getLogger(__name__)


class AkashaKnowledgeStore(KnowledgeStore):
    """Remote-first knowledge store over HTTP."""

    def __init__(
        self,
        endpoint: str,
        local: LocalKnowledgeStore,
        config: Optional[PreservationConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._endpoint = endpoint.rstrip("/")
        self._clock = clock or datetime.now
        self._local = local
        self._config = config or PreservationConfig(endpoint=endpoint)
        self._transport = transport
        self._connected: Optional[bool] = None

    @property
    def connected(self) -> bool:
        return bool(self._connected)

    @property
    def local(self) -> LocalKnowledgeStore:
        return self._local

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._endpoint,
            timeout=self._config.timeout_seconds,
            transport=self._transport,
        )

    async def check_health(self) -> bool:
        """Check GET /health and remember the outcome."""
        try:
            async with self._client() as client:
                response = await client.get("/health")
            self._connected = response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug("AKASHA health check failed: %s", e)
            self._connected = False

        if self._connected:
            logger.info("AKASHA connection established")
        else:
            logger.warning("AKASHA not available, using local preservation")
        return self._connected

    async def _post(self, path: str, body: Dict[str, Any]) -> Optional[httpx.Response]:
        """POST body; None when the transport fails or status is not 2xx."""
        try:
            async with self._client() as client:
                response = await client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.warning("AKASHA %s failed: %s", path, e)
            return None

        if not response.is_success:
            logger.warning("AKASHA %s returned %d", path, response.status_code)
            return None
        return response

    async def _send(self, record: PreservationRecord) -> Optional[str]:
        """Remote id for an accepted record, else None."""
        response = await self._post("/api/preserve", record.to_dict())
        if response is None:
            return None
        try:
            data = response.json()
        except ValueError:
            data = {}
        return str(data.get("id") or "") if isinstance(data, dict) else ""

    async def preserve(self, record: PreservationRecord) -> PreservationReceipt:
        if self._connected is None:
            await self.check_health()

        if self._connected:
            remote_id = await self._send(record)
            if remote_id is not None:
                logger.info("Preserved to AKASHA: %s", remote_id)
                return PreservationReceipt(id=remote_id, status="remote")

        return await asyncio.to_thread(self._local.store, record, True)

    async def enrich(self, event: HistoricalEvent) -> Dict[str, Any]:
        if self._connected is None:
            await self.check_health()

        if self._connected:
            response = await self._post("/api/enrich", enrichment_request(event))
            if response is not None:
                try:
                    data = response.json()
                except ValueError:
                    data = None
                if isinstance(data, dict):
                    return merge_enrichment(event, data, self._clock())

        return await self._local.enrich(event)

    async def query(self, search: PreservationFilter) -> List[Dict[str, Any]]:
        if self._connected:
            response = await self._post("/api/query", {
                "query": search.query,
                "filters": {
                    "type": search.type,
                    "confidence": search.min_confidence if search.min_confidence is not None else 0.5,
                },
                "limit": search.limit,
            })
            if response is not None:
                try:
                    data = response.json()
                except ValueError:
                    data = None
                if isinstance(data, dict):
                    data = data.get("results")
                if isinstance(data, list):
                    return data

        return await self._local.query(search)

    async def sync_pending(self) -> int:
        """Push pending local records to the remote store. Returns the number synced."""
        queue = await asyncio.to_thread(self._local.pending)
        if not queue:
            return 0

        if not self._connected and not await self.check_health():
            return 0

        synced = 0
        for record_id, record, _ in queue:
            if await self._send(record) is not None:
                await asyncio.to_thread(self._local.mark_synced, record_id)
                synced += 1
                logger.info("Synced to AKASHA: %s", record_id)
            else:
                await asyncio.to_thread(
                    self._local.record_failed_attempt, record_id, self._config.max_sync_attempts
                )
        return synced

    def get_status(self) -> Dict[str, Any]:
        stats = self._local.get_stats()
        return {
            "connected": self.connected,
            "endpoint": self._endpoint,
            "queueSize": stats["pending"],
            "localRecords": sum(stats.values()),
        }
