"""
Local Knowledge Store

SQLite-backed persistence for preserved discoveries.

PRINCIPLES:
===========
1. NEVER delete preserved records; sync only changes their status
2. Records stored verbatim as JSON next to their queryable columns
3. Pending records carry their sync attempt count
4. Coroutine entry points run SQLite work in a worker thread
"""

from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import asyncio
import json
import logging
import random
import sqlite3

from discovery.contracts.discoveries import random_suffix
from discovery.contracts.events import HistoricalEvent
from .contracts import (
    KnowledgeStore,
    PreservationError,
    PreservationFilter,
    PreservationReceipt,
    PreservationRecord,
)
from .enrichment import local_enrichment

logger = logging.getLogger(__name__)


STATUS_LOCAL = "local"
STATUS_PENDING = "pending"
STATUS_SYNCED = "synced"
STATUS_ABANDONED = "abandoned"


class LocalKnowledgeStore(KnowledgeStore):
    """
    Persistent storage for preservation records.

    Uses a single SQLite file under base_path.
    """

    def __init__(
        self,
        base_path: Union[str, Path],
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None
    ):
        self._base_path = Path(base_path)
        self._db_path = self._base_path / 'akasha.db'
        self._clock = clock or datetime.now
        self._rng = rng or random.Random()

        self._base_path.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with self._get_conn() as conn:
            conn.executescript('''
                CREATE TABLE IF NOT EXISTS records (
                    record_id TEXT PRIMARY KEY,
                    subtype TEXT NOT NULL,
                    confidence REAL NOT NULL,
                    preservation_level TEXT NOT NULL,
                    status TEXT NOT NULL,
                    attempts INTEGER DEFAULT 0,
                    stored_at TEXT NOT NULL,
                    record_json TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_records_subtype ON records(subtype);
                CREATE INDEX IF NOT EXISTS idx_records_status ON records(status);
            ''')

    @contextmanager
    def _get_conn(self):
        """Get database connection."""
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise PreservationError(f"Cannot open {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise PreservationError(str(e)) from e
        finally:
            conn.close()

    def _new_id(self) -> str:
        return f"akasha_{int(self._clock().timestamp() * 1000)}_{random_suffix(self._rng)}"

    # =========================================================================
    # WRITE
    # =========================================================================

    def store(self, record: PreservationRecord, pending: bool = False) -> PreservationReceipt:
        """Write record. pending=True queues it for remote sync."""
        record_id = self._new_id()
        status = STATUS_PENDING if pending else STATUS_LOCAL

        with self._get_conn() as conn:
            conn.execute('''
                INSERT INTO records
                (record_id, subtype, confidence, preservation_level, status, attempts, stored_at, record_json)
                VALUES (?, ?, ?, ?, ?, 0, ?, ?)
            ''', (
                record_id,
                record.subtype,
                record.confidence,
                record.preservation_level,
                status,
                self._clock().isoformat(),
                json.dumps(record.to_dict()),
            ))

        logger.debug("Preserved locally: %s (%s)", record_id, status)
        return PreservationReceipt(id=record_id, status=status)

    async def preserve(self, record: PreservationRecord) -> PreservationReceipt:
        return await asyncio.to_thread(self.store, record)

    async def enrich(self, event: HistoricalEvent) -> Dict[str, Any]:
        return local_enrichment(event, self._rng, self._clock())

    # =========================================================================
    # SYNC BOOKKEEPING
    # =========================================================================

    def pending(self, limit: int = 100) -> List[Tuple[str, PreservationRecord, int]]:
        """(record_id, record, attempts) for records awaiting sync, oldest first."""
        with self._get_conn() as conn:
            rows = conn.execute(
                'SELECT record_id, record_json, attempts FROM records '
                'WHERE status = ? ORDER BY rowid LIMIT ?',
                (STATUS_PENDING, limit)
            ).fetchall()
        return [
            (row['record_id'], PreservationRecord.from_dict(json.loads(row['record_json'])), row['attempts'])
            for row in rows
        ]

    def mark_synced(self, record_id: str):
        with self._get_conn() as conn:
            conn.execute('UPDATE records SET status = ? WHERE record_id = ?', (STATUS_SYNCED, record_id))

    def record_failed_attempt(self, record_id: str, max_attempts: int) -> int:
        """Bump the attempt count; give up once it reaches max_attempts. Returns the count."""
        with self._get_conn() as conn:
            row = conn.execute(
                'SELECT attempts FROM records WHERE record_id = ?', (record_id,)
            ).fetchone()
            if row is None:
                return 0
            attempts = row['attempts'] + 1
            status = STATUS_ABANDONED if attempts >= max_attempts else STATUS_PENDING
            conn.execute(
                'UPDATE records SET attempts = ?, status = ? WHERE record_id = ?',
                (attempts, status, record_id)
            )
        if status == STATUS_ABANDONED:
            logger.warning("Giving up syncing %s after %d attempts", record_id, attempts)
        return attempts

    # =========================================================================
    # READ
    # =========================================================================

    async def query(self, search: PreservationFilter) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self.query_sync, search)

    def query_sync(self, search: PreservationFilter) -> List[Dict[str, Any]]:
        sql = 'SELECT record_json FROM records WHERE 1 = 1'
        params: List[Any] = []
        if search.type:
            sql += ' AND subtype = ?'
            params.append(search.type)
        if search.min_confidence:
            sql += ' AND confidence >= ?'
            params.append(search.min_confidence)
        sql += ' ORDER BY rowid'

        with self._get_conn() as conn:
            rows = conn.execute(sql, params).fetchall()

        results = []
        for row in rows:
            record = json.loads(row['record_json'])
            if search.matches(record):
                results.append(record)
                if len(results) >= search.limit:
                    break
        return results

    def get_stats(self) -> Dict[str, int]:
        """Record counts per status."""
        with self._get_conn() as conn:
            rows = conn.execute(
                'SELECT status, COUNT(*) AS n FROM records GROUP BY status'
            ).fetchall()
        stats = {STATUS_LOCAL: 0, STATUS_PENDING: 0, STATUS_SYNCED: 0, STATUS_ABANDONED: 0}
        stats.update({row['status']: row['n'] for row in rows})
        return stats
