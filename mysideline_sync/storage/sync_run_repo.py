"""
Repository: SQL operations for ``sync_runs``.

Rows are append-only. A run is inserted as ``started`` and moved exactly once
to ``ok`` or ``failed``; the ``status = 'started'`` guard on both updates
keeps a finished run from being rewritten.
"""
import logging
from typing import Any, Dict, Optional

from psycopg.types.json import Jsonb

from ..models import ReconcileCounts, SyncRun
from .db import get_conn

logger = logging.getLogger(__name__)

STATUS_STARTED = "started"
STATUS_OK = "ok"
STATUS_FAILED = "failed"


class SyncRunRepo:
    """Async access to the ``sync_runs`` table."""

    def __init__(self, database_url: str):
        self.database_url = database_url

    async def start(self, sync_type: str, metadata: Optional[Dict[str, Any]] = None) -> SyncRun:
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(
                "INSERT INTO sync_runs (sync_type, status, metadata) "
                "VALUES (%s, %s, %s) RETURNING *",
                (sync_type, STATUS_STARTED, Jsonb(metadata or {})),
            )
            row = await cur.fetchone()
        return SyncRun.model_validate(row)

    async def mark_completed(
        self,
        run: SyncRun,
        counts: ReconcileCounts,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[SyncRun]:
        merged = dict(run.metadata, **(metadata or {}))
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(
                "UPDATE sync_runs SET status = %s, completed_at = now(), "
                "events_processed = %s, events_created = %s, events_updated = %s, "
                "metadata = %s "
                "WHERE id = %s AND status = %s RETURNING *",
                (
                    STATUS_OK, counts.processed, counts.created, counts.updated,
                    Jsonb(merged), run.id, STATUS_STARTED,
                ),
            )
            row = await cur.fetchone()
        if row is None:
            logger.warning("Sync run %s was already finished", run.id)
            return None
        return SyncRun.model_validate(row)

    async def mark_failed(self, run: SyncRun, message: str) -> Optional[SyncRun]:
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(
                "UPDATE sync_runs SET status = %s, completed_at = now(), error_message = %s "
                "WHERE id = %s AND status = %s RETURNING *",
                (STATUS_FAILED, message, run.id, STATUS_STARTED),
            )
            row = await cur.fetchone()
        if row is None:
            logger.warning("Sync run %s was already finished", run.id)
            return None
        return SyncRun.model_validate(row)

    async def last_successful(self, sync_type: str) -> Optional[SyncRun]:
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(
                "SELECT * FROM sync_runs WHERE sync_type = %s AND status = %s "
                "ORDER BY completed_at DESC LIMIT 1",
                (sync_type, STATUS_OK),
            )
            row = await cur.fetchone()
        return SyncRun.model_validate(row) if row else None

    async def stats(self, sync_type: str, days: int = 30) -> Dict[str, Any]:
        """Aggregate run counts and event totals over the last *days* days."""
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(
                "SELECT count(*) AS total_runs, "
                "count(*) FILTER (WHERE status = 'ok') AS successful_runs, "
                "count(*) FILTER (WHERE status = 'failed') AS failed_runs, "
                "coalesce(sum(events_processed), 0) AS total_events_processed, "
                "coalesce(sum(events_created), 0) AS total_events_created, "
                "coalesce(sum(events_updated), 0) AS total_events_updated, "
                "max(started_at) AS last_run "
                "FROM sync_runs "
                "WHERE sync_type = %s AND started_at >= now() - make_interval(days => %s)",
                (sync_type, days),
            )
            row = await cur.fetchone()
        return dict(row or {})
