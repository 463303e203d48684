"""
Repository: SQL operations for ``carnivals``.

DB interaction only; the fill-empty and skip rules live in the reconciler.
Column names are composed with ``psycopg.sql`` and checked against the
``Carnival`` model so callers can pass plain field dicts.
"""
import datetime as dt
import logging
from typing import Any, Dict, Optional

import psycopg
from psycopg import sql

from ..errors import StoreUnavailableError
from ..models import Carnival, DeactivationResult
from .db import get_conn

logger = logging.getLogger(__name__)

WRITABLE_COLUMNS = frozenset(Carnival.model_fields) - {"id", "created_at", "updated_at"}
FILTER_COLUMNS = frozenset(
    {"mysideline_title", "title", "date", "location_address", "is_manually_entered"}
)


def _check_columns(fields: Dict[str, Any], allowed: frozenset) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown carnival columns: {sorted(unknown)}")


class CarnivalRepo:
    """Async access to the ``carnivals`` table."""

    def __init__(self, database_url: str):
        self.database_url = database_url

    async def find_one(self, **filters: Any) -> Optional[Carnival]:
        """Return the first carnival whose columns equal every filter value."""
        if not filters:
            raise ValueError("find_one needs at least one filter")
        _check_columns(filters, FILTER_COLUMNS)

        where = sql.SQL(" AND ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(name))
            for name in filters
        )
        query = sql.SQL("SELECT * FROM carnivals WHERE {} ORDER BY id LIMIT 1").format(where)
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(query, filters)
            row = await cur.fetchone()
        return Carnival.model_validate(row) if row else None

    async def find_last_synced(self) -> Optional[Carnival]:
        """The carnival with the most recent ``last_mysideline_sync``, if any."""
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(
                "SELECT * FROM carnivals WHERE last_mysideline_sync IS NOT NULL "
                "ORDER BY last_mysideline_sync DESC LIMIT 1"
            )
            row = await cur.fetchone()
        return Carnival.model_validate(row) if row else None

    async def create(self, fields: Dict[str, Any]) -> Carnival:
        _check_columns(fields, WRITABLE_COLUMNS)
        names = list(fields)
        query = sql.SQL("INSERT INTO carnivals ({}) VALUES ({}) RETURNING *").format(
            sql.SQL(", ").join(map(sql.Identifier, names)),
            sql.SQL(", ").join(map(sql.Placeholder, names)),
        )
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(query, fields)
            row = await cur.fetchone()
        return Carnival.model_validate(row)

    async def update(self, carnival_id: int, fields: Dict[str, Any]) -> Optional[Carnival]:
        """Apply *fields* to one row; returns the updated carnival or None if it is gone."""
        _check_columns(fields, WRITABLE_COLUMNS)
        if not fields:
            return None
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(name))
            for name in fields
        )
        query = sql.SQL(
            "UPDATE carnivals SET {}, updated_at = now() WHERE id = %(carnival_id)s RETURNING *"
        ).format(assignments)
        params = dict(fields, carnival_id=carnival_id)
        async with get_conn(self.database_url) as conn:
            cur = await conn.execute(query, params)
            row = await cur.fetchone()
        return Carnival.model_validate(row) if row else None

    async def deactivate_past_carnivals(self, today: dt.date) -> DeactivationResult:
        """Mark every active carnival dated before *today* inactive."""
        try:
            async with get_conn(self.database_url) as conn:
                cur = await conn.execute(
                    "UPDATE carnivals SET is_active = FALSE, updated_at = now() "
                    "WHERE is_active AND date < %s",
                    (today,),
                )
                count = cur.rowcount
        except (psycopg.Error, StoreUnavailableError) as exc:
            logger.error("Deactivating past carnivals failed: %s", exc)
            return DeactivationResult(success=False, error=str(exc))
        return DeactivationResult(success=True, deactivated_count=max(count, 0))
