"""
Database connection helper.

Every repository call opens its own short-lived async connection through
``get_conn``. Rows come back as dicts (``dict_row``) so they can be fed
straight into the pydantic models.

Usage:
    async with get_conn(dsn) as conn:
        await conn.execute("SELECT 1")
"""
import logging
from contextlib import asynccontextmanager
from importlib import resources
from typing import AsyncIterator

import psycopg
from psycopg.rows import dict_row

from ..errors import StoreUnavailableError

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 5


@asynccontextmanager
async def get_conn(database_url: str) -> AsyncIterator[psycopg.AsyncConnection]:
    """
    Yield an open connection; the transaction commits when the block exits
    cleanly and rolls back when it raises.

    Raises:
        StoreUnavailableError: the database could not be reached.
    """
    try:
        conn = await psycopg.AsyncConnection.connect(
            database_url, connect_timeout=CONNECT_TIMEOUT_SECONDS, row_factory=dict_row
        )
    except psycopg.OperationalError as exc:
        raise StoreUnavailableError(f"Database unavailable: {exc}") from exc

    async with conn:
        yield conn


def load_schema() -> str:
    return resources.files(__package__).joinpath("schema.sql").read_text(encoding="utf-8")


async def apply_schema(database_url: str) -> None:
    """Create the pipeline tables and indexes if they do not exist yet."""
    async with get_conn(database_url) as conn:
        await conn.execute(load_schema())
    logger.info("Database schema is up to date")
