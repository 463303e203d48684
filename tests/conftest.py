"""Shared fixtures: in-memory stores, a fake scraper and a frozen clock."""
import asyncio
import datetime as dt
from typing import Any, Dict, List, Optional

import pytest

from mysideline_sync.config import MySidelineConfig, SyncConfig
from mysideline_sync.errors import StoreUnavailableError
from mysideline_sync.models import (
    Carnival,
    DeactivationResult,
    ExtractedEvent,
    ReconcileCounts,
    SyncRun,
)

FROZEN_NOW = dt.datetime(2025, 6, 1, 10, 0, 0)


class InMemoryCarnivalStore:
    """Honours the carnival store contract over a plain list."""

    def __init__(self, carnivals: Optional[List[Carnival]] = None):
        self.carnivals: List[Carnival] = list(carnivals or [])
        self.calls: List[str] = []
        self.fail_on_create_for: set = set()
        self.unavailable_times = 0

    def _next_id(self) -> int:
        return max((c.id for c in self.carnivals), default=0) + 1

    def add(self, **fields: Any) -> Carnival:
        fields.setdefault("id", self._next_id())
        carnival = Carnival(**fields)
        self.carnivals.append(carnival)
        return carnival

    def get(self, carnival_id: int) -> Optional[Carnival]:
        return next((c for c in self.carnivals if c.id == carnival_id), None)

    async def find_one(self, **filters: Any) -> Optional[Carnival]:
        self.calls.append("find_one")
        for carnival in self.carnivals:
            if all(getattr(carnival, k) == v for k, v in filters.items()):
                return carnival
        return None

    async def find_last_synced(self) -> Optional[Carnival]:
        self.calls.append("find_last_synced")
        if self.unavailable_times > 0:
            self.unavailable_times -= 1
            raise StoreUnavailableError("database is starting up")
        synced = [c for c in self.carnivals if c.last_mysideline_sync is not None]
        return max(synced, key=lambda c: c.last_mysideline_sync, default=None)

    async def create(self, fields: Dict[str, Any]) -> Carnival:
        self.calls.append("create")
        if fields.get("title") in self.fail_on_create_for:
            raise RuntimeError("insert failed")
        return self.add(**fields)

    async def update(self, carnival_id: int, fields: Dict[str, Any]) -> Optional[Carnival]:
        self.calls.append("update")
        current = self.get(carnival_id)
        if current is None:
            return None
        updated = current.model_copy(update=fields)
        self.carnivals[self.carnivals.index(current)] = updated
        return updated

    async def deactivate_past_carnivals(self, today: dt.date) -> DeactivationResult:
        self.calls.append("deactivate_past_carnivals")
        count = 0
        for i, carnival in enumerate(self.carnivals):
            if carnival.is_active and carnival.date < today:
                self.carnivals[i] = carnival.model_copy(update={"is_active": False})
                count += 1
        return DeactivationResult(success=True, deactivated_count=count)


class InMemorySyncRunStore:
    def __init__(self):
        self.runs: List[SyncRun] = []

    def _replace(self, run: SyncRun, **changes: Any) -> Optional[SyncRun]:
        current = next(r for r in self.runs if r.id == run.id)
        if current.status != "started":
            return None
        updated = current.model_copy(update=changes)
        self.runs[self.runs.index(current)] = updated
        return updated

    async def start(self, sync_type: str, metadata: Optional[Dict[str, Any]] = None) -> SyncRun:
        run = SyncRun(
            id=len(self.runs) + 1,
            sync_type=sync_type,
            started_at=FROZEN_NOW,
            metadata=metadata or {},
        )
        self.runs.append(run)
        return run

    async def mark_completed(self, run, counts: ReconcileCounts, metadata=None):
        return self._replace(
            run,
            status="ok",
            completed_at=FROZEN_NOW,
            events_processed=counts.processed,
            events_created=counts.created,
            events_updated=counts.updated,
            metadata=dict(run.metadata, **(metadata or {})),
        )

    async def mark_failed(self, run, message: str):
        return self._replace(run, status="failed", completed_at=FROZEN_NOW, error_message=message)


class FakeScraper:
    """Returns canned events; can block until released or raise."""

    def __init__(self, events: Optional[List[ExtractedEvent]] = None, error: Optional[Exception] = None):
        self.events = events or []
        self.error = error
        self.calls = 0
        self.release: Optional[asyncio.Event] = None

    async def scrape_events(self) -> List[ExtractedEvent]:
        self.calls += 1
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return list(self.events)


def make_event(**overrides: Any) -> ExtractedEvent:
    fields: Dict[str, Any] = dict(
        title="NSW Masters Rugby League Carnival",
        mysideline_title="NSW Masters Rugby League Carnival (15/09/2099)",
        date=dt.date(2099, 9, 15),
        state="New South Wales",
        location_address="Sydney Sports Complex, NSW",
        event_type="League",
        full_content="NSW Masters Rugby League Carnival (15/09/2099) Sydney Sports Complex, NSW "
                     "Club Contact Name: Jane Citizen",
    )
    fields.update(overrides)
    return ExtractedEvent(**fields)


@pytest.fixture
def now() -> dt.datetime:
    return FROZEN_NOW


@pytest.fixture
def carnival_store() -> InMemoryCarnivalStore:
    return InMemoryCarnivalStore()


@pytest.fixture
def sync_run_store() -> InMemorySyncRunStore:
    return InMemorySyncRunStore()


@pytest.fixture
def sync_config(tmp_path) -> SyncConfig:
    return SyncConfig(
        mysideline=MySidelineConfig(sync_enabled=True),
        database_url="postgresql://test/test",
        temp_dir=tmp_path,
    )
