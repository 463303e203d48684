"""
Sync service - the orchestrator that ties scraping and reconciling together.

One ``MySidelineSyncService`` lives per process. It owns the single-flight
flag, the daily scheduler and the bookkeeping in ``sync_runs``.
"""
import asyncio
import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

import psycopg
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .config import SyncConfig, get_config
from .errors import StoreUnavailableError
from .matcher import find_last_synced
from .models import ExtractedEvent, ReconcileCounts, SyncOutcome, SyncRun
from .reconciler import WritableCarnivalStore, reconcile_events
from .scheduler import DailyScheduler
from .scraper import MySidelineScraper
from .storage import CarnivalRepo, SyncRunRepo

logger = logging.getLogger(__name__)

SYNC_TYPE = "mysideline"
WARMUP_SECONDS = 2
STORE_RETRY_ATTEMPTS = 3
STORE_RETRY_DELAY_SECONDS = 3
RESYNC_AFTER = dt.timedelta(hours=24)


def _log_store_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "Store not ready (attempt %d/%d): %s",
        retry_state.attempt_number, STORE_RETRY_ATTEMPTS, retry_state.outcome.exception(),
    )


class SyncRunStore(Protocol):
    async def start(self, sync_type: str, metadata: Optional[Dict[str, Any]] = None) -> SyncRun: ...

    async def mark_completed(
        self, run: SyncRun, counts: ReconcileCounts, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[SyncRun]: ...

    async def mark_failed(self, run: SyncRun, message: str) -> Optional[SyncRun]: ...


class EventSource(Protocol):
    async def scrape_events(self) -> List[ExtractedEvent]: ...


class MySidelineSyncService:
    """Runs the MySideline ingestion pipeline, at most once at a time."""

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        carnival_store: Optional[WritableCarnivalStore] = None,
        sync_run_store: Optional[SyncRunStore] = None,
        scraper: Optional[EventSource] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ):
        self.config = config or get_config()
        self.carnivals = carnival_store or CarnivalRepo(self.config.database_url)
        self.sync_runs = sync_run_store or SyncRunRepo(self.config.database_url)
        self.scraper = scraper or MySidelineScraper(self.config)
        self.clock = clock
        self.is_running = False
        self.last_sync_date: Optional[dt.datetime] = None
        self.scheduler: Optional[DailyScheduler] = None

    # ── scheduling ───────────────────────────────────────────────────────────

    async def initialize_scheduled_sync(self) -> None:
        """Register the daily trigger, then run the initial-sync check after a short warmup."""
        self.scheduler = DailyScheduler(
            self.config.schedule_hour,
            lambda: self.sync_mysideline_events(trigger="scheduled"),
            clock=self.clock,
        )
        self.scheduler.start()
        await asyncio.sleep(WARMUP_SECONDS)
        await self.check_and_run_initial_sync()

    async def shutdown(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.stop()

    async def check_and_run_initial_sync(self) -> Optional[SyncOutcome]:
        """
        Run a sync now when nothing was ever synced or the newest sync is at
        least 24 hours old. The store gets three tries, 3 s apart, to come up.
        """
        last = None
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(STORE_RETRY_ATTEMPTS),
                wait=wait_fixed(STORE_RETRY_DELAY_SECONDS),
                retry=retry_if_exception_type((StoreUnavailableError, psycopg.Error)),
                before_sleep=_log_store_retry,
                sleep=asyncio.sleep,
                reraise=True,
            ):
                with attempt:
                    last = await find_last_synced(self.carnivals)
        except (StoreUnavailableError, psycopg.Error) as exc:
            logger.error(
                "Store not ready after %d attempts, skipping initial sync: %s",
                STORE_RETRY_ATTEMPTS, exc,
            )
            return None

        now = self.clock()
        if last is None or last.last_mysideline_sync is None:
            logger.info("No previous MySideline sync found, running initial sync")
        elif now - last.last_mysideline_sync >= RESYNC_AFTER:
            logger.info("Last MySideline sync was %s, running sync", last.last_mysideline_sync)
        else:
            logger.info("Last MySideline sync was %s, skipping initial sync", last.last_mysideline_sync)
            self.last_sync_date = last.last_mysideline_sync
            return None
        return await self.sync_mysideline_events(trigger="initial")

    # ── the pipeline ─────────────────────────────────────────────────────────

    async def sync_mysideline_events(self, trigger: str = "scheduled") -> SyncOutcome:
        """
        One full run: hygiene, scrape, reconcile, record. Never raises; any
        failure is recorded on the run and returned as an unsuccessful outcome.
        """
        if not self.config.mysideline.sync_enabled:
            logger.info("MySideline sync is disabled via configuration")
            return SyncOutcome(success=True, message="MySideline sync is disabled")

        if self.is_running:
            logger.info("MySideline sync already in progress, ignoring %s trigger", trigger)
            return SyncOutcome(success=False, message="Sync already in progress")

        self.is_running = True
        run: Optional[SyncRun] = None
        now = self.clock()
        try:
            logger.info("Starting MySideline sync (%s)", trigger)
            run = await self.sync_runs.start(SYNC_TYPE, {"trigger": trigger})

            hygiene = await self.carnivals.deactivate_past_carnivals(now.date())
            if hygiene.success:
                logger.info("Deactivated %d past carnivals", hygiene.deactivated_count)
            else:
                logger.warning("Past-carnival cleanup failed: %s", hygiene.error)

            events = await self.scraper.scrape_events()
            counts = await reconcile_events(self.carnivals, events, now)

            self.last_sync_date = now
            await self.sync_runs.mark_completed(run, counts, {
                "events_skipped": counts.skipped,
                "events_failed": counts.failed,
                "carnivals_deactivated": hygiene.deactivated_count,
            })
            logger.info("MySideline sync finished: %d events processed", counts.processed)
            return SyncOutcome(
                success=True,
                events_processed=counts.processed,
                events_created=counts.created,
                events_updated=counts.updated,
                events_skipped=counts.skipped,
                events_failed=counts.failed,
                last_sync=now,
            )
        except Exception as exc:
            logger.exception("MySideline sync failed")
            if run is not None:
                try:
                    await self.sync_runs.mark_failed(run, str(exc))
                except Exception:
                    logger.exception("Could not record failed sync run %s", run.id)
            return SyncOutcome(success=False, error=str(exc))
        finally:
            self.is_running = False

    # ── admin surface ────────────────────────────────────────────────────────

    def get_sync_status(self) -> Dict[str, Any]:
        scraper_info: Dict[str, Any] = {}
        if isinstance(self.scraper, MySidelineScraper):
            scraper_info = self.scraper.configuration_info()
        return {
            "running": self.is_running,
            "last_sync": self.last_sync_date,
            "enabled": self.config.mysideline.sync_enabled,
            "subcomponents": {
                "scraper": scraper_info,
                "scheduler": {
                    "running": bool(self.scheduler and self.scheduler.running),
                    "hour": self.config.schedule_hour,
                },
            },
        }

    async def fetch_events(self) -> int:
        """Manual trigger; returns the number of processed events, 0 on failure."""
        outcome = await self.sync_mysideline_events(trigger="manual")
        return outcome.events_processed if outcome.success else 0
