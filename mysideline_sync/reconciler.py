"""
Upsert reconciler - writes extracted events into the carnival store.

For a matched carnival only empty columns are filled, so anything a person
typed in stays as it is. ``last_mysideline_sync`` is the one column that is
always written. Past or inactive carnivals are left alone entirely.
"""
import datetime as dt
import logging
from typing import Any, Dict, Iterable, Optional, Protocol

from .errors import ReconcileError
from .matcher import CarnivalStore, find_existing_carnival
from .models import Carnival, ExtractedEvent, ReconcileCounts
from .states import state_code

logger = logging.getLogger(__name__)

REGISTRATION_OPEN_LEAD = dt.timedelta(days=7)
DEFAULT_COUNTRY = "Australia"

# carnival columns the pipeline may fill; each comes from the event field of the same name,
# except schedule_details, which falls back to the description
FILLABLE_FIELDS = [
    "venue_name",
    "location_address",
    "location_suburb",
    "location_postcode",
    "location_country",
    "location_latitude",
    "location_longitude",
    "google_maps_url",
    "organiser_contact_name",
    "organiser_contact_email",
    "organiser_contact_phone",
    "registration_link",
    "registration_deadline",
    "schedule_details",
    "social_media_facebook",
    "social_media_website",
    "club_logo_url",
    "state",
]


class WritableCarnivalStore(CarnivalStore, Protocol):
    async def create(self, fields: Dict[str, Any]) -> Carnival: ...

    async def update(self, carnival_id: int, fields: Dict[str, Any]) -> Optional[Carnival]: ...


def is_empty(value: Any) -> bool:
    """None, a blank string or an empty list."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _event_value(event: ExtractedEvent, name: str) -> Any:
    value = getattr(event, name)
    if name == "state":
        return state_code(value)
    if name == "schedule_details" and is_empty(value):
        # the card's description paragraph is its schedule text
        return event.description
    return value


def is_past(event_date: dt.date, now: dt.datetime) -> bool:
    """An event happening today already counts as past."""
    return event_date <= now.date()


def registration_open(event_date: dt.date, now: dt.datetime) -> bool:
    return dt.datetime.combine(event_date, dt.time.min) > now + REGISTRATION_OPEN_LEAD


def build_update_set(existing: Carnival, event: ExtractedEvent, now: dt.datetime) -> Dict[str, Any]:
    """
    Columns to write on *existing*: each fillable column that is empty there
    and non-empty on *event*, plus ``last_mysideline_sync``.
    """
    updates: Dict[str, Any] = {}
    for name in FILLABLE_FIELDS:
        new_value = _event_value(event, name)
        if is_empty(getattr(existing, name)) and not is_empty(new_value):
            updates[name] = new_value
    updates["last_mysideline_sync"] = now
    return updates


def build_create_fields(event: ExtractedEvent, now: dt.datetime) -> Dict[str, Any]:
    """Insert columns for an event nobody has stored yet."""
    fields: Dict[str, Any] = {
        "title": event.title,
        "mysideline_title": event.mysideline_title or event.title,
        "date": event.date,
    }
    for name in FILLABLE_FIELDS:
        value = _event_value(event, name)
        if not is_empty(value):
            fields[name] = value
    fields.setdefault("location_country", DEFAULT_COUNTRY)
    fields.update(
        is_manually_entered=False,
        is_active=True,
        is_registration_open=registration_open(event.date, now),
        last_mysideline_sync=now,
    )
    return fields


async def reconcile_event(
    store: WritableCarnivalStore, event: ExtractedEvent, now: dt.datetime
) -> str:
    """Create, update or skip one event. Returns which of the three happened."""
    existing = await find_existing_carnival(store, event)
    if existing is None:
        created = await store.create(build_create_fields(event, now))
        logger.info("Created carnival %s: %s (%s)", created.id, event.title, event.date)
        return "created"

    if is_past(event.date, now) or not existing.is_active:
        logger.debug("Skipping past or inactive carnival %s: %s", existing.id, existing.title)
        return "skipped"

    updates = build_update_set(existing, event, now)
    await store.update(existing.id, updates)
    filled = sorted(set(updates) - {"last_mysideline_sync"})
    if filled:
        logger.info("Filled %s on carnival %s: %s", ", ".join(filled), existing.id, existing.title)
    else:
        logger.debug("Refreshed sync time on carnival %s", existing.id)
    return "updated"


async def reconcile_events(
    store: WritableCarnivalStore, events: Iterable[ExtractedEvent], now: dt.datetime
) -> ReconcileCounts:
    """
    Reconcile every event against the store with the single run time *now*.

    A failure on one event is logged and counted; the rest still run.
    """
    counts = ReconcileCounts()
    for event in events:
        counts.processed += 1
        try:
            outcome = await reconcile_event(store, event, now)
        except Exception as exc:
            error = ReconcileError(event.title, exc)
            logger.error("%s", error)
            counts.failed += 1
            continue
        setattr(counts, outcome, getattr(counts, outcome) + 1)

    logger.info(
        "Reconciled %d events: %d created, %d updated, %d skipped, %d failed",
        counts.processed, counts.created, counts.updated, counts.skipped, counts.failed,
    )
    return counts
