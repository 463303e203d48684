"""
Matcher - finds the stored carnival an extracted event refers to.

The raw MySideline title is the canonical key. Date and address only help
when the title alone finds nothing. Manually entered carnivals are never
matched; they belong to people, not to the pipeline.
"""
import logging
from typing import Any, Dict, Optional, Protocol

from .models import Carnival, ExtractedEvent

logger = logging.getLogger(__name__)


class CarnivalStore(Protocol):
    async def find_one(self, **filters: Any) -> Optional[Carnival]: ...

    async def find_last_synced(self) -> Optional[Carnival]: ...


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def secondary_filters(event: ExtractedEvent) -> Dict[str, Any]:
    """Whichever of title, date and address the event has; empty when none."""
    candidates = {
        "mysideline_title": event.mysideline_title,
        "date": event.date,
        "location_address": event.location_address,
    }
    return {name: value for name, value in candidates.items() if _present(value)}


async def find_existing_carnival(store: CarnivalStore, event: ExtractedEvent) -> Optional[Carnival]:
    """
    Look the event up in three passes, stopping at the first hit:

    1. ``mysideline_title`` equal to the raw card title,
    2. every present field among title / date / address,
    3. cleaned ``title`` together with ``date``, for events whose raw
       MySideline title changed since the last run.
    """
    if _present(event.mysideline_title):
        match = await store.find_one(
            mysideline_title=event.mysideline_title, is_manually_entered=False
        )
        if match:
            return match

    filters = secondary_filters(event)
    if filters:
        match = await store.find_one(**filters, is_manually_entered=False)
        if match:
            logger.debug("Matched %r on %s", event.mysideline_title, sorted(filters))
            return match

    if _present(event.title) and event.date is not None:
        match = await store.find_one(title=event.title, date=event.date, is_manually_entered=False)
        if match:
            logger.debug("Matched %r on cleaned title and date", event.title)
            return match

    return None


async def find_last_synced(store: CarnivalStore) -> Optional[Carnival]:
    """The most recently synced carnival, or None if the pipeline never ran."""
    return await store.find_last_synced()
