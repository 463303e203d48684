"""
Models - Pydantic data models for the MySideline sync pipeline.
"""

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

SOURCE_TAG = "mysideline"


class ExtractedEvent(BaseModel):
    """One normalised event read from a MySideline card (or the mock generator)."""

    title: str = Field(..., description="Carnival title with any date stripped")
    mysideline_title: str = Field(..., description="Raw card title, used as the match key")
    date: dt.date
    state: Optional[str] = Field(None, description="Full AU state/territory name")
    address_lines: List[str] = Field(default_factory=list)
    location_address: Optional[str] = None
    google_maps_url: Optional[str] = None
    description: Optional[str] = None
    subtitle: Optional[str] = None
    organiser_contact_name: Optional[str] = None
    organiser_contact_email: Optional[str] = None
    organiser_contact_phone: Optional[str] = None
    social_media_website: Optional[str] = None
    social_media_facebook: Optional[str] = None
    event_type: Optional[str] = None
    club_logo_url: Optional[str] = None
    registration_link: Optional[str] = None
    source: str = SOURCE_TAG
    scraped_at: dt.datetime = Field(default_factory=dt.datetime.now)
    full_content: str = ""

    venue_name: Optional[str] = None
    location_suburb: Optional[str] = None
    location_postcode: Optional[str] = None
    location_country: Optional[str] = None
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    registration_deadline: Optional[dt.date] = None
    schedule_details: Optional[str] = None
    has_registration_button: bool = False


class Carnival(BaseModel):
    """A row of the ``carnivals`` table as far as the pipeline cares about it."""

    id: int
    title: str
    mysideline_title: Optional[str] = None
    date: dt.date
    state: Optional[str] = None
    venue_name: Optional[str] = None
    location_address: Optional[str] = None
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    location_suburb: Optional[str] = None
    location_postcode: Optional[str] = None
    location_country: Optional[str] = "Australia"
    organiser_contact_name: Optional[str] = None
    organiser_contact_email: Optional[str] = None
    organiser_contact_phone: Optional[str] = None
    registration_link: Optional[str] = None
    is_registration_open: bool = False
    registration_deadline: Optional[dt.date] = None
    is_manually_entered: bool = True
    last_mysideline_sync: Optional[dt.datetime] = None
    is_active: bool = True
    google_maps_url: Optional[str] = None
    schedule_details: Optional[str] = None
    social_media_facebook: Optional[str] = None
    social_media_website: Optional[str] = None
    club_logo_url: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class SyncRun(BaseModel):
    """One pipeline execution as recorded in ``sync_runs``."""

    id: int
    sync_type: str
    status: str = "started"  # started | ok | failed
    started_at: dt.datetime
    completed_at: Optional[dt.datetime] = None
    events_processed: int = 0
    events_created: int = 0
    events_updated: int = 0
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DeactivationResult(BaseModel):
    success: bool
    deactivated_count: int = 0
    error: Optional[str] = None


class ReconcileCounts(BaseModel):
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0


class SyncOutcome(BaseModel):
    """What ``sync_mysideline_events`` hands back to its caller."""

    success: bool
    events_processed: int = 0
    events_created: int = 0
    events_updated: int = 0
    events_skipped: int = 0
    events_failed: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
    last_sync: Optional[dt.datetime] = None


class ValidationSummary(BaseModel):
    """Field coverage of one batch of scraped events, logged after each scrape."""

    total_events: int = 0
    valid_events: int = 0
    events_with_title: int = 0
    events_with_date: int = 0
    events_with_location: int = 0
    events_with_registration: int = 0
    issues: List[str] = Field(default_factory=list)
