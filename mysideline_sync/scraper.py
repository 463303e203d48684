"""
MySideline scraper - one browser run over the search page, plus validation.

``MySidelineScraper.scrape_events()`` is what the sync service calls. It
chooses between mock data, no data (scraping disabled) and a real browser
run, then cleans and validates every event before handing them back.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from .card_extractor import extract_events
from .config import MIN_REQUEST_TIMEOUT_MS, SyncConfig, get_config
from .errors import EventValidationError
from .mock_events import generate_mock_events
from .models import ExtractedEvent, ValidationSummary
from .page_driver import log_page_diagnostics, open_search_page, wait_for_page_ready

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
REQUIRED_FIELDS = ("title", "mysideline_title")


class MySidelineScraper:
    """Produces validated ``ExtractedEvent``s from MySideline (or mock data)."""

    def __init__(self, config: Optional[SyncConfig] = None):
        self.config = config or get_config()

    # ── public API ───────────────────────────────────────────────────────────

    async def scrape_events(self) -> List[ExtractedEvent]:
        ms = self.config.mysideline
        if ms.use_mock:
            logger.info("Using mock MySideline data")
            raw = generate_mock_events()
        elif not ms.enable_scraping:
            logger.info("MySideline scraping is disabled via configuration")
            return []
        else:
            logger.info("Scraping MySideline Masters events from %s", ms.url)
            try:
                raw = await self.fetch_events_with_browser()
            except Exception:
                if not self.config.is_development:
                    raise
                logger.exception("Browser run failed in development, using mock data")
                raw = generate_mock_events()

        return self.process_events(raw)

    async def fetch_events_with_browser(self) -> List[ExtractedEvent]:
        """Open the search page, wait for it to settle and read every card."""
        screenshot_dir = None if self.config.headless else self.config.temp_dir
        async with open_search_page(self.config) as page:
            await wait_for_page_ready(page)
            await log_page_diagnostics(page, screenshot_dir)
            return await extract_events(page)

    def process_events(self, events: List[ExtractedEvent]) -> List[ExtractedEvent]:
        """Clean every event, drop the invalid ones and log a summary."""
        summary = self.summarize_events(events)
        self.log_summary(summary)

        cleaned: List[ExtractedEvent] = []
        for event in events:
            try:
                cleaned.append(self.validate_and_clean(event))
            except EventValidationError as exc:
                logger.warning("Dropping event: %s", exc)
        logger.info("%d of %d events passed validation", len(cleaned), len(events))
        return cleaned

    # ── validation ───────────────────────────────────────────────────────────

    @staticmethod
    def validate_and_clean(event: ExtractedEvent) -> ExtractedEvent:
        """
        Trim every string field, turn empty strings into None and normalise
        the organiser email.

        Raises:
            EventValidationError: title is empty or the date is missing.
        """
        updates: Dict[str, Any] = {}
        for name, value in event.model_dump().items():
            if isinstance(value, str):
                value = value.strip()
                updates[name] = value if value or name in REQUIRED_FIELDS else None
            elif isinstance(value, list):
                updates[name] = [v.strip() for v in value if isinstance(v, str) and v.strip()]

        email = updates.get("organiser_contact_email")
        if email:
            email = email.lower()
            updates["organiser_contact_email"] = email if EMAIL_RE.match(email) else None
            if updates["organiser_contact_email"] is None:
                logger.debug("Discarding invalid organiser email %r", email)

        if not updates.get("title"):
            raise EventValidationError(f"Event {event.mysideline_title!r} has no title")
        if event.date is None:
            raise EventValidationError(f"Event {event.title!r} has no date")
        if not updates.get("mysideline_title"):
            updates["mysideline_title"] = updates["title"]

        return event.model_copy(update=updates)

    @staticmethod
    def summarize_events(events: List[ExtractedEvent]) -> ValidationSummary:
        summary = ValidationSummary(total_events=len(events))
        for number, event in enumerate(events, start=1):
            valid = True
            if (event.title or "").strip():
                summary.events_with_title += 1
            else:
                summary.issues.append(f"Event {number}: Missing or invalid title")
                valid = False

            if event.date is not None:
                summary.events_with_date += 1
            else:
                summary.issues.append(f"Event {number}: Missing date")
                valid = False

            if (event.location_address or "").strip():
                summary.events_with_location += 1
            else:
                summary.issues.append(f"Event {number}: Missing location information")

            if (event.registration_link or "").strip():
                summary.events_with_registration += 1
            else:
                summary.issues.append(f"Event {number}: Missing registration link")

            if valid:
                summary.valid_events += 1
        return summary

    @staticmethod
    def log_summary(summary: ValidationSummary) -> None:
        logger.info(
            "Extraction summary: %d events, %d valid, %d with title, %d with date, "
            "%d with location, %d with registration",
            summary.total_events, summary.valid_events, summary.events_with_title,
            summary.events_with_date, summary.events_with_location,
            summary.events_with_registration,
        )
        for issue in summary.issues:
            logger.info("  - %s", issue)

    # ── configuration checks ─────────────────────────────────────────────────

    def configuration_issues(self) -> List[str]:
        ms = self.config.mysideline
        issues = []
        if not ms.url:
            issues.append("MYSIDELINE_URL is not set")
        if ms.request_timeout_ms < MIN_REQUEST_TIMEOUT_MS:
            issues.append("MYSIDELINE_REQUEST_TIMEOUT is too low")
        return issues

    def is_properly_configured(self) -> bool:
        issues = self.configuration_issues()
        for issue in issues:
            logger.error("Scraper configuration issue: %s", issue)
        return not issues

    def configuration_info(self) -> Dict[str, Any]:
        ms = self.config.mysideline
        return {
            "search_url": ms.url,
            "timeout_ms": ms.request_timeout_ms,
            "retry_attempts": ms.retry_attempts,
            "headless": self.config.headless,
            "enable_scraping": ms.enable_scraping,
            "use_mock": ms.use_mock,
        }
