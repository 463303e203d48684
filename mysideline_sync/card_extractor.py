"""
Card Extractor - turns each search card on the page into an ExtractedEvent.

Cards are handled one at a time, in page order:
expand → read → resolve registration URL → derive → classify → collapse.
"""
import logging
from datetime import datetime
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser_utils import human_click, human_delay
from .card_parser import parse_card_html, split_address
from .classifier import is_relevant_masters_event
from .errors import CardExtractionError
from .models import ExtractedEvent
from .page_driver import CARD_SELECTOR, EXPAND_SELECTOR
from .registration import resolve_registration_url
from .states import state_from_address
from .title_parser import extract_and_strip_date

logger = logging.getLogger(__name__)

EXPAND_TIMEOUT_MS = 5000

# A card counts as expanded when its details block is visible, or when a
# visible map/contact link is showing next to enough text.
IS_EXPANDED_JS = """
(card) => {
    const visible = (el) => !!el && el.offsetHeight > 0 && el.offsetWidth > 0;
    const text = (card.innerText || '').trim();
    const opened = Array.from(card.querySelectorAll('[style]')).some(
        (el) => /height:\\s*auto/.test(el.getAttribute('style') || '') && visible(el)
    );
    const markers = Array.from(card.querySelectorAll(
        'a[href*="maps.google"], a[href^="tel:"], a[href^="mailto:"]'
    )).some(visible);
    return (opened && text.length > 50) || (markers && /Club Contact|Address/i.test(text));
}
"""


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def _is_expanded(card: Locator) -> bool:
    return bool(await card.evaluate(IS_EXPANDED_JS))


async def expand_card(page: Page, card: Locator) -> None:
    """Open the card's details unless they are already showing."""
    toggle = card.locator(EXPAND_SELECTOR).first
    if await toggle.count() == 0 or await _is_expanded(card):
        return
    await human_click(page, toggle)
    try:
        handle = await card.element_handle()
        await page.wait_for_function(IS_EXPANDED_JS, arg=handle, timeout=EXPAND_TIMEOUT_MS)
    except PlaywrightTimeoutError:
        logger.debug("Card did not report expanded state, reading it anyway")


async def collapse_card(page: Page, card: Locator) -> None:
    """Best effort: close the card's details so the next card starts clean."""
    try:
        toggle = card.locator(EXPAND_SELECTOR).first
        if await toggle.count() and await _is_expanded(card):
            await human_click(page, toggle)
    except PlaywrightError as exc:
        logger.debug("Could not collapse card: %s", exc)


async def extract_card(page: Page, card: Locator, index: int) -> Optional[ExtractedEvent]:
    """
    Extract one card. Returns None when the card is not a relevant Masters
    carnival or has no usable title/date.

    Raises:
        CardExtractionError: the card could not be read at all.
    """
    try:
        try:
            await expand_card(page, card)
            html = await card.inner_html()
            full_content = (await card.inner_text()).strip()
        except PlaywrightError as exc:
            raise CardExtractionError(f"Card {index + 1}: {exc}") from exc

        fields = parse_card_html(html)
        if fields.event_type.strip().lower() == "touch":
            logger.debug("Card %d: Touch event type, skipping", index + 1)
            return None
        if not fields.title:
            logger.debug("Card %d: no title, skipping", index + 1)
            return None

        registration_url = await resolve_registration_url(
            page, card, fields.button_attributes, index
        )

        parsed = extract_and_strip_date(fields.title)
        if parsed.extracted_date is None or not parsed.clean_title:
            logger.info("Card %d: no date in title %r, skipping", index + 1, fields.title)
            return None

        address = fields.location_address
        address_parts = split_address(fields.address_lines)
        event = ExtractedEvent(
            title=parsed.clean_title,
            mysideline_title=fields.title,
            date=parsed.extracted_date,
            state=state_from_address(address),
            address_lines=fields.address_lines,
            location_address=_blank_to_none(address),
            google_maps_url=_blank_to_none(fields.google_maps_url),
            description=_blank_to_none(fields.description),
            subtitle=_blank_to_none(fields.subtitle),
            organiser_contact_name=_blank_to_none(fields.contact_name),
            organiser_contact_email=_blank_to_none(fields.contact_email),
            organiser_contact_phone=_blank_to_none(fields.contact_phone),
            social_media_website=_blank_to_none(fields.contact_website),
            social_media_facebook=_blank_to_none(fields.contact_facebook),
            event_type=_blank_to_none(fields.event_type),
            club_logo_url=_blank_to_none(fields.icon_url),
            registration_link=registration_url,
            scraped_at=datetime.now(),
            full_content=full_content,
            has_registration_button=fields.has_registration_button,
            **address_parts,
        )

        if not is_relevant_masters_event(event):
            return None
        return event
    finally:
        await collapse_card(page, card)


async def extract_events(page: Page) -> List[ExtractedEvent]:
    """Walk every card on the page sequentially and collect the relevant events."""
    cards = page.locator(CARD_SELECTOR)
    count = await cards.count()
    logger.info("Found %d cards on the page", count)

    events: List[ExtractedEvent] = []
    for index in range(count):
        try:
            event = await extract_card(page, cards.nth(index), index)
        except CardExtractionError as exc:
            logger.warning("Skipping card: %s", exc)
            event = None
        except Exception:
            logger.exception("Card %d: unexpected error, skipping", index + 1)
            event = None
        if event is not None:
            logger.info("Card %d: %s (%s)", index + 1, event.title, event.date.isoformat())
            events.append(event)
        if index < count - 1:
            await human_delay(800, 1200)

    logger.info("Extracted %d relevant events from %d cards", len(events), count)
    return events
