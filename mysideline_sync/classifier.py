"""
Classifier - decides whether an extracted card is a Masters carnival worth keeping.
"""
import logging
from typing import Iterable, Optional

from .models import ExtractedEvent

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 5
MIN_CONTENT_LENGTH = 50
EXCLUDED_WORD = "touch"


def _mentions_touch(values: Iterable[Optional[str]]) -> bool:
    return any(EXCLUDED_WORD in (value or "").lower() for value in values)


def is_relevant_masters_event(event: ExtractedEvent) -> bool:
    """
    Keep an event when its title has at least 5 characters, the card text has
    at least 50, and nothing about it mentions Touch football.
    """
    title = event.mysideline_title or event.title or ""
    if len(title.strip()) < MIN_TITLE_LENGTH:
        logger.debug("Dropping card with short title: %r", title)
        return False

    if len(event.full_content or "") < MIN_CONTENT_LENGTH:
        logger.debug("Dropping card with too little content: %r", title)
        return False

    if _mentions_touch([
        title,
        event.title,
        event.subtitle,
        event.full_content,
        event.social_media_website,
        event.organiser_contact_email,
        event.social_media_facebook,
    ]):
        logger.debug("Dropping Touch event: %r", title)
        return False

    return True
