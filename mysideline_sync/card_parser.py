"""
Card parser - reads the fields of one expanded MySideline search card.

The page driver hands over the card's inner HTML once the card has been
expanded; everything here is plain BeautifulSoup work so it can be tested
against saved HTML without a browser.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

REGISTER_BUTTON_SELECTOR = (
    "button#cardButton, button.el-button--primary, .register-button, .registration-link"
)
REGISTER_LINK_SELECTOR = 'a[href*="register"], a[href*="signup"], a[href*="join"]'
MAP_LINK_SELECTOR = 'a[href*="maps.google"], a[href*="google.com/maps"]'
URL_ATTRIBUTES = ["data-url", "data-href", "data-link", "data-registration-url", "href", "onclick"]

CONTACT_MARKER = "Club Contact"
MIN_DESCRIPTION_LENGTH = 20

_NAME_RE = re.compile(r"Name:\s*(.*?)\s*(?:Number:|Phone:|Email:|$)", re.DOTALL)


@dataclass
class CardFields:
    icon_url: str = ""
    title: Optional[str] = None
    subtitle: Optional[str] = None
    google_maps_url: str = ""
    address_lines: List[str] = field(default_factory=list)
    description: str = ""
    contact_name: str = ""
    contact_phone: str = ""
    contact_email: str = ""
    contact_facebook: str = ""
    contact_website: str = ""
    event_type: str = ""
    has_registration_button: bool = False
    button_attributes: List[Dict[str, str]] = field(default_factory=list)

    @property
    def location_address(self) -> str:
        return ", ".join(self.address_lines)


def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ""
    return re.sub(r"\s+", " ", el.get_text(" ", strip=True)).strip()


def _contact_paragraph(soup: BeautifulSoup) -> Optional[Tag]:
    for p in soup.find_all("p"):
        if CONTACT_MARKER in p.get_text(" ", strip=True):
            return p
    return None


def _read_contact(fields: CardFields, paragraph: Tag) -> None:
    name_match = _NAME_RE.search(paragraph.get_text(" ", strip=True))
    if name_match:
        fields.contact_name = name_match.group(1).strip()

    phone = paragraph.select_one('a[href^="tel:"]')
    if phone:
        fields.contact_phone = _text(phone)

    email = paragraph.select_one('a[href^="mailto:"]')
    if email:
        fields.contact_email = _text(email) or email.get("href", "")[len("mailto:"):]

    for link in paragraph.select('a[href^="http"]'):
        href = link.get("href", "").strip()
        if "facebook.com" in href:
            if not fields.contact_facebook:
                fields.contact_facebook = href
        elif not fields.contact_website:
            fields.contact_website = href


def _read_event_type(soup: BeautifulSoup) -> str:
    for item in soup.select(".item"):
        if _text(item.select_one(".list-item")) == "Type":
            return _text(item.select_one(".right"))
    return ""


def _read_description(soup: BeautifulSoup) -> str:
    for p in soup.find_all("p"):
        if p.find_parent("a") is not None:
            continue
        text = _text(p)
        if text and CONTACT_MARKER not in text and len(text) > MIN_DESCRIPTION_LENGTH:
            return text
    return ""


def parse_card_html(html: str) -> CardFields:
    """
    Parse the inner HTML of an expanded card.

    Args:
        html: ``innerHTML`` of the ``.el-card`` element.

    Returns:
        CardFields with empty strings for anything the card does not show.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    fields = CardFields()

    logo = soup.select_one(".image__wrapper img")
    if logo:
        fields.icon_url = logo.get("data-url") or logo.get("src") or ""

    title = soup.select_one("h3.title")
    fields.title = _text(title) or None

    subtitle = soup.select_one("h4.subtitle, h4#subtitle")
    fields.subtitle = _text(subtitle) or None

    map_link = soup.select_one(MAP_LINK_SELECTOR)
    if map_link:
        fields.google_maps_url = map_link.get("href", "")
        lines = [_text(p) for p in map_link.select("p.m-0")] or [_text(map_link)]
        fields.address_lines = [line for line in lines if line]

    fields.description = _read_description(soup)

    contact = _contact_paragraph(soup)
    if contact is not None:
        _read_contact(fields, contact)

    fields.event_type = _read_event_type(soup)

    buttons = soup.select(REGISTER_BUTTON_SELECTOR)
    fields.has_registration_button = bool(buttons)
    for el in buttons + soup.select(REGISTER_LINK_SELECTOR):
        attrs = {name: el.get(name) for name in URL_ATTRIBUTES if el.get(name)}
        if attrs:
            fields.button_attributes.append(attrs)

    return fields


_SUBURB_LINE_RE = re.compile(
    r"^(?P<suburb>.+?)[,\s]+(?P<state>NSW|VIC|QLD|WA|SA|TAS|ACT|NT)\s+(?P<postcode>\d{4})$",
    re.IGNORECASE,
)


def split_address(lines: List[str]) -> Dict[str, Optional[str]]:
    """
    Pick venue, suburb, postcode and country out of the card's address lines.

    MySideline prints "Venue", "Street", "Suburb STATE 2000", "Australia";
    anything that does not fit that shape is left as None.
    """
    parts: Dict[str, Optional[str]] = {
        "venue_name": None,
        "location_suburb": None,
        "location_postcode": None,
        "location_country": None,
    }
    remaining = list(lines)
    if remaining and remaining[-1].strip().lower() == "australia":
        parts["location_country"] = "Australia"
        remaining.pop()

    for line in remaining:
        match = _SUBURB_LINE_RE.match(line.strip())
        if match:
            parts["location_suburb"] = match.group("suburb").strip()
            parts["location_postcode"] = match.group("postcode")
            break

    if len(remaining) > 1 and not _SUBURB_LINE_RE.match(remaining[0].strip()):
        parts["venue_name"] = remaining[0].strip()
    return parts
