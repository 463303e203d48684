"""Unit tests for per-card extraction against a fake page."""
import asyncio
import datetime as dt

import pytest

from mysideline_sync import card_extractor
from mysideline_sync.card_extractor import extract_events


def card_html(title, address="Sydney Sports Complex, NSW", event_type="League"):
    return f"""
      <h3 class="title">{title}</h3>
      <a href="https://maps.google.com/?q=x"><p class="m-0">{address}</p></a>
      <p>Club Contact Name: Jane Citizen Email: <a href="mailto:jane@example.org">jane@example.org</a></p>
      <div class="item"><span class="list-item">Type</span><span class="right">{event_type}</span></div>
    """


class FakeCard:
    def __init__(self, html):
        self.html = html

    async def inner_html(self):
        return self.html

    async def inner_text(self):
        return f"{self.html} padding text so the card has enough content to keep"


class FakeCards:
    def __init__(self, cards):
        self.cards = cards

    async def count(self):
        return len(self.cards)

    def nth(self, index):
        return self.cards[index]


class FakePage:
    def __init__(self, cards):
        self.cards = FakeCards(cards)

    def locator(self, selector):
        assert selector == card_extractor.CARD_SELECTOR
        return self.cards


@pytest.fixture(autouse=True)
def no_browser_actions(monkeypatch):
    async def noop(*args, **kwargs):
        return None

    async def no_url(page, card, attribute_sets, index):
        return "https://example.org/reg/123" if "Carnival" in card.html else None

    monkeypatch.setattr(card_extractor, "expand_card", noop)
    monkeypatch.setattr(card_extractor, "collapse_card", noop)
    monkeypatch.setattr(card_extractor, "human_delay", noop)
    monkeypatch.setattr(card_extractor, "resolve_registration_url", no_url)


class TestExtractEvents:
    """Tests for extract_events."""

    def test_happy_card(self):
        page = FakePage([FakeCard(card_html("NSW Masters Rugby League Carnival (15/09/2099)"))])

        [event] = asyncio.run(extract_events(page))

        assert event.title == "NSW Masters Rugby League Carnival"
        assert event.mysideline_title == "NSW Masters Rugby League Carnival (15/09/2099)"
        assert event.date == dt.date(2099, 9, 15)
        assert event.state == "New South Wales"
        assert event.location_address == "Sydney Sports Complex, NSW"
        assert event.event_type == "League"
        assert event.organiser_contact_email == "jane@example.org"
        assert event.registration_link == "https://example.org/reg/123"
        assert event.source == "mysideline"

    def test_rejected_cards_are_dropped(self):
        page = FakePage([
            FakeCard(card_html("NSW Masters Rugby League Carnival (15/09/2099)")),
            FakeCard(card_html("Mixed Touch Gala (01/10/2099)")),
            FakeCard(card_html("Over 40s Masters Day (02/10/2099)", event_type="Touch")),
            FakeCard(card_html("Masters Carnival with no date")),
            FakeCard(card_html("QLD Masters Carnival (20/10/2099)", address="Suncorp Stadium, Milton QLD 4064")),
        ])

        events = asyncio.run(extract_events(page))

        assert [e.title for e in events] == ["NSW Masters Rugby League Carnival", "QLD Masters Carnival"]
        assert events[1].state == "Queensland"

    def test_registration_url_may_be_missing(self):
        page = FakePage([FakeCard(card_html("VIC Masters Day (05/11/2099)", address="Geelong, VIC"))])
        [event] = asyncio.run(extract_events(page))
        assert event.registration_link is None

    def test_failing_card_does_not_stop_the_walk(self):
        class BrokenCard(FakeCard):
            async def inner_html(self):
                raise RuntimeError("detached node")

        page = FakePage([
            BrokenCard(""),
            FakeCard(card_html("NSW Masters Rugby League Carnival (15/09/2099)")),
            FakeCard(card_html("QLD Masters Carnival (20/10/2099)", address="Milton QLD 4064")),
        ])

        events = asyncio.run(extract_events(page))

        assert [e.title for e in events] == ["NSW Masters Rugby League Carnival", "QLD Masters Carnival"]
