"""Unit tests for registration URL resolution."""
import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from mysideline_sync import registration
from mysideline_sync.registration import (
    capture_event_based_url,
    pick_captured_url,
    resolve_registration_url,
    static_url_from_attributes,
    url_from_onclick,
)


class FakeButton:
    def __init__(self, label, page, visible=True):
        self.label = label
        self.page = page
        self.visible = visible

    async def is_visible(self):
        return self.visible

    async def text_content(self):
        return self.label

    async def click(self, timeout=None):
        self.page.clicks.append(self.label)
        self.page.clicked.set()


class FakeButtonList:
    def __init__(self, buttons):
        self.buttons = buttons

    async def count(self):
        return len(self.buttons)

    def nth(self, index):
        return self.buttons[index]


class FakeCard:
    def __init__(self, buttons):
        self.buttons = buttons
        self.evaluated = []

    def locator(self, selector):
        assert selector == "button"
        return FakeButtonList(self.buttons)

    async def evaluate(self, script):
        self.evaluated.append(script)


class FakePopup:
    def __init__(self, url):
        self.url = url
        self.closed = False

    async def wait_for_load_state(self, state, timeout=None):
        return None

    async def close(self):
        self.closed = True


class FakePage:
    """Opens *popup* once any button is clicked; never navigates."""

    def __init__(self, popup=None, captures=None):
        self.popup = popup
        self.captures = captures or []
        self.clicked = asyncio.Event()
        self.clicks = []
        self.url = "https://profile.mysideline.com.au/register/clubsearch/"
        self.main_frame = object()
        self.restored = False

    async def wait_for_event(self, name, predicate=None, timeout=None):
        if name == "popup" and self.popup is not None:
            await self.clicked.wait()
            return self.popup
        await asyncio.sleep(3600)

    async def evaluate(self, script):
        if script is registration.RESTORE_CAPTURE_JS:
            self.restored = True
        return list(self.captures)

    async def go_back(self, wait_until=None):
        return None


class TestStaticUrl:
    """Tests for static_url_from_attributes and url_from_onclick."""

    def test_data_url(self):
        attrs = [{"data-url": "https://profile.mysideline.com.au/register/123"}]
        assert static_url_from_attributes(attrs) == "https://profile.mysideline.com.au/register/123"

    def test_onclick_window_open(self):
        attrs = [{"onclick": "window.open('https://example.org/reg/9', '_blank')"}]
        assert static_url_from_attributes(attrs) == "https://example.org/reg/9"

    def test_onclick_location_href(self):
        assert url_from_onclick('location.href = "https://example.org/reg/7"') == "https://example.org/reg/7"

    def test_relative_and_script_values_are_ignored(self):
        attrs = [{"href": "#", "onclick": "doRegister()"}, {"data-url": "/register/1"}]
        assert static_url_from_attributes(attrs) is None

    def test_first_control_with_url_wins(self):
        attrs = [{"href": "#"}, {"href": "https://a.example/1"}, {"href": "https://b.example/2"}]
        assert static_url_from_attributes(attrs) == "https://a.example/1"


class TestPickCapturedUrl:
    """Tests for ranking intercepted URLs."""

    def test_window_open_beats_everything(self):
        captures = [
            {"type": "location.href", "url": "https://loc.example", "timestamp": 5},
            {"type": "vue.data", "url": "https://vue.example", "timestamp": 4},
            {"type": "window.open", "url": "https://open.example", "timestamp": 1},
        ]
        assert pick_captured_url(captures) == "https://open.example"

    def test_most_recent_within_type(self):
        captures = [
            {"type": "data-attribute", "url": "https://old.example", "timestamp": 1},
            {"type": "data-attribute", "url": "https://new.example", "timestamp": 2},
        ]
        assert pick_captured_url(captures) == "https://new.example"

    def test_non_http_values_are_dropped(self):
        assert pick_captured_url([{"type": "window.open", "url": "about:blank"}]) is None
        assert pick_captured_url([]) is None


class TestBrowserStrategies:
    """Tests for the click-driven strategies against a fake page."""

    @pytest.fixture(autouse=True)
    def fast_settle(self, monkeypatch):
        monkeypatch.setattr(registration, "CAPTURE_SETTLE_SECONDS", 0)

    def test_popup_url_is_returned_and_popup_closed(self):
        popup = FakePopup("https://example.org/reg/123")
        page = FakePage(popup=popup)
        card = FakeCard([FakeButton("Register", page)])

        url = asyncio.run(resolve_registration_url(page, card, [], 0))

        assert url == "https://example.org/reg/123"
        assert popup.closed is True
        assert page.restored is True

    def test_popup_is_closed_when_it_crashes_while_loading(self):
        class CrashingPopup(FakePopup):
            async def wait_for_load_state(self, state, timeout=None):
                raise PlaywrightError("Target page, context or browser has been closed")

        popup = CrashingPopup("about:blank")
        page = FakePage(popup=popup)
        card = FakeCard([FakeButton("Register", page)])

        url = asyncio.run(resolve_registration_url(page, card, [], 0))

        assert url is None
        assert popup.closed is True

    def test_intercepted_url_wins_over_popup(self):
        page = FakePage(
            popup=FakePopup("https://popup.example"),
            captures=[{"type": "window.open", "url": "https://captured.example", "timestamp": 1}],
        )
        card = FakeCard([FakeButton("Register now", page)])

        url = asyncio.run(resolve_registration_url(page, card, [], 0))

        assert url == "https://captured.example"
        assert page.clicks == ["Register now"]

    def test_only_visible_registration_buttons_are_clicked(self):
        page = FakePage()
        card = FakeCard([
            FakeButton("Details", page),
            FakeButton("Register", page, visible=False),
            FakeButton("Join", page),
            FakeButton("Sign up", page),
            FakeButton("Register", page),
            FakeButton("Register again", page),
        ])

        url = asyncio.run(registration.intercept_dynamic_url(page, card, 0))

        assert url is None
        assert page.clicks == ["Join", "Sign up", "Register"]
        assert page.restored is True

    def test_no_buttons_means_no_url(self, monkeypatch):
        monkeypatch.setattr(registration, "EVENT_TIMEOUT_MS", 10)
        page = FakePage()
        card = FakeCard([FakeButton("Details", page)])
        assert asyncio.run(capture_event_based_url(page, card, 0)) is None
        assert page.clicks == []
