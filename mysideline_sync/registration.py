"""
Registration URL resolution for MySideline cards.

MySideline never renders the registration URL as a plain link; the Register
button is wired up by Vue at runtime. Three strategies are tried in order and
the first URL found wins:

1. static attributes on the button (``data-url``, ``href``, ``onclick`` ...),
2. dynamic interception: ``window.open`` / location changes are trapped and a
   capture-phase click listener reads Vue component data, then the button is
   clicked,
3. event based: click and wait for either a popup or a main-frame navigation.

Every strategy restores whatever it installed in the page before returning.
"""
import asyncio
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .card_parser import URL_ATTRIBUTES

logger = logging.getLogger(__name__)

REGISTER_LABEL_RE = re.compile(r"register|join|sign up", re.IGNORECASE)
MAX_BUTTON_CLICKS = 3
CLICK_TIMEOUT_MS = 5000
CAPTURE_SETTLE_SECONDS = 2.0
EVENT_TIMEOUT_MS = 10000

# lower wins
CAPTURE_PRIORITY = {
    "window.open": 0,
    "vue.data": 1,
    "data-attribute": 2,
    "location.href": 3,
}

_ONCLICK_URL_RE = re.compile(
    r"""(?:window\.open\s*\(\s*|location\.href\s*=\s*)['"](https?://[^'"]+)['"]"""
)

INSTALL_CAPTURE_JS = """
(card) => {
    if (window.__mysidelineCapture) {
        window.__mysidelineCapture.captured.length = 0;
        return true;
    }
    const captured = [];
    const record = (type, url, extra) => {
        if (typeof url === 'string' && url.startsWith('http')) {
            captured.push(Object.assign({ type, url, timestamp: Date.now() }, extra || {}));
        }
    };

    const originalOpen = window.open;
    window.open = function (url) {
        record('window.open', url ? String(url) : '');
        return null;
    };

    let restoreLocation = () => {};
    try {
        const proto = Object.getPrototypeOf(window.location);
        const descriptor = Object.getOwnPropertyDescriptor(proto, 'href');
        Object.defineProperty(window.location, 'href', {
            configurable: true,
            get: () => descriptor.get.call(window.location),
            set: (url) => record('location.href', String(url)),
        });
        restoreLocation = () => { delete window.location.href; };
    } catch (err) {
        // Chromium marks Location as unforgeable; watch the Navigation API instead
        if (window.navigation) {
            const onNavigate = (event) => {
                if (event.destination && event.destination.url !== window.location.href) {
                    record('location.href', event.destination.url);
                    if (event.cancelable) event.preventDefault();
                }
            };
            window.navigation.addEventListener('navigate', onNavigate);
            restoreLocation = () => window.navigation.removeEventListener('navigate', onNavigate);
        }
    }

    const onClick = (event) => {
        const target = event.target instanceof Element ? event.target : null;
        if (!target) return;
        const button = target.closest('button, a, [role="button"]') || target;
        for (let node = button; node && node !== document.body; node = node.parentElement) {
            const vm = node.__vue__ || (node.__vueParentComponent && node.__vueParentComponent.proxy);
            if (vm) {
                const data = Object.assign({}, vm.$props || {}, vm.$data || {});
                ['registrationUrl', 'registerUrl', 'url', 'href', 'link'].forEach(
                    (key) => record('vue.data', data[key], { attribute: key })
                );
                break;
            }
        }
        Object.entries(button.dataset || {}).forEach(
            ([key, value]) => record('data-attribute', value, { attribute: key })
        );
    };
    document.addEventListener('click', onClick, true);

    window.__mysidelineCapture = {
        captured,
        restore: () => {
            window.open = originalOpen;
            restoreLocation();
            document.removeEventListener('click', onClick, true);
        },
    };
    return true;
}
"""

READ_CAPTURES_JS = """
() => window.__mysidelineCapture ? window.__mysidelineCapture.captured.slice() : []
"""

RESTORE_CAPTURE_JS = """
() => {
    const capture = window.__mysidelineCapture;
    if (!capture) return [];
    capture.restore();
    delete window.__mysidelineCapture;
    return capture.captured.slice();
}
"""


# ── pure helpers ─────────────────────────────────────────────────────────────


def url_from_onclick(onclick: str) -> Optional[str]:
    """Pull the URL out of ``window.open("...")`` or ``location.href = "..."``."""
    match = _ONCLICK_URL_RE.search(onclick or "")
    return match.group(1) if match else None


def static_url_from_attributes(attribute_sets: Iterable[Dict[str, str]]) -> Optional[str]:
    """
    Strategy 1: look for a URL in the attributes of the card's register controls.

    Args:
        attribute_sets: one dict per button/link, as collected by
            ``card_parser.parse_card_html``.
    """
    for attrs in attribute_sets:
        for name in URL_ATTRIBUTES:
            value = (attrs.get(name) or "").strip()
            if not value:
                continue
            if name == "onclick" or "window.open" in value or "location.href" in value:
                url = url_from_onclick(value)
                if url:
                    return url
                continue
            if value.startswith("http"):
                return value
    return None


def pick_captured_url(captures: List[Dict[str, Any]]) -> Optional[str]:
    """Rank intercepted URLs by capture type, then newest first."""
    valid = [
        c for c in captures
        if isinstance(c.get("url"), str) and c["url"].startswith("http")
    ]
    if not valid:
        return None
    ranked = sorted(
        valid,
        key=lambda c: (
            CAPTURE_PRIORITY.get(c.get("type"), len(CAPTURE_PRIORITY)),
            -float(c.get("timestamp") or 0),
        ),
    )
    return ranked[0]["url"]


# ── browser strategies ───────────────────────────────────────────────────────


async def _register_buttons(card: Locator, limit: int = MAX_BUTTON_CLICKS) -> List[Locator]:
    """Visible buttons in *card* whose label reads like a registration action."""
    found: List[Locator] = []
    buttons = card.locator("button")
    for i in range(await buttons.count()):
        button = buttons.nth(i)
        try:
            if not await button.is_visible():
                continue
            label = (await button.text_content()) or ""
        except PlaywrightError:
            continue
        if REGISTER_LABEL_RE.search(label):
            found.append(button)
            if len(found) >= limit:
                break
    return found


async def intercept_dynamic_url(page: Page, card: Locator, card_index: int) -> Optional[str]:
    """Strategy 2: trap window.open / location changes while clicking Register."""
    buttons = await _register_buttons(card)
    if not buttons:
        return None

    await card.evaluate(INSTALL_CAPTURE_JS)
    captures: List[Dict[str, Any]] = []
    try:
        for button in buttons:
            label = ((await button.text_content()) or "").strip()
            logger.debug("Card %d: clicking registration button %r", card_index + 1, label)
            try:
                await button.click(timeout=CLICK_TIMEOUT_MS)
            except PlaywrightError as exc:
                logger.debug("Card %d: button click failed: %s", card_index + 1, exc)
                continue
            await asyncio.sleep(CAPTURE_SETTLE_SECONDS)
            captures = await page.evaluate(READ_CAPTURES_JS)
            if captures:
                break
    finally:
        try:
            restored = await page.evaluate(RESTORE_CAPTURE_JS)
            captures = captures or restored
        except PlaywrightError as exc:
            logger.warning("Card %d: could not restore page hooks: %s", card_index + 1, exc)

    url = pick_captured_url(captures)
    if url:
        logger.info("Card %d: registration URL intercepted: %s", card_index + 1, url)
    return url


def _task_result(task: "asyncio.Future[Any]") -> Any:
    if not task.done() or task.cancelled() or task.exception() is not None:
        return None
    return task.result()


async def capture_event_based_url(page: Page, card: Locator, card_index: int) -> Optional[str]:
    """Strategy 3: click Register and take whichever of popup / navigation fires."""
    buttons = await _register_buttons(card, limit=1)
    if not buttons:
        return None

    original_url = page.url
    popup_task = asyncio.ensure_future(
        page.wait_for_event("popup", timeout=EVENT_TIMEOUT_MS)
    )
    navigation_task = asyncio.ensure_future(
        page.wait_for_event(
            "framenavigated",
            predicate=lambda frame: frame == page.main_frame,
            timeout=EVENT_TIMEOUT_MS,
        )
    )
    try:
        await buttons[0].click(timeout=CLICK_TIMEOUT_MS)
        await asyncio.wait(
            {popup_task, navigation_task},
            timeout=EVENT_TIMEOUT_MS / 1000,
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for task in (popup_task, navigation_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(popup_task, navigation_task, return_exceptions=True)

    popup = _task_result(popup_task)
    if popup is not None:
        try:
            await popup.wait_for_load_state("domcontentloaded", timeout=EVENT_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            pass
        finally:
            url = popup.url
            await popup.close()
        if url.startswith("http"):
            logger.info("Card %d: registration URL from popup: %s", card_index + 1, url)
            return url
        return None

    if _task_result(navigation_task) is not None and page.url != original_url:
        url = page.url
        logger.info("Card %d: registration URL from navigation: %s", card_index + 1, url)
        await page.go_back(wait_until="domcontentloaded")
        return url

    return None


async def resolve_registration_url(
    page: Page,
    card: Locator,
    attribute_sets: Iterable[Dict[str, str]],
    card_index: int,
) -> Optional[str]:
    """
    Run the three strategies in order and return the first URL found.

    A strategy that errors or times out is logged and the next one is tried;
    no URL at all is not an error, the event is kept without one.
    """
    url = static_url_from_attributes(attribute_sets)
    if url:
        logger.info("Card %d: static registration URL: %s", card_index + 1, url)
        return url

    for strategy in (intercept_dynamic_url, capture_event_based_url):
        try:
            url = await strategy(page, card, card_index)
        except PlaywrightError as exc:
            logger.warning(
                "Card %d: %s failed: %s", card_index + 1, strategy.__name__, exc
            )
            continue
        if url:
            return url

    logger.info("Card %d: no registration URL found", card_index + 1)
    return None
