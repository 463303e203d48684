"""
Page Driver - opens the MySideline search page and waits for it to settle.

The search page is a Vue.js single-page app that hydrates in several waves,
so readiness is checked in seven explicit stages. Every stage has its own
bounded timeout and fails soft: a stage that never completes is logged and
the next one runs. Extraction always proceeds; the classifier filters any
garbage a half-loaded page produces.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .config import SyncConfig
from .errors import PageLoadError

logger = logging.getLogger(__name__)

CARD_SELECTOR = '.el-card.is-always-shadow, [id^="clubsearch_"]'
EXPAND_SELECTOR = ".click-expand"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1920, "height": 1080}
LAUNCH_RETRY_DELAY_SECONDS = 2

# stage timeouts (ms)
STRUCTURE_TIMEOUT_MS = 30000
JS_INIT_TIMEOUT_MS = 60000
SEARCH_TITLE_TIMEOUT_MS = 30000
SEARCH_CARDS_TIMEOUT_MS = 45000
MEANINGFUL_CONTENT_TIMEOUT_MS = 45000

BODY_TEXT_LENGTH_JS = "() => (document.body && document.body.innerText || '').length"

STRUCTURE_JS = "() => document.querySelectorAll('*').length >= 50"

JS_INIT_JS = """
() => {
    const interactive = document.querySelectorAll('button, a, input, select, [onclick], [role="button"]').length;
    const text = (document.body && document.body.innerText || '').length;
    const scripts = document.querySelectorAll('script').length;
    return interactive >= 5 && text >= 500 && scripts >= 1;
}
"""

SEARCH_TITLE_JS = """
() => {
    const title = document.title || '';
    return ['Club Finder', 'MySideline', 'Search'].some((word) => title.includes(word));
}
"""

SEARCH_CARDS_JS = """
(selector) => {
    const vocabulary = /masters|rugby|league|tournament|carnival|championship/i;
    const cards = Array.from(document.querySelectorAll(selector));
    return cards.filter((card) => vocabulary.test(card.innerText || '')).length >= 3;
}
"""

VALIDATION_JS = """
(selector) => {
    const text = (document.body && document.body.innerText || '');
    return {
        hasTitle: !!document.title,
        meaningfulBody: text.length > 1000,
        hasNavigation: !!document.querySelector('nav, header, [role="navigation"]'),
        cardCount: document.querySelectorAll(selector).length,
    };
}
"""

MEANINGFUL_CONTENT_JS = """
() => {
    const text = (document.body && document.body.innerText || '');
    const interactive = document.querySelectorAll('button, a, input, select, [role="button"]').length;
    const blocks = document.querySelectorAll('div, section, article, li').length;
    return text.length >= 2000 && interactive >= 10 && blocks >= 20
        && /masters|rugby league|carnival/i.test(text);
}
"""

DIAGNOSTICS_JS = """
([cardSelector, expandSelector]) => ({
    url: window.location.href,
    title: document.title,
    bodyTextLength: (document.body && document.body.innerText || '').length,
    elementCount: document.querySelectorAll('*').length,
    cardCount: document.querySelectorAll(cardSelector).length,
    expandControlCount: document.querySelectorAll(expandSelector).length,
})
"""


# ── browser session ──────────────────────────────────────────────────────────


def _log_launch_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "Browser launch attempt %d failed: %s",
        retry_state.attempt_number, retry_state.outcome.exception(),
    )


async def _launch_with_retry(p: Playwright, headless: bool, attempts: int) -> Browser:
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(LAUNCH_RETRY_DELAY_SECONDS),
            retry=retry_if_exception_type(PlaywrightError),
            before_sleep=_log_launch_retry,
            sleep=asyncio.sleep,
            reraise=True,
        ):
            with attempt:
                return await p.chromium.launch(headless=headless, args=["--no-sandbox"])
    except PlaywrightError as exc:
        raise PageLoadError(f"Could not launch browser after {attempts} attempts: {exc}") from exc


@asynccontextmanager
async def open_search_page(config: SyncConfig) -> AsyncIterator[Page]:
    """
    Launch a stealth Chromium session and navigate to the MySideline search URL.

    The browser, its context and the page are closed when the block exits,
    whether it finishes normally or raises.
    """
    ms = config.mysideline
    async with Stealth().use_async(async_playwright()) as p:
        browser = await _launch_with_retry(p, config.headless, ms.retry_attempts)
        try:
            context = await browser.new_context(
                user_agent=USER_AGENT,
                viewport=VIEWPORT,
                locale="en-AU",
            )
            page = await context.new_page()
            page.set_default_timeout(ms.request_timeout_ms)
            page.set_default_navigation_timeout(ms.request_timeout_ms)

            logger.info("Navigating to MySideline: %s", ms.url)
            try:
                await page.goto(ms.url, wait_until="domcontentloaded")
            except PlaywrightError as exc:
                raise PageLoadError(f"Could not load {ms.url}: {exc}") from exc

            try:
                yield page
            finally:
                await context.close()
        finally:
            await browser.close()
            logger.debug("Browser closed")


# ── stability stages ─────────────────────────────────────────────────────────


async def _soft_stage(name: str, wait: Callable[[], Awaitable[Any]]) -> bool:
    """Run one readiness stage; timeouts and page errors are logged, not raised."""
    try:
        await wait()
    except PlaywrightTimeoutError:
        logger.warning("Stage '%s' timed out, continuing", name)
        return False
    except PlaywrightError as exc:
        logger.warning("Stage '%s' failed: %s", name, exc)
        return False
    logger.info("Stage '%s' complete", name)
    return True


async def poll_until_stable(
    page: Page,
    *,
    interval: float,
    attempts: int,
    required: int,
    is_stable: Callable[[int, int], bool],
    label: str,
) -> bool:
    """
    Poll the body text length until *required* consecutive readings pass
    ``is_stable(previous, current)``.

    Returns False when *attempts* readings go by without that happening, or
    when a reading fails because the page is navigating or re-rendering.
    """
    previous = 0
    streak = 0
    for attempt in range(1, attempts + 1):
        try:
            current = await page.evaluate(BODY_TEXT_LENGTH_JS)
        except PlaywrightError as exc:
            logger.warning("%s: poll %d failed, continuing: %s", label, attempt, exc)
            return False
        if is_stable(previous, current):
            streak += 1
            if streak >= required:
                logger.info("%s: stable at %d chars after %d polls", label, current, attempt)
                return True
        else:
            streak = 0
        logger.debug("%s: poll %d/%d, %d chars", label, attempt, attempts, current)
        previous = current
        if attempt < attempts:
            await asyncio.sleep(interval)
    logger.warning("%s: not stable after %d polls", label, attempts)
    return False


def content_growth_settled(previous: int, current: int) -> bool:
    return current == previous and current > 1000


def content_stabilized(previous: int, current: int) -> bool:
    return abs(current - previous) < 100 and current > 1000


async def wait_for_structure(page: Page) -> bool:
    async def _wait() -> None:
        await page.wait_for_selector("body", timeout=STRUCTURE_TIMEOUT_MS)
        await page.wait_for_function(STRUCTURE_JS, timeout=STRUCTURE_TIMEOUT_MS)
    return await _soft_stage("structure", _wait)


async def wait_for_js_init(page: Page) -> bool:
    return await _soft_stage(
        "js init", lambda: page.wait_for_function(JS_INIT_JS, timeout=JS_INIT_TIMEOUT_MS)
    )


async def wait_for_content_growth(page: Page, interval: float = 3) -> bool:
    return await poll_until_stable(
        page, interval=interval, attempts=10, required=3,
        is_stable=content_growth_settled, label="Content growth",
    )


async def wait_for_search_results(page: Page) -> bool:
    async def _wait() -> None:
        await page.wait_for_function(SEARCH_TITLE_JS, timeout=SEARCH_TITLE_TIMEOUT_MS)
        await page.wait_for_function(
            SEARCH_CARDS_JS, arg=CARD_SELECTOR, timeout=SEARCH_CARDS_TIMEOUT_MS
        )
    return await _soft_stage("search results", _wait)


async def validate_page(page: Page) -> Dict[str, Any]:
    """Stage 5: report whether the page looks like a loaded search page."""
    try:
        report = await page.evaluate(VALIDATION_JS, CARD_SELECTOR)
    except PlaywrightError as exc:
        logger.warning("Stage 'validation' failed: %s", exc)
        return {}
    ok = report.get("hasTitle") and report.get("meaningfulBody") and (
        report.get("hasNavigation") or report.get("cardCount", 0) > 0
    )
    if ok:
        logger.info("Stage 'validation' complete: %s", report)
    else:
        logger.warning("Stage 'validation' found an incomplete page: %s", report)
    return report


async def wait_for_stabilization(page: Page, interval: float = 2) -> bool:
    return await poll_until_stable(
        page, interval=interval, attempts=15, required=4,
        is_stable=content_stabilized, label="Stabilization",
    )


async def wait_for_meaningful_content(page: Page) -> bool:
    return await _soft_stage(
        "meaningful content",
        lambda: page.wait_for_function(MEANINGFUL_CONTENT_JS, timeout=MEANINGFUL_CONTENT_TIMEOUT_MS),
    )


async def wait_for_page_ready(page: Page) -> None:
    """Run the seven readiness stages in order."""
    await wait_for_structure(page)
    await wait_for_js_init(page)
    await wait_for_content_growth(page)
    await wait_for_search_results(page)
    await validate_page(page)
    await wait_for_stabilization(page)
    await wait_for_meaningful_content(page)


# ── diagnostics ──────────────────────────────────────────────────────────────


async def log_page_diagnostics(page: Page, screenshot_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Log what the page looks like right before extraction."""
    try:
        info = await page.evaluate(DIAGNOSTICS_JS, [CARD_SELECTOR, EXPAND_SELECTOR])
    except PlaywrightError as exc:
        logger.warning("Could not collect page diagnostics: %s", exc)
        return {}

    logger.info(
        "Page ready: %s (%r) - %d chars, %d elements, %d cards, %d expand controls",
        info.get("url"), info.get("title"), info.get("bodyTextLength", 0),
        info.get("elementCount", 0), info.get("cardCount", 0),
        info.get("expandControlCount", 0),
    )

    if screenshot_dir is not None:
        screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = screenshot_dir / "debug-mysideline-page.png"
        try:
            await page.screenshot(path=str(path), full_page=True)
            logger.info("Debug screenshot saved: %s", path)
        except PlaywrightError as exc:
            logger.warning("Debug screenshot failed: %s", exc)
    return info
