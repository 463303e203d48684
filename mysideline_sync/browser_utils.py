"""Shared browser-automation utilities for human-like interaction."""

import asyncio
import random

from playwright.async_api import Locator, Page


async def human_delay(min_ms: int = 500, max_ms: int = 1500) -> None:
    """Wait for a random amount of time to simulate human behavior."""
    delay = random.uniform(min_ms, max_ms) / 1000.0
    await asyncio.sleep(delay)


async def human_click(page: Page, locator: Locator, timeout: float = 5000) -> None:
    """Move mouse to element and click with a slight offset."""
    await locator.wait_for(state="visible", timeout=timeout)
    await locator.scroll_into_view_if_needed(timeout=timeout)
    box = await locator.bounding_box()
    if box:
        # Calculate random point within the element
        x = box['x'] + box['width'] * random.uniform(0.2, 0.8)
        y = box['y'] + box['height'] * random.uniform(0.2, 0.8)

        await page.mouse.move(x, y, steps=random.randint(5, 15))
        await human_delay(100, 300)
        await page.mouse.click(x, y)
    else:
        await locator.click(timeout=timeout)
