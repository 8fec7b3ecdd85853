"""
Making lazily rendered listing items show up in the DOM.
"""
import logging
from typing import Awaitable, Callable, Iterable, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeout

from .config import CrawlConfig, RetryPolicy
from .errors import NoItemsFound
from .locator import count_items, root_selector

logger = logging.getLogger(__name__)

SCROLL_TO_BOTTOM = "window.scrollTo(0, document.body.scrollHeight)"
SCROLL_BY_VIEWPORT = "window.scrollBy(0, window.innerHeight * 0.9)"


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    policy: RetryPolicy,
    nudge: Optional[Callable[[], Awaitable[object]]] = None,
) -> bool:
    """
    Evaluate check up to policy.max_attempts times.

    Between attempts, nudge (if given) runs and then the policy pause elapses.
    Returns True as soon as check passes, False once attempts run out.
    """
    for attempt in range(policy.max_attempts):
        if await check():
            return True
        if attempt == policy.max_attempts - 1:
            break
        if nudge is not None:
            await nudge()
        await policy.pause()
    return False


async def scroll_to_bottom(page) -> None:
    await page.evaluate(SCROLL_TO_BOTTOM)


async def scroll_by_viewport(page) -> None:
    await page.evaluate(SCROLL_BY_VIEWPORT)


async def click_load_more(page, selectors: Iterable[str], click_timeout_ms: int = 3000) -> bool:
    """Click the first visible "load more" control. Returns False if none is shown."""
    for sel in selectors:
        button = page.locator(sel).first
        try:
            if await button.is_visible():
                await button.click(timeout=click_timeout_ms)
                logger.debug(f"Clicked load-more control {sel}")
                return True
        except Exception as e:
            logger.debug(f"Load-more control {sel} not clickable: {e}")
    return False


async def wait_for_first_item(page, config: CrawlConfig) -> int:
    """
    Wait until at least one item is attached to the DOM.

    A single attached-state wait comes first; if it times out, a slower
    scroll-and-poll loop takes over. Raises NoItemsFound if both come up empty.
    """
    selector = root_selector(config)
    try:
        await page.wait_for_selector(selector, state="attached", timeout=config.first_item_timeout_ms)
        return await count_items(page, config)
    except PlaywrightTimeout:
        logger.info(">>> No items attached yet; falling back to scroll polling")

    async def has_items() -> bool:
        return await count_items(page, config) > 0

    found = await poll_until(has_items, config.fallback_poll, nudge=lambda: scroll_by_viewport(page))
    if not found:
        raise NoItemsFound(
            f"No listing items attached after {config.fallback_poll.max_attempts} scroll polls",
            url=page.url,
        )
    return await count_items(page, config)


async def reveal_items(page, config: CrawlConfig) -> int:
    """
    Scroll (or click "load more") until config.cap items are present.

    Stops at the cap, when the round budget runs out, or after
    config.max_stale_rounds consecutive rounds without growth.
    Returns the final item count.
    """
    state = {"count": await count_items(page, config), "stale": 0}
    if state["count"] >= config.cap:
        return state["count"]

    async def nudge() -> None:
        if not await click_load_more(page, config.profile.load_more_selectors):
            await scroll_to_bottom(page)

    async def step() -> None:
        await nudge()
        await config.reveal.pause()
        count = await count_items(page, config)
        if count > state["count"]:
            state["stale"] = 0
        else:
            state["stale"] += 1
        state["count"] = count
        logger.debug(f"Reveal round: {count} items ({state['stale']} stale)")

    async def done() -> bool:
        if state["count"] >= config.cap:
            return True
        limit = config.max_stale_rounds
        return limit is not None and state["stale"] >= limit

    # One more check than rounds: the last round's count is checked too
    rounds = RetryPolicy(max_attempts=config.reveal.max_attempts + 1)
    await poll_until(done, rounds, nudge=step)
    logger.info(f">>> Revealed {state['count']} items")
    return state["count"]
