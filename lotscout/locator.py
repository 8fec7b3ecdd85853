"""
Locating listing item roots on the results page.
"""
import logging
from typing import List

from .config import CrawlConfig, LocatorMode
from .models import ItemRoot

logger = logging.getLogger(__name__)

# Nearest enclosing container for a detail link; falls back to the parent
ASCEND_SCRIPT = """
(el, selectors) => {
    for (const sel of selectors) {
        const hit = el.closest(sel);
        if (hit) return hit;
    }
    return el.parentElement || el;
}
"""

# A card nested inside another matched card belongs to the outer one
OUTERMOST_SCRIPT = """
(el, selector) => !(el.parentElement && el.parentElement.closest(selector))
"""

COUNT_OUTERMOST_SCRIPT = """
(els, selector) => els.filter(
    el => !(el.parentElement && el.parentElement.closest(selector))
).length
"""


def root_selector(config: CrawlConfig) -> str:
    """Selector whose matches are counted while revealing items."""
    if config.mode is LocatorMode.CARD:
        # A selector list matches each element once, in document order
        return ", ".join(config.profile.card_selectors)
    return config.profile.link_selector


async def count_items(page, config: CrawlConfig) -> int:
    selector = root_selector(config)
    if config.mode is LocatorMode.CARD:
        return await page.locator(selector).evaluate_all(COUNT_OUTERMOST_SCRIPT, selector)
    return await page.locator(selector).count()


async def _outermost(cards, selector: str) -> list:
    kept = []
    for card in cards:
        try:
            if not await card.evaluate(OUTERMOST_SCRIPT, selector):
                continue
        except Exception as e:
            logger.debug(f"Could not check card nesting, keeping it: {e}")
        kept.append(card)
    return kept


async def locate_items(page, config: CrawlConfig) -> List[ItemRoot]:
    """Current item roots in DOM order. Identical-looking roots stay distinct."""
    if config.mode is LocatorMode.CARD:
        selector = root_selector(config)
        cards = await _outermost(await page.query_selector_all(selector), selector)
        logger.info(f">>> Found {len(cards)} item cards on the page")
        return [ItemRoot(element=c) for c in cards]

    anchors = await page.query_selector_all(config.profile.link_selector)
    logger.info(f">>> Found {len(anchors)} detail links on the page")
    roots = []
    for a in anchors:
        try:
            handle = await a.evaluate_handle(ASCEND_SCRIPT, list(config.profile.ancestor_selectors))
            element = handle.as_element() or a
        except Exception as e:
            logger.debug(f"Could not ascend from link, using the link itself: {e}")
            element = a
        roots.append(ItemRoot(element=element, anchor=a))
    return roots
