"""
Detection of bot-verification and access-denied interstitials.
"""
import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def looks_blocked(text: Optional[str], phrases: Iterable[str]) -> bool:
    """True if text contains any of the challenge phrases (case-insensitive)."""
    if not text:
        return False
    haystack = " ".join(text.split()).lower()
    return any(p.lower() in haystack for p in phrases)


async def is_blocked(page, phrases: Iterable[str]) -> bool:
    """Check the page title and visible body text for challenge phrases."""
    phrases = tuple(phrases)
    title = await page.title()
    if looks_blocked(title, phrases):
        logger.warning(f">>> Challenge page detected by title: {title!r}")
        return True
    body = await page.inner_text("body")
    if looks_blocked(body, phrases):
        logger.warning(">>> Challenge page detected in page text")
        return True
    return False
