"""
Record extraction from a single listing item root.

Each field is resolved by walking an ordered list of selector candidates
against the item root and taking the first non-empty result. A miss or a
DOM error on one candidate only moves on to the next one; a field with no
hit is None. extract_record never raises for missing markup.
"""
import logging
from typing import Iterable, Optional

from .config import CrawlConfig, FieldRules
from .models import ItemRoot, ListingRecord
from .utils import absolute_url, clean_num, clean_text, split_title

logger = logging.getLogger(__name__)


async def first_text(fragment, selectors: Iterable[str]) -> Optional[str]:
    """Text of the first selector match with non-blank text, else None."""
    for sel in selectors:
        try:
            el = await fragment.query_selector(sel)
            if el is None:
                continue
            text = clean_text(await el.text_content())
        except Exception as e:
            logger.debug(f"Selector {sel!r} failed: {e}")
            continue
        if text:
            return text
    return None


async def first_attribute(fragment, selectors: Iterable[str], name: str) -> Optional[str]:
    """Attribute `name` of the first selector match that carries it, else None."""
    for sel in selectors:
        try:
            el = await fragment.query_selector(sel)
            if el is None:
                continue
            value = await el.get_attribute(name)
        except Exception as e:
            logger.debug(f"Selector {sel!r} failed: {e}")
            continue
        if value and value.strip():
            return value.strip()
    return None


def match_deal_badge(text: Optional[str], badges: Iterable[str]) -> Optional[str]:
    """Map badge text onto one of the known labels."""
    if not text:
        return None
    lowered = text.lower()
    for badge in badges:
        if badge.lower() in lowered:
            return badge
    return None


async def is_sponsored(root, rules: FieldRules) -> bool:
    for sel in rules.sponsored:
        try:
            if await root.query_selector(sel) is not None:
                return True
        except Exception as e:
            logger.debug(f"Sponsored marker {sel!r} failed: {e}")
    return False


async def _item_link(item: ItemRoot, rules: FieldRules) -> Optional[str]:
    if item.anchor is not None:
        try:
            href = await item.anchor.get_attribute("href")
        except Exception as e:
            logger.debug(f"Could not read link href: {e}")
            href = None
        if href:
            return href
    return await first_attribute(item.element, rules.link, "href")


async def extract_record(item: ItemRoot, config: CrawlConfig, source_url: str) -> ListingRecord:
    """Build one ListingRecord from an item root."""
    profile = config.profile
    rules = profile.fields
    root = item.element

    title = await first_text(root, rules.title)
    price_raw = await first_text(root, rules.price)
    mileage_raw = await first_text(root, rules.mileage)
    dealer = await first_text(root, rules.dealer)
    deal_badge = match_deal_badge(await first_text(root, rules.deal_badge), profile.deal_badges)

    sponsored = False
    if config.detects_sponsored:
        sponsored = await is_sponsored(root, rules)

    link = absolute_url(await _item_link(item, rules), profile.origin)
    year, make, model, trim = split_title(title)

    record = ListingRecord(
        source_url=source_url,
        title=title,
        year=year,
        make=make,
        model=model,
        trim=trim,
        price_raw=price_raw,
        price_num=clean_num(price_raw),
        mileage_raw=mileage_raw,
        mileage_num=clean_num(mileage_raw),
        dealer=dealer,
        deal_badge=deal_badge,
        sponsored=sponsored,
        link=link,
    )
    logger.debug(f"Found item: {record.title} | {record.price_raw} | {record.mileage_raw} | {record.link}")
    return record
