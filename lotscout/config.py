"""
Crawl configuration: site profiles, locator modes and pacing policies.

Everything here is immutable. A crawl receives one CrawlConfig and never
writes back to it, so concurrent crawls can run different modes or sites.
"""
import asyncio
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple


class LocatorMode(Enum):
    """How item roots are found on the results page."""
    CARD = "card"   # listing containers matched directly
    LINK = "link"   # detail links, ascended to their enclosing container


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded attempts with a jittered pause between them."""
    max_attempts: int
    min_delay: float = 0.0
    max_delay: float = 0.0

    def delay(self) -> float:
        if self.max_delay <= self.min_delay:
            return max(self.min_delay, 0.0)
        return random.uniform(self.min_delay, self.max_delay)

    async def pause(self) -> None:
        d = self.delay()
        if d > 0:
            await asyncio.sleep(d)


@dataclass(frozen=True)
class FieldRules:
    """Ordered selector candidates per record field. First non-empty match wins."""
    title: Tuple[str, ...]
    price: Tuple[str, ...]
    mileage: Tuple[str, ...]
    dealer: Tuple[str, ...]
    deal_badge: Tuple[str, ...]
    sponsored: Tuple[str, ...]
    link: Tuple[str, ...]


@dataclass(frozen=True)
class SiteProfile:
    """Everything site-specific the crawler needs to know."""
    name: str
    origin: str
    search_url: str
    link_selector: str
    card_selectors: Tuple[str, ...]
    ancestor_selectors: Tuple[str, ...]
    load_more_selectors: Tuple[str, ...]
    consent_labels: Tuple[str, ...]
    challenge_phrases: Tuple[str, ...]
    deal_badges: Tuple[str, ...]
    fields: FieldRules

    # Browser profile
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    viewport: Tuple[int, int] = (1366, 1800)
    locale: str = "en-US"
    timezone_id: Optional[str] = "America/Denver"
    geolocation: Optional[Tuple[float, float]] = None


# Detail links are the most stable thing across layouts
AUTOTRADER_LINK_SEL = 'a[href*="/cars-for-sale/vehicle"]'

AUTOTRADER = SiteProfile(
    name="autotrader",
    origin="https://www.autotrader.com",
    search_url="https://www.autotrader.com/cars-for-sale/all-cars",
    link_selector=AUTOTRADER_LINK_SEL,
    card_selectors=(
        '[data-cmp="inventoryListing"]',
        '[data-cmp="itemCard"]',
        '[data-qaid="cntnr-listings-tier-listings"] > div',
    ),
    ancestor_selectors=(
        "article",
        '[data-cmp*="inventory"]',
        "li",
    ),
    load_more_selectors=(
        'button:has-text("See More")',
        'button:has-text("Load More")',
        'button:has-text("Show More Results")',
    ),
    consent_labels=("Accept All", "Accept all", "I Agree", "Got it", "Accept"),
    challenge_phrases=(
        "verify you are a human",
        "access denied",
        "unusual traffic",
        "are you a robot",
        "press & hold",
        "request unsuccessful",
        "pardon our interruption",
    ),
    deal_badges=("Great Price", "Good Price", "Fair Price"),
    fields=FieldRules(
        title=(
            '[data-cmp="inventoryListingTitle"]',
            "h3",
            "h2",
            '[data-cmp*="title"]',
        ),
        price=(
            '[data-cmp="pricing"] :text("$")',
            ':text("$")',
        ),
        mileage=(
            ':text-matches("^[0-9][0-9,]*[ ]*(mi|mi[.]|miles)$", "i")',
            '[data-cmp*="mileage"]',
            # Unit must directly follow a number
            ':text-matches("[0-9][ ]*(miles|mi[.]?)($|[^a-z])", "i")',
        ),
        dealer=(
            '[data-cmp="dealerName"]',
            '[data-cmp="seller-name"]',
            ".dealer-name",
        ),
        deal_badge=(
            ':text("Great Price")',
            ':text("Good Price")',
            ':text("Fair Price")',
        ),
        sponsored=(
            ':text("Sponsored by")',
            ':text-is("Sponsored")',
            ':text("Sponsored")',
        ),
        link=(AUTOTRADER_LINK_SEL,),
    ),
)

SITES: Dict[str, SiteProfile] = {
    AUTOTRADER.name: AUTOTRADER,
}


def get_site_profile(name: str) -> SiteProfile:
    """Look up a site profile by name."""
    try:
        return SITES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown site '{name}'. Known: {', '.join(sorted(SITES))}")


@dataclass(frozen=True)
class CrawlConfig:
    """Per-invocation crawl settings."""
    profile: SiteProfile = AUTOTRADER
    mode: LocatorMode = LocatorMode.LINK
    cap: int = 800

    headless: bool = True
    warm_up: bool = False
    dismiss_consent: bool = True

    # Timeouts (ms, Playwright units)
    navigation_timeout_ms: int = 60_000
    first_item_timeout_ms: int = 45_000
    network_idle_timeout_ms: int = 15_000
    default_timeout_ms: int = 30_000

    # Pacing
    fallback_poll: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(max_attempts=60, min_delay=0.9, max_delay=0.9)
    )
    reveal: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(max_attempts=50, min_delay=0.7, max_delay=1.1)
    )
    max_stale_rounds: Optional[int] = 8

    # Request-level bound on the whole crawl (seconds); None disables it
    crawl_timeout: Optional[float] = 300.0

    def with_overrides(self, **changes) -> "CrawlConfig":
        return replace(self, **changes)

    @property
    def detects_sponsored(self) -> bool:
        # Link mode assumes an organic-only feed and never checks the marker
        return self.mode is LocatorMode.CARD
