"""
Pytest fixtures: in-memory stand-ins for Playwright pages, elements and sessions.
"""
import asyncio

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from lotscout.config import AUTOTRADER, CrawlConfig, LocatorMode, RetryPolicy


class FakeResponse:
    def __init__(self, status=200):
        self.status = status


class FakeHandle:
    def __init__(self, element):
        self._element = element

    def as_element(self):
        return self._element


class FakeElement:
    """
    An element whose sub-queries are a selector -> result mapping.

    A mapped value may be a string (text of the matched child), another
    FakeElement, or an Exception instance to raise from query_selector.
    """

    def __init__(self, text=None, matches=None, attrs=None, parent=None, nested=False):
        self.text = text
        self.matches = matches or {}
        self.attrs = attrs or {}
        self.parent = parent
        self.nested = nested

    async def query_selector(self, selector):
        hit = self.matches.get(selector)
        if hit is None:
            return None
        if isinstance(hit, Exception):
            raise hit
        if isinstance(hit, FakeElement):
            return hit
        return FakeElement(text=hit)

    async def text_content(self):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def evaluate_handle(self, script, arg=None):
        return FakeHandle(self.parent)

    async def evaluate(self, script, arg=None):
        # Only the card-nesting check evaluates on elements
        return not self.nested


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    @property
    def first(self):
        return self

    async def count(self):
        return self.page.visible_count()

    async def evaluate_all(self, script, arg=None):
        return sum(1 for item in self.page.visible_items() if not getattr(item, "nested", False))

    async def is_visible(self):
        return self.selector in self.page.buttons

    async def click(self, timeout=None):
        self.page.clicked.append(self.selector)
        if self.selector in self.page.load_more:
            self.page.advance()


class FakePage:
    """
    A results page whose attached item count follows `schedule`.

    schedule[n] is the number of attached items after n scroll/load-more
    steps (the last entry holds once the schedule runs out).
    """

    def __init__(self, items=(), schedule=None, body="", title="Cars for Sale",
                 buttons=(), load_more=(), goto_error=None, goto_delay=0.0):
        self.items = list(items)
        self.schedule = list(schedule) if schedule is not None else [len(self.items)]
        self.body = body
        self.title_text = title
        self.buttons = set(buttons)
        self.load_more = set(load_more)
        self.goto_error = goto_error
        self.goto_delay = goto_delay
        self.url = "about:blank"
        self.steps = 0
        self.scrolls = 0
        self.clicked = []
        self.visited = []

    def visible_count(self):
        n = self.schedule[min(self.steps, len(self.schedule) - 1)]
        return min(n, len(self.items))

    def visible_items(self):
        return self.items[:self.visible_count()]

    def advance(self):
        self.steps += 1

    async def goto(self, url, wait_until=None, timeout=None):
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)
        self.url = url
        return FakeResponse(200)

    async def wait_for_load_state(self, state=None, timeout=None):
        return None

    async def title(self):
        return self.title_text

    async def inner_text(self, selector):
        return self.body

    async def evaluate(self, script, arg=None):
        self.scrolls += 1
        self.advance()

    async def wait_for_selector(self, selector, state=None, timeout=None):
        if self.visible_count() == 0:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return self.items[0]

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def query_selector_all(self, selector):
        return self.visible_items()


class FakeSession:
    """Stands in for BrowserSession; records lifecycle calls."""

    def __init__(self, page, fail_open=None):
        self.page = page
        self.fail_open = fail_open
        self.open_calls = 0
        self.close_calls = 0
        self.warm_up_calls = 0
        self.consent_calls = 0

    async def open(self):
        self.open_calls += 1
        if self.fail_open is not None:
            raise self.fail_open
        return self

    async def warm_up(self):
        self.warm_up_calls += 1

    async def accept_consent(self):
        self.consent_calls += 1
        return None

    async def close(self):
        self.close_calls += 1


def _card(title=None, price=None, mileage=None, dealer=None, badge=None,
          sponsored=False, href=None):
    rules = AUTOTRADER.fields
    matches = {}
    if title is not None:
        matches[rules.title[0]] = title
    if price is not None:
        matches[rules.price[0]] = price
    if mileage is not None:
        matches[rules.mileage[0]] = mileage
    if dealer is not None:
        matches[rules.dealer[0]] = dealer
    if badge is not None:
        matches[rules.deal_badge[0]] = badge
    if sponsored:
        matches[rules.sponsored[0]] = "Sponsored by Big Sky Motors"
    if href is not None:
        matches[rules.link[0]] = FakeElement(text=title, attrs={"href": href})
    return FakeElement(text=title, matches=matches)


def _link(root, href):
    """A detail anchor whose nearest container is root."""
    return FakeElement(attrs={"href": href}, parent=root)


@pytest.fixture
def make_card():
    return _card


@pytest.fixture
def make_link():
    return _link


@pytest.fixture
def page_cls():
    return FakePage


@pytest.fixture
def element_cls():
    return FakeElement


@pytest.fixture
def sessions():
    """Factory for FakeSession-producing session factories; keeps every session made."""
    made = []

    def factory_for(page, fail_open=None):
        def factory(config):
            s = FakeSession(page, fail_open=fail_open)
            made.append(s)
            return s
        return factory

    factory_for.made = made
    return factory_for


@pytest.fixture
def fast_config():
    """CrawlConfig with no pauses and small budgets."""
    def build(mode=LocatorMode.CARD, cap=800, **overrides):
        base = CrawlConfig(
            mode=mode,
            cap=cap,
            first_item_timeout_ms=10,
            network_idle_timeout_ms=10,
            fallback_poll=RetryPolicy(max_attempts=4),
            reveal=RetryPolicy(max_attempts=10),
            max_stale_rounds=3,
            crawl_timeout=None,
        )
        return base.with_overrides(**overrides)
    return build
