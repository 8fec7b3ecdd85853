"""
Selector tests against real markup in headless Chromium.

Skipped when no Chromium build is installed (`playwright install chromium`).
"""
import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from lotscout.config import CrawlConfig, LocatorMode
from lotscout.detector import is_blocked
from lotscout.extractor import extract_record
from lotscout.locator import count_items, locate_items

SOURCE = "https://www.autotrader.com/cars-for-sale/all-cars?zip=59901"
CARD = CrawlConfig(mode=LocatorMode.CARD)
LINK = CrawlConfig(mode=LocatorMode.LINK)

RESULTS_HTML = """
<html><head><title>Cars for Sale</title></head><body>
<div data-qaid="cntnr-listings-tier-listings">
  <div>
    <div data-cmp="inventoryListing">
      <h3 data-cmp="inventoryListingTitle">2021 Honda Civic EX-L</h3>
      <div data-cmp="pricing"><span>$23,500</span></div>
      <div><span>45,210 mi.</span></div>
      <div data-cmp="dealerName">Big Sky Honda</div>
      <span>Great Price</span>
      <a href="/cars-for-sale/vehicle/700123">See details</a>
    </div>
  </div>
  <div>
    <div data-cmp="inventoryListing">
      <h3 data-cmp="inventoryListingTitle">2019 Ford F-150 Lariat</h3>
      <div data-cmp="pricing"><span>$31,450</span></div>
      <p>Ships from Miami.</p>
      <div data-cmp="mileageSpecification">62,000</div>
      <span>Sponsored by Flathead Motors</span>
      <a href="/cars-for-sale/vehicle/100">See details</a>
    </div>
  </div>
</div>
</body></html>
"""

LOOSE_MILEAGE_HTML = """
<html><body>
<div data-cmp="inventoryListing">
  <h3>2016 Toyota Tacoma SR5</h3>
  <p>Ships from Miami.</p>
  <p>Odometer: 88,100 miles</p>
  <span>Call for Price</span>
</div>
</body></html>
"""


def run_on_page(html, check):
    """Load html into a fresh Chromium page and return await check(page)."""
    async def go():
        async with async_playwright() as pw:
            try:
                browser = await pw.chromium.launch()
            except PlaywrightError as e:
                return False, str(e)
            try:
                page = await browser.new_page()
                await page.set_content(html)
                return True, await check(page)
            finally:
                await browser.close()

    launched, value = asyncio.run(go())
    if not launched:
        pytest.skip(f"Chromium not available: {value}")
    return value


async def extract_all(page, config):
    roots = await locate_items(page, config)
    return [await extract_record(root, config, SOURCE) for root in roots]


def test_card_mode_on_real_markup():
    async def check(page):
        return await count_items(page, CARD), await extract_all(page, CARD)

    count, records = run_on_page(RESULTS_HTML, check)
    # Wrapper divs and the listing cards inside them are one item each
    assert count == 2
    assert len(records) == 2

    civic, ford = records
    assert civic.title == "2021 Honda Civic EX-L"
    assert civic.price_raw == "$23,500"
    assert civic.price_num == 23500
    assert civic.mileage_raw == "45,210 mi."
    assert civic.mileage_num == 45210
    assert civic.dealer == "Big Sky Honda"
    assert civic.deal_badge == "Great Price"
    assert civic.sponsored is False
    assert civic.link == "https://www.autotrader.com/cars-for-sale/vehicle/700123"

    assert ford.price_num == 31450
    assert ford.mileage_raw == "62,000"
    assert ford.mileage_num == 62000
    assert ford.sponsored is True
    assert ford.deal_badge is None


def test_link_mode_on_real_markup():
    async def check(page):
        return await count_items(page, LINK), await extract_all(page, LINK)

    count, records = run_on_page(RESULTS_HTML, check)
    assert count == 2
    assert [r.title for r in records] == ["2021 Honda Civic EX-L", "2019 Ford F-150 Lariat"]
    assert [r.sponsored for r in records] == [False, False]
    assert records[1].link == "https://www.autotrader.com/cars-for-sale/vehicle/100"


def test_mileage_needs_a_number_before_the_unit():
    records = run_on_page(LOOSE_MILEAGE_HTML, lambda page: extract_all(page, CARD))
    assert len(records) == 1
    assert records[0].mileage_raw == "Odometer: 88,100 miles"
    assert records[0].mileage_num == 88100
    assert records[0].price_raw is None


def test_challenge_page_on_real_markup():
    html = "<html><head><title>Access Denied</title></head><body>Reference #18.</body></html>"
    assert run_on_page(html, lambda page: is_blocked(page, CARD.profile.challenge_phrases)) is True
    assert run_on_page(RESULTS_HTML, lambda page: is_blocked(page, CARD.profile.challenge_phrases)) is False
