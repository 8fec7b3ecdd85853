"""
Browser session setup: launch, fingerprint masking, warm-up and consent.
"""
import asyncio
import logging
import random
from typing import Iterable, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from .config import CrawlConfig

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]

# Runs before any page script
STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });

    // Override plugins
    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3, 4, 5]
    });

    // Override languages
    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en']
    });

    // Override permissions
    const originalQuery = window.navigator.permissions.query;
    window.navigator.permissions.query = (parameters) => (
        parameters.name === 'notifications' ?
            Promise.resolve({ state: Notification.permission }) :
            originalQuery(parameters)
    );
"""

EXTRA_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
}


async def dismiss_consent(page, labels: Iterable[str], click_timeout_ms: int = 2000) -> Optional[str]:
    """
    Click the first visible consent button whose text matches one of labels.

    Returns the label that was clicked, or None when no such button is shown.
    """
    for label in labels:
        button = page.locator(f'button:has-text("{label}")').first
        try:
            if not await button.is_visible():
                continue
            await button.click(timeout=click_timeout_ms)
        except Exception as e:
            logger.debug(f"Consent button '{label}' not clickable: {e}")
            continue
        logger.info(f">>> Dismissed consent prompt via '{label}'")
        await asyncio.sleep(0.6)
        return label
    return None


class BrowserSession:
    """
    One isolated Playwright browser, context and page.

    Opened once per crawl and closed exactly once, whichever way the crawl ends.
    """

    def __init__(self, config: CrawlConfig):
        self.config = config
        self.profile = config.profile
        self.page: Optional[Page] = None
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> "BrowserSession":
        """Launch Chromium and prepare a masked context and page."""
        if self._closed:
            raise RuntimeError("BrowserSession cannot be reopened after close()")

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=LAUNCH_ARGS,
            handle_sigint=False,
            handle_sigterm=False,
            handle_sighup=False,
        )
        logger.info(f">>> Browser launched (headless={self.config.headless})")

        width, height = self.profile.viewport
        ctx_kwargs = {}
        if self.profile.timezone_id:
            ctx_kwargs["timezone_id"] = self.profile.timezone_id
        if self.profile.geolocation:
            lat, lon = self.profile.geolocation
            ctx_kwargs["geolocation"] = {"latitude": lat, "longitude": lon}
            ctx_kwargs["permissions"] = ["geolocation"]

        self._context = await self._browser.new_context(
            **ctx_kwargs,
            viewport={"width": width, "height": height},
            user_agent=self.profile.user_agent,
            locale=self.profile.locale,
            extra_http_headers=EXTRA_HEADERS,
        )
        self._context.set_default_timeout(self.config.default_timeout_ms)
        self._context.set_default_navigation_timeout(self.config.navigation_timeout_ms)
        await self._context.add_init_script(STEALTH_SCRIPT)

        self.page = await self._context.new_page()
        return self

    async def warm_up(self) -> None:
        """Visit the site home page first so the session looks like a returning browser."""
        logger.info(f">>> Warm-up visit: {self.profile.origin}")
        await self.page.goto(
            self.profile.origin,
            wait_until="domcontentloaded",
            timeout=self.config.navigation_timeout_ms,
        )
        if self.config.dismiss_consent:
            await self.accept_consent()
        await asyncio.sleep(random.uniform(1.0, 2.0))

    async def accept_consent(self) -> Optional[str]:
        return await dismiss_consent(self.page, self.profile.consent_labels)

    async def close(self) -> None:
        """Release page, context, browser and Playwright. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        cleanup_timeout = 5.0

        for name, closer in (
            ("page", self.page.close if self.page else None),
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        ):
            if closer is None:
                continue
            try:
                await asyncio.wait_for(closer(), timeout=cleanup_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Closing {name} timed out, forcing cleanup")
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")

        self.page = None
        self._context = None
        self._browser = None
        self._playwright = None
        logger.debug("Browser session closed")

    async def __aenter__(self):
        try:
            return await self.open()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
