"""
Crawl orchestration: one explicit state machine per invocation.

    INIT -> WARMED_UP -> NAVIGATED -> CONSENT_HANDLED -> BLOCK_CHECK
         -> REVEALING -> EXTRACTING -> DONE

Any state may end in FAILED. Each state has exactly one transition method,
so the block check cannot run before navigation has completed. The browser
session is opened at the start of run() and closed on every exit path.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .config import CrawlConfig
from .detector import is_blocked
from .errors import Blocked, CrawlError, CrawlTimeout, NavigationFailure, UnexpectedFailure
from .extractor import extract_record
from .locator import locate_items
from .models import CrawlResult, RunContext
from .revealer import reveal_items, wait_for_first_item
from .session import BrowserSession
from .utils import build_search_url, now_iso

logger = logging.getLogger(__name__)


class CrawlState(Enum):
    INIT = "init"
    WARMED_UP = "warmed_up"
    NAVIGATED = "navigated"
    CONSENT_HANDLED = "consent_handled"
    BLOCK_CHECK = "block_check"
    REVEALING = "revealing"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"


class Crawler:
    """Runs crawls of a results page with a fixed configuration."""

    def __init__(self, config: CrawlConfig, session_factory: Callable = BrowserSession):
        self.config = config
        self.session_factory = session_factory
        self._transitions = {
            CrawlState.INIT: self._warm_up,
            CrawlState.WARMED_UP: self._navigate,
            CrawlState.NAVIGATED: self._handle_consent,
            CrawlState.CONSENT_HANDLED: self._settle,
            CrawlState.BLOCK_CHECK: self._check_block,
            CrawlState.REVEALING: self._reveal,
            CrawlState.EXTRACTING: self._extract,
        }

    async def run(self, url: str) -> CrawlResult:
        """
        Crawl url and return its records in DOM order, capped at config.cap.

        Raises a CrawlError subclass on failure; the session is closed either way.
        """
        ctx = RunContext(url=url, cap=self.config.cap, state=CrawlState.INIT)
        started_at = now_iso()
        ctx.session = self.session_factory(self.config)
        logger.info(f">>> Crawl started ({self.config.mode.value} mode, cap {ctx.cap}): {url}")

        try:
            await ctx.session.open()
            while ctx.state is not CrawlState.DONE:
                ctx.visited.append(ctx.state)
                ctx.state = await self._transitions[ctx.state](ctx)
            ctx.visited.append(CrawlState.DONE)
        except CrawlError as e:
            self._fail(ctx, e)
            raise
        except Exception as e:
            err = UnexpectedFailure(f"{type(e).__name__}: {e}", url=url)
            self._fail(ctx, err)
            raise err from e
        finally:
            await ctx.session.close()

        logger.info(
            f">>> Crawl done: {len(ctx.records)} records"
            f" ({ctx.sponsored_skipped} sponsored skipped)"
        )
        return CrawlResult(
            source_url=url,
            locator_mode=self.config.mode.value,
            records=list(ctx.records),
            sponsored_skipped=ctx.sponsored_skipped,
            states=[s.value for s in ctx.visited],
            started_at=started_at,
            finished_at=now_iso(),
        )

    def _fail(self, ctx: RunContext, err: CrawlError) -> None:
        logger.error(f">>> Crawl failed in state {ctx.state.value}: [{err.kind}] {err}")
        ctx.visited.append(CrawlState.FAILED)
        ctx.state = CrawlState.FAILED

    async def _warm_up(self, ctx: RunContext) -> CrawlState:
        if self.config.warm_up:
            try:
                await ctx.session.warm_up()
            except PlaywrightError as e:
                raise NavigationFailure(f"Warm-up navigation failed: {e}", url=self.config.profile.origin)
        return CrawlState.WARMED_UP

    async def _navigate(self, ctx: RunContext) -> CrawlState:
        logger.info(f">>> Opening results page: {ctx.url}")
        try:
            response = await ctx.session.page.goto(
                ctx.url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout_ms,
            )
        except PlaywrightError as e:
            raise NavigationFailure(f"Results page did not load: {e}", url=ctx.url)
        if response is not None:
            # Challenge pages often come back as 403; the block check decides
            logger.debug(f"Results page status {response.status}")
        return CrawlState.NAVIGATED

    async def _handle_consent(self, ctx: RunContext) -> CrawlState:
        if self.config.dismiss_consent:
            await ctx.session.accept_consent()
        return CrawlState.CONSENT_HANDLED

    async def _settle(self, ctx: RunContext) -> CrawlState:
        try:
            await ctx.session.page.wait_for_load_state(
                "networkidle", timeout=self.config.network_idle_timeout_ms
            )
        except PlaywrightTimeout:
            # Ad and tracking traffic can keep the network busy indefinitely
            logger.debug("Network never went idle; continuing")
        return CrawlState.BLOCK_CHECK

    async def _check_block(self, ctx: RunContext) -> CrawlState:
        if await is_blocked(ctx.session.page, self.config.profile.challenge_phrases):
            raise Blocked("Bot-verification or access-denied page served", url=ctx.url)
        return CrawlState.REVEALING

    async def _reveal(self, ctx: RunContext) -> CrawlState:
        page = ctx.session.page
        await wait_for_first_item(page, self.config)
        ctx.item_count = await reveal_items(page, self.config)
        return CrawlState.EXTRACTING

    async def _extract(self, ctx: RunContext) -> CrawlState:
        items = await locate_items(ctx.session.page, self.config)
        for item in items:
            if len(ctx.records) >= ctx.cap:
                break
            record = await extract_record(item, self.config, ctx.url)
            if record.sponsored and self.config.detects_sponsored:
                ctx.sponsored_skipped += 1
                continue
            ctx.records.append(record)
        return CrawlState.DONE


async def run_crawl(
    url: str,
    config: Optional[CrawlConfig] = None,
    session_factory: Callable = BrowserSession,
) -> CrawlResult:
    """Run one crawl, bounded by config.crawl_timeout."""
    config = config or CrawlConfig()
    crawler = Crawler(config, session_factory=session_factory)
    if not config.crawl_timeout:
        return await crawler.run(url)
    try:
        return await asyncio.wait_for(crawler.run(url), timeout=config.crawl_timeout)
    except asyncio.TimeoutError:
        # wait_for has already cancelled the run, which closed its session
        logger.error(f">>> Crawl timed out after {config.crawl_timeout}s")
        raise CrawlTimeout(f"Crawl exceeded {config.crawl_timeout}s", url=url)


async def search_listings(
    zip_code: Optional[str],
    radius: Optional[str],
    price_max: Optional[str] = None,
    drive: Optional[str] = None,
    config: Optional[CrawlConfig] = None,
    session_factory: Callable = BrowserSession,
) -> CrawlResult:
    """Build the results URL for the given filters and crawl it."""
    config = config or CrawlConfig()
    url = build_search_url(config.profile, zip_code, radius, price_max, drive)
    return await run_crawl(url, config, session_factory=session_factory)
