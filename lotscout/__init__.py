"""
AutoTrader Listings Crawler Package
"""
from .models import ListingRecord, CrawlResult
from .config import CrawlConfig, LocatorMode, RetryPolicy, SiteProfile, AUTOTRADER, get_site_profile
from .errors import (
    CrawlError,
    Blocked,
    NoItemsFound,
    NavigationFailure,
    UnexpectedFailure,
    CrawlTimeout
)
from .crawler import Crawler, CrawlState, run_crawl, search_listings
from .export import records_to_frame, save_output_rows
from .utils import init_logger, now_iso, clean_num, split_title, build_search_url

__version__ = "1.0.0"

__all__ = [
    "ListingRecord",
    "CrawlResult",
    "CrawlConfig",
    "LocatorMode",
    "RetryPolicy",
    "SiteProfile",
    "AUTOTRADER",
    "get_site_profile",
    "CrawlError",
    "Blocked",
    "NoItemsFound",
    "NavigationFailure",
    "UnexpectedFailure",
    "CrawlTimeout",
    "Crawler",
    "CrawlState",
    "run_crawl",
    "search_listings",
    "records_to_frame",
    "save_output_rows",
    "init_logger",
    "now_iso",
    "clean_num",
    "split_title",
    "build_search_url"
]
