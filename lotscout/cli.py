"""
Command-line entry point: crawl one search and write the rows to CSV/XLSX.
"""
import argparse
import asyncio
import logging
import os
import sys

from .config import CrawlConfig, LocatorMode, get_site_profile
from .crawler import search_listings
from .errors import CrawlError
from .export import save_output_rows
from .utils import init_logger, now_iso


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="AutoTrader listings crawler (headless Chromium, CSV/XLSX output)")
    ap.add_argument("--zip", dest="zip_code", type=str, default="59901", help="ZIP code to search around")
    ap.add_argument("--radius", type=str, default="10", help="Search radius in miles")
    ap.add_argument("--price-max", type=str, default="", help="Maximum price, e.g. 30000")
    ap.add_argument("--drive", type=str, default="", help="Drivetrain group: AWD4WD, FWD or RWD")
    ap.add_argument("--max-items", type=int, default=800, help="Maximum records to return")
    ap.add_argument("--mode", choices=[m.value for m in LocatorMode], default=LocatorMode.LINK.value,
                    help="Item locator: 'card' matches listing containers and drops sponsored items, "
                         "'link' ascends from detail links and reports everything as organic")
    ap.add_argument("--site", type=str, default="autotrader", help="Site profile name")
    ap.add_argument("--warm-up", action="store_true", help="Visit the home page before searching")
    ap.add_argument("--headful", action="store_true", help="Show the browser window")
    ap.add_argument("--timeout", type=float, default=300.0, help="Overall crawl timeout in seconds (0 disables)")
    ap.add_argument("--out", type=str, default="listings.csv", help="CSV/XLSX output path")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "lotscout.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or lotscout.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def build_config(args) -> CrawlConfig:
    return CrawlConfig(
        profile=get_site_profile(args.site),
        mode=LocatorMode(args.mode),
        cap=args.max_items,
        headless=not args.headful,
        warm_up=args.warm_up,
        crawl_timeout=args.timeout or None,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.info(
        f"Logger initialized: console={eff_console}, "
        f"file={'DISABLED' if args.no_file_log else eff_file}, "
        f"path={'N/A' if args.no_file_log else args.log_file_path}"
    )
    logger.info(f">>> Run started at {now_iso()}")

    config = build_config(args)
    try:
        result = asyncio.run(search_listings(
            zip_code=args.zip_code,
            radius=args.radius,
            price_max=args.price_max or None,
            drive=args.drive or None,
            config=config,
        ))
    except CrawlError as e:
        logger.error(f">>> {e.kind}: {e}")
        return 2

    save_output_rows(result.records, args.out)
    logging.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
