"""
API configuration and settings management.
"""
import os
from typing import Optional

from lotscout.config import CrawlConfig, LocatorMode, get_site_profile


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_float(name: str, default: str) -> Optional[float]:
    value = float(os.getenv(name, default))
    return value or None


class Config:
    """Application configuration."""

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    # API settings
    API_TITLE: str = "lotscout API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Search AutoTrader listings through a headless browser crawl"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Search defaults
    DEFAULT_ZIP: str = os.getenv("DEFAULT_ZIP", "59901")
    DEFAULT_RADIUS: str = os.getenv("DEFAULT_RADIUS", "10")

    # Crawl settings
    SITE: str = os.getenv("SITE", "autotrader")
    LOCATOR_MODE: str = os.getenv("LOCATOR_MODE", LocatorMode.LINK.value)
    RESULT_CAP: int = int(os.getenv("RESULT_CAP", "800"))
    HEADLESS: bool = _env_bool("HEADLESS", "true")
    WARM_UP: bool = _env_bool("WARM_UP", "false")
    CRAWL_TIMEOUT: Optional[float] = _env_float("CRAWL_TIMEOUT", "300")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def crawl_config(cls) -> CrawlConfig:
        """Fresh crawl configuration for one request."""
        return CrawlConfig(
            profile=get_site_profile(cls.SITE),
            mode=LocatorMode(cls.LOCATOR_MODE),
            cap=cls.RESULT_CAP,
            headless=cls.HEADLESS,
            warm_up=cls.WARM_UP,
            crawl_timeout=cls.CRAWL_TIMEOUT,
        )

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if cls.RESULT_CAP < 1:
            raise ValueError(f"RESULT_CAP must be positive, got {cls.RESULT_CAP}")
        # Raises ValueError on an unknown site or mode
        cls.crawl_config()

# Global config instance
config = Config()
