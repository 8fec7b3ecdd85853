"""
Utility functions for text cleanup, number parsing, URLs and logging.
"""
import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional, Tuple, Union
from urllib.parse import urlencode, urljoin, urlparse

from .config import SiteProfile

Number = Union[int, float]

_STRIP_RE = re.compile(r"[$€£¥,]|miles?|mi\.?", re.I)
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_YEAR_RE = re.compile(r"[0-9]{4}")


def init_logger(
    name: str = "lotscout",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "lotscout.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> Optional[str]:
    """Collapse whitespace; empty results become None."""
    if not s:
        return None
    s = re.sub(r"\s+", " ", s).strip()
    return s or None


def clean_num(text: Optional[Union[str, Number]]) -> Optional[Number]:
    """
    Parse the first number out of a price or mileage string.

    Currency symbols, thousands separators and mileage units are removed
    first. "$23,500" -> 23500, "45,210 mi." -> 45210, "Call for Price" -> None.
    Integral values come back as int. Numbers are returned as themselves.
    """
    if text is None or isinstance(text, bool):
        return None
    if isinstance(text, int):
        return text
    if isinstance(text, float):
        return _whole_as_int(text)
    t = _STRIP_RE.sub("", str(text)).strip()
    m = _NUMBER_RE.search(t)
    if not m:
        return None
    return _whole_as_int(float(m.group(0)))


def _whole_as_int(value: float) -> Optional[Number]:
    if not math.isfinite(value):
        return None
    if value.is_integer():
        return int(value)
    return value


def split_title(title: Optional[str]) -> Tuple[Optional[str], Optional[str], Optional[str], Optional[str]]:
    """
    Split "2021 Honda Civic EX-L" into (year, make, model, trim).

    Only titles whose first token is exactly four digits are split; anything
    else yields four Nones.
    """
    if not title:
        return (None, None, None, None)
    parts = title.split()
    if not parts or not _YEAR_RE.fullmatch(parts[0]):
        return (None, None, None, None)
    make = parts[1] if len(parts) > 1 else None
    model = parts[2] if len(parts) > 2 else None
    trim = " ".join(parts[3:]) or None
    return (parts[0], make, model, trim)


def absolute_url(href: Optional[str], origin: str) -> Optional[str]:
    """Resolve root- or protocol-relative hrefs against origin; absolute ones pass through."""
    href = (href or "").strip()
    if not href:
        return None
    if urlparse(href).scheme in ("http", "https"):
        return href
    return urljoin(origin.rstrip("/") + "/", href)


def build_search_url(
    profile: SiteProfile,
    zip_code: Optional[str],
    radius: Optional[str],
    price_max: Optional[str] = None,
    drive: Optional[str] = None
) -> str:
    """Build a results URL. Values are forwarded as given; empty ones are left out."""
    params = []
    if zip_code:
        params.append(("zip", zip_code))
    if radius:
        params.append(("searchRadius", radius))
    if price_max:
        params.append(("priceRange", f"0-{price_max}"))
    if drive:
        params.append(("driveGroup", drive))  # AWD4WD / FWD / RWD
    if not params:
        return profile.search_url
    return f"{profile.search_url}?{urlencode(params)}"
