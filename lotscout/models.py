"""
Data models for the AutoTrader listings crawler.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]


@dataclass(frozen=True)
class ListingRecord:
    """One vehicle listing extracted from a results page item."""

    source_url: str
    title: Optional[str] = None

    # Derived from the title
    year: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None

    price_raw: Optional[str] = None
    price_num: Optional[Number] = None
    mileage_raw: Optional[str] = None
    mileage_num: Optional[Number] = None

    dealer: Optional[str] = None
    deal_badge: Optional[str] = None
    sponsored: bool = False
    link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ItemRoot:
    """A listing root element, and the detail link it was found through (link mode)."""
    element: Any
    anchor: Optional[Any] = None


@dataclass
class CrawlResult:
    """Ordered output of one crawl invocation."""

    source_url: str
    locator_mode: str
    records: List[ListingRecord] = field(default_factory=list)
    sponsored_skipped: int = 0
    states: List[str] = field(default_factory=list)
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    def rows(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.records]


@dataclass
class RunContext:
    """Per-invocation crawl state. Owned by exactly one Crawler.run call."""

    url: str
    cap: int
    session: Any = None
    state: Any = None
    visited: List[Any] = field(default_factory=list)
    records: List[ListingRecord] = field(default_factory=list)
    sponsored_skipped: int = 0
    item_count: int = 0
