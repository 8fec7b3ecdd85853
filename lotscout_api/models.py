"""
Pydantic models for API request/response serialization.
"""
from typing import List, Optional, Union
from pydantic import BaseModel

class ListingOut(BaseModel):
    """Output model for one listing record."""
    source_url: str
    title: Optional[str] = None
    year: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    price_raw: Optional[str] = None
    price_num: Optional[Union[int, float]] = None
    mileage_raw: Optional[str] = None
    mileage_num: Optional[Union[int, float]] = None
    dealer: Optional[str] = None
    deal_badge: Optional[str] = None
    sponsored: bool = False
    link: Optional[str] = None

class SearchResponse(BaseModel):
    """Successful search: every record, in page order."""
    ok: bool = True
    count: int
    rows: List[ListingOut]

class ErrorResponse(BaseModel):
    """Failed search. Never carries partial rows."""
    ok: bool = False
    kind: str
    reason: Optional[str] = None  # e.g. "timeout" for an UnexpectedFailure
    error: str
