"""
API route handlers for the listings search endpoint.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, StreamingResponse

from lotscout.crawler import search_listings
from lotscout.errors import (
    Blocked, CrawlError, CrawlTimeout, NavigationFailure, NoItemsFound, UnexpectedFailure
)
from lotscout.export import records_to_frame

from ..config import config
from ..models import ErrorResponse, ListingOut, SearchResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["search"])

# Most specific first: CrawlTimeout shares the UnexpectedFailure kind
STATUS_BY_ERROR = (
    (Blocked, 503),
    (NoItemsFound, 404),
    (NavigationFailure, 504),
    (CrawlTimeout, 504),
    (UnexpectedFailure, 500),
)


def get_searcher():
    """Dependency returning the crawl entry point (overridable in tests)."""
    return search_listings


def get_search_params(
    zip: Optional[str] = Query(None, description="ZIP code"),
    radius: Optional[str] = Query(None, description="Search radius in miles"),
    price_max: Optional[str] = Query(None, alias="priceMax", description="Maximum price"),
    drive: Optional[str] = Query(None, description="AWD4WD / FWD / RWD"),
) -> dict:
    """Dependency to collect search filters. Values are passed on as given."""
    return {
        "zip_code": zip or config.DEFAULT_ZIP,
        "radius": radius or config.DEFAULT_RADIUS,
        "price_max": price_max,
        "drive": drive,
    }


def status_for(e: CrawlError) -> int:
    for error_cls, status in STATUS_BY_ERROR:
        if isinstance(e, error_cls):
            return status
    return 500


def error_response(e: CrawlError) -> JSONResponse:
    body = ErrorResponse(kind=e.kind, reason=e.reason, error=str(e))
    return JSONResponse(status_code=status_for(e), content=body.model_dump())


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={code: {"model": ErrorResponse} for code in sorted({status for _, status in STATUS_BY_ERROR})},
)
async def search(params: dict = Depends(get_search_params), searcher=Depends(get_searcher)):
    """Crawl the results page for the given filters and return every record."""
    try:
        result = await searcher(config=config.crawl_config(), **params)
    except CrawlError as e:
        logger.error(f"Search failed [{e.kind}]: {e}")
        return error_response(e)

    rows = [ListingOut(**r.to_dict()) for r in result.records]
    return SearchResponse(count=len(rows), rows=rows)


@router.get("/search/csv")
async def search_csv(params: dict = Depends(get_search_params), searcher=Depends(get_searcher)):
    """Same search, exported as CSV."""
    try:
        result = await searcher(config=config.crawl_config(), **params)
    except CrawlError as e:
        logger.error(f"CSV search failed [{e.kind}]: {e}")
        return error_response(e)

    csv_content = records_to_frame(result.records).to_csv(index=False).encode("utf-8")
    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="listings.csv"'}
    )
