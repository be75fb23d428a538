"""
PriceWatch Watchlist Router
Watched products, manual price checks, alerts and stats
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from pricewatch.config import settings
from pricewatch.database import get_db
from pricewatch.exceptions import InputValidationError, NotFoundError
from pricewatch.models import User
from pricewatch.schemas import (
    APIResponse, WatchlistItemCreate, WatchlistItemUpdate, WatchlistItemResponse,
    WatchlistItemSummary, WatchlistItemDetail, WatchlistListResponse, DeleteResponse,
    PriceHistoryResponse, AlertResponse, AlertListResponse, MarkReadRequest,
    MarkReadResponse, WatchlistStats, ScrapeRequest, ScrapePreview,
    CheckOutcomeResponse, CheckResultsResponse,
)
from pricewatch.services.alerts import alert_service
from pricewatch.services.price_check import price_check_service
from pricewatch.services.scraper import product_scraper
from pricewatch.services.watchlist import watchlist_service, WatchlistEntry
from pricewatch.utils.auth import get_current_user_required
from pricewatch.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/watchlist", tags=["Watchlist"])


@router.get("", response_model=APIResponse[WatchlistListResponse])
async def list_watchlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    List the caller's watched products with recent price history
    """
    entries = watchlist_service.list_items(db, current_user.id)
    items = [_build_item_summary(entry) for entry in entries]
    return APIResponse(data=WatchlistListResponse(items=items, count=len(items)))


@router.post("", response_model=APIResponse[WatchlistItemResponse], status_code=status.HTTP_201_CREATED)
async def add_to_watchlist(
    item_in: WatchlistItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Start watching a product URL
    """
    if not item_in.url or not item_in.url.strip():
        raise InputValidationError("URL is required")

    item = await watchlist_service.add_item(
        db,
        current_user.id,
        url=item_in.url,
        name=item_in.name,
        target_price=item_in.target_price,
    )
    return APIResponse(data=WatchlistItemResponse.model_validate(item))


@router.post("/scrape", response_model=APIResponse[ScrapePreview])
async def preview_product(
    scrape_in: ScrapeRequest,
    current_user: User = Depends(get_current_user_required),
):
    """
    Classify and scrape a URL without adding it
    """
    if not scrape_in.url or not scrape_in.url.strip():
        raise InputValidationError("URL is required")

    preview = await product_scraper.preview(scrape_in.url.strip())
    return APIResponse(data=ScrapePreview(**preview))


@router.post("/check-prices", response_model=APIResponse[CheckResultsResponse])
@limiter.limit(settings.RATE_LIMIT_CHECKS)
async def check_prices(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Re-check every watched item of the caller
    """
    outcomes = await price_check_service.run_check(db, owner_id=current_user.id)
    results = [CheckOutcomeResponse(**outcome.to_dict()) for outcome in outcomes]
    return APIResponse(data=CheckResultsResponse(results=results))


# ============ Alerts ============

@router.get("/alerts/all", response_model=APIResponse[AlertListResponse])
async def list_alerts(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(20),
    page: int = Query(1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Page through the caller's alerts, newest first
    """
    result = alert_service.list_alerts(
        db, current_user.id, unread_only=unread_only, limit=limit, page=page,
    )
    return APIResponse(data=AlertListResponse(
        alerts=[AlertResponse.model_validate(alert) for alert in result["alerts"]],
        total=result["total"],
        unread=result["unread"],
        page=result["page"],
        limit=result["limit"],
    ))


@router.post("/alerts/mark-read", response_model=APIResponse[MarkReadResponse])
async def mark_alerts_read(
    mark_in: MarkReadRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Mark alerts as read
    """
    if mark_in.ids is None:
        raise InputValidationError("ids array is required")

    result = alert_service.mark_read(db, current_user.id, mark_in.ids)
    return APIResponse(data=MarkReadResponse(**result))


# ============ Stats ============

@router.get("/stats/summary", response_model=APIResponse[WatchlistStats])
async def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Savings and alert counters for the caller
    """
    stats = alert_service.compute_stats(db, current_user.id)
    return APIResponse(data=WatchlistStats(**stats))


# ============ Single Item ============

@router.get("/{item_id}", response_model=APIResponse[WatchlistItemDetail])
async def get_watchlist_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Get one watched product with history and recent alerts
    """
    entry = watchlist_service.get_item(db, current_user.id, item_id)
    if not entry:
        raise NotFoundError("Item not found")

    return APIResponse(data=_build_item_detail(entry))


@router.patch("/{item_id}", response_model=APIResponse[WatchlistItemResponse])
async def update_watchlist_item(
    item_id: str,
    item_in: WatchlistItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Update name, target price, drop settings or status
    """
    item = watchlist_service.update_item(
        db, current_user.id, item_id, item_in.model_dump(exclude_unset=True),
    )
    if not item:
        raise NotFoundError("Item not found")

    return APIResponse(data=WatchlistItemResponse.model_validate(item))


@router.delete("/{item_id}", response_model=APIResponse[DeleteResponse])
async def remove_from_watchlist(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Stop watching a product; its history and alerts go with it
    """
    result = watchlist_service.remove_item(db, current_user.id, item_id)
    return APIResponse(data=DeleteResponse(**result))


@router.post("/{item_id}/check-price", response_model=APIResponse[CheckOutcomeResponse])
async def check_item_price(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_required),
):
    """
    Re-check a single watched product now
    """
    outcome = await price_check_service.check_item(db, current_user.id, item_id)
    return APIResponse(data=CheckOutcomeResponse(**outcome.to_dict()))


# ============ Helpers ============

def _build_item_summary(entry: WatchlistEntry) -> WatchlistItemSummary:
    base = WatchlistItemResponse.model_validate(entry.item)
    return WatchlistItemSummary(
        **base.model_dump(),
        price_history=[PriceHistoryResponse.model_validate(h) for h in entry.price_history],
        alert_count=entry.alert_count,
    )


def _build_item_detail(entry: WatchlistEntry) -> WatchlistItemDetail:
    base = WatchlistItemResponse.model_validate(entry.item)
    return WatchlistItemDetail(
        **base.model_dump(),
        price_history=[PriceHistoryResponse.model_validate(h) for h in entry.price_history],
        alerts=[AlertResponse.model_validate(alert) for alert in entry.alerts],
        alert_count=entry.alert_count,
    )
