"""
PriceWatch Pydantic Schemas
Request/response models for the watchlist API (camelCase on the wire)
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Generic, List, Optional, TypeVar, Union
from datetime import datetime

from pricewatch.models import Platform, WatchStatus, AlertType

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============ Envelope ============

class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None


class ErrorBody(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorBody


# ============ Watchlist Schemas ============

class WatchlistItemCreate(CamelModel):
    url: Optional[str] = None
    name: Optional[str] = Field(None, max_length=500)
    target_price: Optional[float] = Field(None, ge=0)


class WatchlistItemUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=500)
    target_price: Optional[float] = Field(None, ge=0)
    notify_on_drop: Optional[bool] = None
    drop_threshold: Optional[float] = Field(None, ge=0, le=100)
    status: Optional[WatchStatus] = None


class PriceHistoryResponse(CamelModel):
    id: int
    price: float
    recorded_at: datetime


class WatchlistItemResponse(CamelModel):
    id: str
    name: str
    url: str
    platform: Platform
    platform_icon: Optional[str] = None
    asin: Optional[str] = None
    image_url: Optional[str] = None
    currency: Optional[str] = None
    current_price: Optional[float] = None
    original_price: Optional[float] = None
    lowest_price: Optional[float] = None
    highest_price: Optional[float] = None
    target_price: Optional[float] = None
    notify_on_drop: bool
    drop_threshold: float
    status: WatchStatus
    last_checked: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class WatchlistItemSummary(WatchlistItemResponse):
    price_history: List[PriceHistoryResponse] = []
    alert_count: int = 0


class WatchlistListResponse(BaseModel):
    items: List[WatchlistItemSummary]
    count: int


class DeleteResponse(BaseModel):
    deleted: bool


# ============ Scrape / Check Schemas ============

class ScrapeRequest(CamelModel):
    url: Optional[str] = None


class ScrapePreview(CamelModel):
    platform: Platform
    platform_icon: str
    asin: Optional[str] = None
    price: Optional[float] = None
    name: Optional[str] = None
    image_url: Optional[str] = None
    currency: Optional[str] = None


class CheckOutcomeResponse(CamelModel):
    item_id: str
    status: str  # updated, no_price, error
    name: Optional[str] = None
    price: Optional[float] = None
    error: Optional[str] = None


class CheckResultsResponse(BaseModel):
    results: List[CheckOutcomeResponse]


# ============ Alert Schemas ============

class AlertItemBrief(CamelModel):
    id: str
    name: str
    image_url: Optional[str] = None
    platform: Platform


class AlertResponse(CamelModel):
    id: str
    item_id: str
    type: AlertType
    product_name: Optional[str] = None
    previous_price: Optional[float] = None
    new_price: Optional[float] = None
    drop_percentage: Optional[float] = None
    url: Optional[str] = None
    read: bool
    created_at: datetime
    item: Optional[AlertItemBrief] = None


class WatchlistItemDetail(WatchlistItemResponse):
    price_history: List[PriceHistoryResponse] = []
    alerts: List[AlertResponse] = []
    alert_count: int = 0


class AlertListResponse(BaseModel):
    alerts: List[AlertResponse]
    total: int
    unread: int
    page: int
    limit: int


class MarkReadRequest(BaseModel):
    ids: Optional[List[Union[str, int]]] = None


class MarkReadResponse(BaseModel):
    updated: int


# ============ Stats Schemas ============

class WatchlistStats(CamelModel):
    total_tracking: int
    total_saved: int
    target_hits: int
    unread_alerts: int
    active_watches: int


# ============ System Schemas ============

class HealthCheck(BaseModel):
    status: str
    version: str
    database: str
    scheduler: str
    timestamp: datetime
