"""
PriceWatch Watchlist Service
Owner-scoped CRUD over watched products
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from pricewatch.config import settings
from pricewatch.exceptions import InputValidationError, NotFoundError
from pricewatch.models import (
    WatchlistItem, PriceHistory, PriceAlert, WatchStatus, UNKNOWN_PRODUCT_NAME
)
from pricewatch.services.classifier import classify
from pricewatch.services.scraper import ProductScraper, product_scraper

logger = logging.getLogger(__name__)

LIST_HISTORY_POINTS = 30
DETAIL_HISTORY_POINTS = 90
DETAIL_RECENT_ALERTS = 10

# Only these fields may be changed by the owner
UPDATABLE_FIELDS = ("name", "target_price", "notify_on_drop", "drop_threshold", "status")
NON_NULLABLE_FIELDS = ("notify_on_drop", "drop_threshold", "status")


@dataclass
class WatchlistEntry:
    """An item together with the slices of its history and alerts shown to clients"""
    item: WatchlistItem
    price_history: List[PriceHistory] = field(default_factory=list)
    alerts: List[PriceAlert] = field(default_factory=list)
    alert_count: int = 0


class WatchlistService:

    def __init__(self, scraper: Optional[ProductScraper] = None):
        self.scraper = scraper or product_scraper

    def _owned_item(self, db: Session, owner_id: int, item_id: str) -> Optional[WatchlistItem]:
        return db.query(WatchlistItem).filter(
            WatchlistItem.id == item_id,
            WatchlistItem.user_id == owner_id,
        ).first()

    async def add_item(
        self,
        db: Session,
        owner_id: int,
        url: str,
        name: Optional[str] = None,
        target_price: Optional[float] = None,
    ) -> WatchlistItem:
        """
        Start watching a product URL.

        The first scrape is best-effort: when it yields nothing the item is
        stored without prices and later checks fill them in.
        """
        if not url or not url.strip():
            raise InputValidationError("URL is required")
        url = url.strip()

        info = classify(url)
        snapshot = await self.scraper.scrape(url, info.platform)
        price = snapshot.price

        item = WatchlistItem(
            user_id=owner_id,
            name=(name or snapshot.name or UNKNOWN_PRODUCT_NAME)[:500],
            url=url,
            platform=info.platform,
            platform_icon=info.platform_icon,
            asin=info.identifier,
            current_price=price,
            original_price=price,
            lowest_price=price,
            highest_price=price,
            target_price=target_price or None,
            drop_threshold=settings.DEFAULT_DROP_THRESHOLD,
            image_url=snapshot.image_url,
            currency=snapshot.currency or settings.DEFAULT_CURRENCY,
            status=WatchStatus.WATCHING,
            last_checked=datetime.utcnow(),
        )
        db.add(item)
        db.flush()

        if price is not None:
            db.add(PriceHistory(item_id=item.id, price=price))

        db.commit()
        db.refresh(item)

        logger.info(f"User {owner_id} now watching {item.id} ({info.platform.value}, price={price})")
        return item

    def list_items(self, db: Session, owner_id: int) -> List[WatchlistEntry]:
        """All items of the owner, newest first, with recent history and alert counts"""
        items = db.query(WatchlistItem).filter(
            WatchlistItem.user_id == owner_id
        ).order_by(desc(WatchlistItem.created_at)).all()

        alert_counts = dict(
            db.query(PriceAlert.item_id, func.count(PriceAlert.id)).filter(
                PriceAlert.user_id == owner_id
            ).group_by(PriceAlert.item_id).all()
        )

        entries = []
        for item in items:
            history = db.query(PriceHistory).filter(
                PriceHistory.item_id == item.id
            ).order_by(
                desc(PriceHistory.recorded_at), desc(PriceHistory.id)
            ).limit(LIST_HISTORY_POINTS).all()

            entries.append(WatchlistEntry(
                item=item,
                price_history=history,
                alert_count=alert_counts.get(item.id, 0),
            ))

        return entries

    def get_item(self, db: Session, owner_id: int, item_id: str) -> Optional[WatchlistEntry]:
        """One item with a longer history window and its latest alerts"""
        item = self._owned_item(db, owner_id, item_id)
        if not item:
            return None

        history = db.query(PriceHistory).filter(
            PriceHistory.item_id == item.id
        ).order_by(PriceHistory.recorded_at, PriceHistory.id).limit(DETAIL_HISTORY_POINTS).all()

        alerts = db.query(PriceAlert).filter(
            PriceAlert.item_id == item.id,
            PriceAlert.user_id == owner_id,
        ).order_by(desc(PriceAlert.created_at)).limit(DETAIL_RECENT_ALERTS).all()

        alert_count = db.query(func.count(PriceAlert.id)).filter(
            PriceAlert.item_id == item.id,
            PriceAlert.user_id == owner_id,
        ).scalar()

        return WatchlistEntry(item=item, price_history=history, alerts=alerts, alert_count=alert_count)

    def update_item(
        self, db: Session, owner_id: int, item_id: str, patch: Dict[str, Any]
    ) -> Optional[WatchlistItem]:
        """Apply whitelisted fields from patch; everything else is ignored"""
        item = self._owned_item(db, owner_id, item_id)
        if not item:
            return None

        updates = {key: patch[key] for key in UPDATABLE_FIELDS if key in patch}

        if "name" in updates and not updates["name"]:
            del updates["name"]

        # Only target_price may be cleared with null
        for key in NON_NULLABLE_FIELDS:
            if key in updates and updates[key] is None:
                del updates[key]

        if "status" in updates:
            raw_status = updates["status"]
            try:
                updates["status"] = WatchStatus(getattr(raw_status, "value", raw_status))
            except ValueError:
                raise InputValidationError(f"Invalid status: {raw_status}")

        for field_name, value in updates.items():
            setattr(item, field_name, value)

        db.commit()
        db.refresh(item)
        return item

    def remove_item(self, db: Session, owner_id: int, item_id: str) -> dict:
        """Delete an item together with its history and alerts"""
        item = self._owned_item(db, owner_id, item_id)
        if not item:
            raise NotFoundError("Item not found")

        db.delete(item)
        db.commit()
        logger.info(f"User {owner_id} removed watchlist item {item_id}")
        return {"deleted": True}


watchlist_service = WatchlistService()
