"""
PriceWatch Price Check Service
Re-scrapes watched items, records history and raises alerts
"""
import asyncio
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from pricewatch.config import settings
from pricewatch.exceptions import NotFoundError
from pricewatch.models import (
    WatchlistItem, PriceHistory, AlertType, WatchStatus, UNKNOWN_PRODUCT_NAME
)
from pricewatch.services.alerts import AlertService, alert_service
from pricewatch.services.parsers import ProductSnapshot
from pricewatch.services.scraper import ProductScraper, product_scraper

logger = logging.getLogger(__name__)

UPDATED = "updated"
NO_PRICE = "no_price"
ERROR = "error"


@dataclass
class CheckOutcome:
    item_id: str
    status: str
    name: Optional[str] = None
    price: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def drop_percentage(previous_price: float, new_price: float) -> float:
    return round((previous_price - new_price) / previous_price * 100, 1)


class PriceCheckService:
    """One pass over watched items: fetch, diff, persist, alert"""

    def __init__(
        self,
        scraper: Optional[ProductScraper] = None,
        alerts: Optional[AlertService] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.scraper = scraper or product_scraper
        self.alerts = alerts or alert_service
        self.max_concurrency = max_concurrency or settings.MAX_CONCURRENT_CHECKS

    async def run_check(self, db: Session, owner_id: Optional[int] = None) -> List[CheckOutcome]:
        """
        Check every item in `watching` status, for one owner or for everyone.

        Always returns one outcome per item. A failing item is rolled back on
        its own; items committed before it stay committed.
        """
        query = db.query(WatchlistItem).filter(WatchlistItem.status == WatchStatus.WATCHING)
        if owner_id is not None:
            query = query.filter(WatchlistItem.user_id == owner_id)
        items = query.order_by(WatchlistItem.created_at).all()

        if not items:
            return []

        logger.info(f"Checking prices for {len(items)} items" + (f" of user {owner_id}" if owner_id else ""))

        targets = [(item.id, item.name, item.url, item.platform) for item in items]
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch(url, platform):
            async with semaphore:
                return await self.scraper.fetch_snapshot(url, platform)

        snapshots = await asyncio.gather(
            *(fetch(url, platform) for _, _, url, platform in targets),
            return_exceptions=True,
        )

        outcomes = []
        for (item_id, name, url, _), snapshot in zip(targets, snapshots):
            if isinstance(snapshot, BaseException):
                logger.warning(f"Price check failed for {name} ({url}): {snapshot}")
                outcomes.append(CheckOutcome(item_id=item_id, status=ERROR, name=name, error=str(snapshot)))
                continue

            outcomes.append(self._apply(db, item_id, name, snapshot))

        counts = {status: sum(1 for o in outcomes if o.status == status) for status in (UPDATED, NO_PRICE, ERROR)}
        logger.info(f"Price check finished: {counts}")
        return outcomes

    async def check_item(self, db: Session, owner_id: int, item_id: str) -> CheckOutcome:
        """Check a single item of the owner right away"""
        item = db.query(WatchlistItem).filter(
            WatchlistItem.id == item_id,
            WatchlistItem.user_id == owner_id,
        ).first()
        if not item:
            raise NotFoundError("Item not found")

        name = item.name
        try:
            snapshot = await self.scraper.fetch_snapshot(item.url, item.platform)
        except Exception as e:
            logger.warning(f"Price check failed for {name} ({item.url}): {e}")
            return CheckOutcome(item_id=item_id, status=ERROR, name=name, error=str(e))

        return self._apply(db, item_id, name, snapshot)

    def _apply(self, db: Session, item_id: str, name: str, snapshot: ProductSnapshot) -> CheckOutcome:
        if snapshot.price is None:
            return CheckOutcome(item_id=item_id, status=NO_PRICE, name=name)

        try:
            item = db.get(WatchlistItem, item_id)
            if item is None:
                raise NotFoundError("Item disappeared during price check")

            self._record_price(db, item, snapshot)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.exception(f"Failed to record price for item {item_id}")
            return CheckOutcome(item_id=item_id, status=ERROR, name=name, error=str(e))

        return CheckOutcome(item_id=item_id, status=UPDATED, name=name, price=snapshot.price)

    def _record_price(self, db: Session, item: WatchlistItem, snapshot: ProductSnapshot) -> None:
        previous_price = item.current_price
        new_price = snapshot.price

        item.current_price = new_price
        item.last_checked = datetime.utcnow()
        item.lowest_price = new_price if item.lowest_price is None else min(item.lowest_price, new_price)
        item.highest_price = new_price if item.highest_price is None else max(item.highest_price, new_price)

        if snapshot.name and item.name == UNKNOWN_PRODUCT_NAME:
            item.name = snapshot.name
        if snapshot.image_url:
            item.image_url = snapshot.image_url

        db.add(PriceHistory(item_id=item.id, price=new_price))

        # Without a baseline there is nothing to compare against
        if previous_price is None or previous_price <= 0 or new_price >= previous_price:
            return

        drop_pct = drop_percentage(previous_price, new_price)
        threshold = item.drop_threshold if item.drop_threshold is not None else settings.DEFAULT_DROP_THRESHOLD

        # Target hit wins over a plain drop; at most one alert per check
        if item.target_price is not None and new_price <= item.target_price:
            if item.status == WatchStatus.WATCHING:
                item.status = WatchStatus.TARGET_HIT
                self._alert(db, item, AlertType.TARGET_HIT, previous_price, new_price, drop_pct)
        elif item.notify_on_drop and drop_pct >= threshold:
            self._alert(db, item, AlertType.PRICE_DROP, previous_price, new_price, drop_pct)

    def _alert(self, db, item, alert_type, previous_price, new_price, drop_pct):
        self.alerts.create_alert(db, item.user_id, item.id, {
            "type": alert_type,
            "product_name": item.name,
            "previous_price": previous_price,
            "new_price": new_price,
            "drop_percentage": drop_pct,
            "url": item.url,
        })


price_check_service = PriceCheckService()
