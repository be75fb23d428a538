"""
PriceWatch Alert Service
Alert storage, paginated alert queries and watchlist statistics
"""
import logging
import math
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from pricewatch.models import PriceAlert, WatchlistItem, AlertType, WatchStatus

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class AlertService:

    def create_alert(
        self, db: Session, owner_id: int, item_id: str, payload: Dict[str, Any]
    ) -> PriceAlert:
        """
        Append an alert. No deduplication happens here: the price checker
        emits at most one alert per item per check.
        """
        alert_type = payload["type"]
        if not isinstance(alert_type, AlertType):
            alert_type = AlertType(alert_type)

        alert = PriceAlert(
            user_id=owner_id,
            item_id=item_id,
            type=alert_type,
            product_name=payload.get("product_name"),
            previous_price=payload.get("previous_price"),
            new_price=payload.get("new_price"),
            drop_percentage=payload.get("drop_percentage"),
            url=payload.get("url"),
        )
        db.add(alert)
        db.flush()

        logger.info(
            f"{alert_type.value} alert for item {item_id}: "
            f"{alert.previous_price} -> {alert.new_price} ({alert.drop_percentage}%)"
        )
        return alert

    def list_alerts(
        self,
        db: Session,
        owner_id: int,
        unread_only: bool = False,
        limit: Optional[int] = DEFAULT_PAGE_SIZE,
        page: Optional[int] = 1,
    ) -> Dict[str, Any]:
        limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
        page = max(page or 1, 1)

        query = db.query(PriceAlert).filter(PriceAlert.user_id == owner_id)
        if unread_only:
            query = query.filter(PriceAlert.read == False)  # noqa: E712

        total = query.count()
        alerts = query.options(joinedload(PriceAlert.item)).order_by(
            desc(PriceAlert.created_at)
        ).offset((page - 1) * limit).limit(limit).all()

        unread = db.query(PriceAlert).filter(
            PriceAlert.user_id == owner_id,
            PriceAlert.read == False,  # noqa: E712
        ).count()

        return {
            "alerts": alerts,
            "total": total,
            "unread": unread,
            "page": page,
            "limit": limit,
        }

    def mark_read(self, db: Session, owner_id: int, ids: Iterable[Any]) -> Dict[str, int]:
        """Mark the caller's alerts read; ids owned by others are ignored"""
        ids = [str(alert_id) for alert_id in ids]
        if not ids:
            return {"updated": 0}

        updated = db.query(PriceAlert).filter(
            PriceAlert.id.in_(ids),
            PriceAlert.user_id == owner_id,
        ).update({PriceAlert.read: True}, synchronize_session=False)
        db.commit()

        return {"updated": updated}

    def compute_stats(self, db: Session, owner_id: int) -> Dict[str, int]:
        items = db.query(WatchlistItem).filter(WatchlistItem.user_id == owner_id).all()

        unread_alerts = db.query(PriceAlert).filter(
            PriceAlert.user_id == owner_id,
            PriceAlert.read == False,  # noqa: E712
        ).count()

        total_saved = 0.0
        for item in items:
            if (
                item.original_price is not None
                and item.current_price is not None
                and item.current_price < item.original_price
            ):
                total_saved += item.original_price - item.current_price

        return {
            "total_tracking": len(items),
            "total_saved": int(math.floor(total_saved + 0.5)),
            "target_hits": sum(1 for item in items if item.status == WatchStatus.TARGET_HIT),
            "unread_alerts": unread_alerts,
            "active_watches": sum(1 for item in items if item.status == WatchStatus.WATCHING),
        }


alert_service = AlertService()
