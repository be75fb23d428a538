"""
Tests for watchlist CRUD
"""
from datetime import datetime, timedelta

import pytest

from pricewatch.config import settings
from pricewatch.exceptions import InputValidationError, NotFoundError
from pricewatch.models import (
    WatchlistItem, PriceHistory, PriceAlert, Platform, WatchStatus, AlertType,
    UNKNOWN_PRODUCT_NAME,
)
from pricewatch.services.alerts import alert_service
from pricewatch.services.watchlist import watchlist_service, LIST_HISTORY_POINTS
from tests.conftest import amazon_html, flipkart_html, AMAZON_URL, FLIPKART_URL, SHOP_URL


def add_alert(db, item, **overrides):
    payload = {
        "type": AlertType.PRICE_DROP,
        "product_name": item.name,
        "previous_price": 1000.0,
        "new_price": 900.0,
        "drop_percentage": 10.0,
        "url": item.url,
    }
    payload.update(overrides)
    alert = alert_service.create_alert(db, item.user_id, item.id, payload)
    db.commit()
    return alert


class TestAddItem:

    async def test_add_with_scraped_price(self, db, test_user, fake_fetcher):
        """A successful first scrape seeds every price field and one history point"""
        fake_fetcher.pages[AMAZON_URL] = amazon_html("₹1,000.00", "Noise Cancelling Headphones")

        item = await watchlist_service.add_item(db, test_user.id, AMAZON_URL)

        assert item.platform == Platform.AMAZON
        assert item.asin == "B0863TXGM3"
        assert item.name == "Noise Cancelling Headphones"
        assert item.current_price == 1000.0
        assert item.original_price == 1000.0
        assert item.lowest_price == 1000.0
        assert item.highest_price == 1000.0
        assert item.status == WatchStatus.WATCHING
        assert item.currency == "INR"
        assert item.drop_threshold == settings.DEFAULT_DROP_THRESHOLD
        assert item.notify_on_drop is True
        assert item.last_checked is not None

        history = db.query(PriceHistory).filter(PriceHistory.item_id == item.id).all()
        assert [h.price for h in history] == [1000.0]

    async def test_add_when_scrape_fails(self, db, test_user, fake_fetcher):
        """An unreachable page still creates the item, just without prices"""
        item = await watchlist_service.add_item(db, test_user.id, SHOP_URL)

        assert item.platform == Platform.OTHER
        assert item.name == UNKNOWN_PRODUCT_NAME
        assert item.current_price is None
        assert item.original_price is None
        assert item.currency == settings.DEFAULT_CURRENCY
        assert db.query(PriceHistory).filter(PriceHistory.item_id == item.id).count() == 0

    async def test_explicit_name_and_target(self, db, test_user, fake_fetcher):
        fake_fetcher.pages[FLIPKART_URL] = flipkart_html("₹12,499", "Smart Watch")

        item = await watchlist_service.add_item(
            db, test_user.id, FLIPKART_URL, name="My watch", target_price=9999,
        )

        assert item.name == "My watch"
        assert item.target_price == 9999
        assert item.platform == Platform.FLIPKART
        assert item.asin is None

    async def test_zero_target_means_none(self, db, test_user, fake_fetcher):
        item = await watchlist_service.add_item(db, test_user.id, SHOP_URL, target_price=0)
        assert item.target_price is None

    @pytest.mark.parametrize("url", ["", "   ", None])
    async def test_blank_url_rejected(self, db, test_user, url):
        with pytest.raises(InputValidationError):
            await watchlist_service.add_item(db, test_user.id, url)


class TestListAndGet:

    def test_list_newest_first(self, db, test_user, make_item):
        older = make_item(test_user)
        newer = make_item(test_user)

        entries = watchlist_service.list_items(db, test_user.id)
        assert [e.item.id for e in entries] == [newer.id, older.id]

    def test_list_is_owner_scoped(self, db, test_user, other_user, make_item):
        make_item(other_user)
        assert watchlist_service.list_items(db, test_user.id) == []

    def test_list_history_window_and_alert_count(self, db, test_user, make_item):
        item = make_item(test_user)
        base = datetime.utcnow()
        for i in range(LIST_HISTORY_POINTS + 5):
            db.add(PriceHistory(item_id=item.id, price=900.0 + i, recorded_at=base + timedelta(minutes=i)))
        db.commit()
        add_alert(db, item)
        add_alert(db, item)

        entry = watchlist_service.list_items(db, test_user.id)[0]
        assert len(entry.price_history) == LIST_HISTORY_POINTS
        # Most recent point first
        assert entry.price_history[0].price == 900.0 + LIST_HISTORY_POINTS + 4
        assert entry.alert_count == 2

    def test_get_item(self, db, test_user, make_item):
        item = make_item(test_user)
        db.add(PriceHistory(item_id=item.id, price=950.0, recorded_at=datetime.utcnow() + timedelta(hours=1)))
        db.commit()
        add_alert(db, item)

        entry = watchlist_service.get_item(db, test_user.id, item.id)
        assert entry.item.id == item.id
        assert [h.price for h in entry.price_history] == [1000.0, 950.0]
        assert len(entry.alerts) == 1
        assert entry.alert_count == 1

    def test_get_item_of_other_owner(self, db, test_user, other_user, make_item):
        item = make_item(other_user)
        assert watchlist_service.get_item(db, test_user.id, item.id) is None

    def test_get_missing_item(self, db, test_user):
        assert watchlist_service.get_item(db, test_user.id, "does-not-exist") is None


class TestUpdateItem:

    def test_only_whitelisted_fields_change(self, db, test_user, make_item):
        item = make_item(test_user)
        original_url = item.url

        updated = watchlist_service.update_item(db, test_user.id, item.id, {
            "name": "Renamed",
            "target_price": 800.0,
            "notify_on_drop": False,
            "drop_threshold": 12.5,
            "current_price": 1.0,
            "url": "https://evil.example.com",
            "user_id": 999,
        })

        assert updated.name == "Renamed"
        assert updated.target_price == 800.0
        assert updated.notify_on_drop is False
        assert updated.drop_threshold == 12.5
        assert updated.current_price == 1000.0
        assert updated.url == original_url
        assert updated.user_id == test_user.id

    def test_blank_name_ignored(self, db, test_user, make_item):
        item = make_item(test_user)
        updated = watchlist_service.update_item(db, test_user.id, item.id, {"name": ""})
        assert updated.name == item.name

    def test_nulls_ignored_for_required_settings(self, db, test_user, make_item):
        """Explicit nulls never blank out notify/threshold/status"""
        item = make_item(test_user, target_price=900.0)

        updated = watchlist_service.update_item(db, test_user.id, item.id, {
            "notify_on_drop": None,
            "drop_threshold": None,
            "status": None,
        })

        assert updated.notify_on_drop is True
        assert updated.drop_threshold == 5.0
        assert updated.status == WatchStatus.WATCHING
        assert len(watchlist_service.list_items(db, test_user.id)) == 1

    def test_null_target_clears_it(self, db, test_user, make_item):
        item = make_item(test_user, target_price=900.0)
        updated = watchlist_service.update_item(db, test_user.id, item.id, {"target_price": None})
        assert updated.target_price is None

    def test_status_from_string(self, db, test_user, make_item):
        item = make_item(test_user)
        updated = watchlist_service.update_item(db, test_user.id, item.id, {"status": "paused"})
        assert updated.status == WatchStatus.PAUSED

    def test_invalid_status(self, db, test_user, make_item):
        item = make_item(test_user)
        with pytest.raises(InputValidationError):
            watchlist_service.update_item(db, test_user.id, item.id, {"status": "sleeping"})

    def test_update_other_owner_item(self, db, test_user, other_user, make_item):
        item = make_item(other_user)
        assert watchlist_service.update_item(db, test_user.id, item.id, {"name": "Mine now"}) is None
        db.refresh(item)
        assert item.name != "Mine now"


class TestRemoveItem:

    def test_remove_cascades(self, db, test_user, make_item):
        """History and alerts are removed together with the item"""
        item = make_item(test_user)
        item_id = item.id
        add_alert(db, item)

        assert watchlist_service.remove_item(db, test_user.id, item_id) == {"deleted": True}

        assert db.get(WatchlistItem, item_id) is None
        assert db.query(PriceHistory).filter(PriceHistory.item_id == item_id).count() == 0
        assert db.query(PriceAlert).filter(PriceAlert.item_id == item_id).count() == 0

    def test_remove_other_owner_item(self, db, test_user, other_user, make_item):
        item = make_item(other_user)
        with pytest.raises(NotFoundError):
            watchlist_service.remove_item(db, test_user.id, item.id)
        assert db.get(WatchlistItem, item.id) is not None
