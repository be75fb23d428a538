"""
PriceWatch Test Configuration
Pytest fixtures and test utilities
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_CHECKS", "1000/minute")

import pytest
from typing import Dict, Generator, Union
from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from pricewatch.main import app
from pricewatch.database import get_db
from pricewatch.exceptions import TimeoutFetchError
from pricewatch.models import (
    Base, User, WatchlistItem, PriceHistory, Platform, WatchStatus
)
from pricewatch.services.scraper import product_scraper
from pricewatch.utils.auth import create_user


# Test database
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _make_user(db: Session, email: str) -> User:
    return create_user(db, email)


@pytest.fixture
def test_user(db: Session) -> User:
    return _make_user(db, "owner@example.com")


@pytest.fixture
def other_user(db: Session) -> User:
    return _make_user(db, "someone-else@example.com")


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return {"X-API-Key": test_user.api_key}


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return {"X-API-Key": other_user.api_key}


# ============ HTML builders ============

def amazon_html(price_text: str = "₹1,000.00", title: str = "Noise Cancelling Headphones") -> str:
    return f"""
    <html><head><title>Amazon.in: {title}</title></head>
    <body>
      <span id="productTitle">  {title}  </span>
      <div id="corePrice_feature_div">
        <span class="a-price"><span class="a-offscreen">{price_text}</span></span>
      </div>
      <img id="landingImage" src="https://m.media-amazon.com/images/I/headphones.jpg">
    </body></html>
    """


def flipkart_html(price_text: str = "₹12,499", title: str = "Smart Watch") -> str:
    return f"""
    <html><body>
      <span class="B_NuCI">{title}</span>
      <div class="_30jeq3 _16Jk6d">{price_text}</div>
      <img class="_396cs4" src="https://rukminim1.flixcart.com/watch.jpeg">
    </body></html>
    """


def generic_html(amount: str = "2499.00", title: str = "Desk Lamp", currency: str = "USD") -> str:
    return f"""
    <html><head>
      <title>{title} | Example Store</title>
      <meta property="og:title" content="{title}">
      <meta property="og:image" content="https://shop.example.com/lamp.png">
      <meta property="og:price:amount" content="{amount}">
      <meta property="og:price:currency" content="{currency}">
    </head><body></body></html>
    """


AMAZON_URL = "https://www.amazon.in/Sony-Headphones/dp/B0863TXGM3/ref=sr_1_1"
FLIPKART_URL = "https://www.flipkart.com/smart-watch/p/itm123456"
SHOP_URL = "https://shop.example.com/products/desk-lamp"


# ============ Fake fetcher ============

class FakeFetcher:
    """Serves canned HTML (or raises) per URL instead of hitting the network"""

    def __init__(self):
        self.pages: Dict[str, Union[str, Exception]] = {}
        self.calls = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise TimeoutFetchError(f"Timed out fetching {url}", url=url)
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def fake_fetcher(monkeypatch) -> FakeFetcher:
    """Route every scrape through a FakeFetcher"""
    fetcher = FakeFetcher()
    monkeypatch.setattr(product_scraper, "fetcher", fetcher)
    return fetcher


@pytest.fixture
def make_item(db: Session):
    """Factory for watchlist items with an existing price baseline"""
    counter = {"n": 0}

    def _make(
        user: User,
        url: str = AMAZON_URL,
        platform: Platform = Platform.AMAZON,
        price: float = 1000.0,
        **overrides,
    ) -> WatchlistItem:
        counter["n"] += 1
        fields = dict(
            user_id=user.id,
            name=f"Tracked Product {counter['n']}",
            url=url,
            platform=platform,
            platform_icon="🛒",
            current_price=price,
            original_price=price,
            lowest_price=price,
            highest_price=price,
            notify_on_drop=True,
            drop_threshold=5.0,
            currency="INR",
            status=WatchStatus.WATCHING,
            created_at=datetime.utcnow() + timedelta(seconds=counter["n"]),
        )
        fields.update(overrides)
        item = WatchlistItem(**fields)
        db.add(item)
        db.flush()
        if item.current_price is not None:
            db.add(PriceHistory(item_id=item.id, price=item.current_price))
        db.commit()
        db.refresh(item)
        return item

    return _make
