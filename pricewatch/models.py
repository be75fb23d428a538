"""
PriceWatch Database Models
ORM models for watched products, price history and alerts
"""
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text,
    ForeignKey, Enum, Index
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime
import enum
import uuid

Base = declarative_base()

UNKNOWN_PRODUCT_NAME = "Unknown Product"


def _uuid() -> str:
    return str(uuid.uuid4())


class Platform(enum.Enum):
    AMAZON = "Amazon"
    FLIPKART = "Flipkart"
    OTHER = "Other"


class WatchStatus(enum.Enum):
    WATCHING = "watching"
    TARGET_HIT = "target_hit"
    PAUSED = "paused"
    ARCHIVED = "archived"


class AlertType(enum.Enum):
    PRICE_DROP = "price_drop"
    TARGET_HIT = "target_hit"


class User(Base):
    """Owner of watchlist items and alerts"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    api_key = Column(String(64), unique=True, index=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    watchlist_items = relationship("WatchlistItem", back_populates="user", cascade="all, delete-orphan")
    alerts = relationship("PriceAlert", back_populates="user", cascade="all, delete-orphan")


class WatchlistItem(Base):
    """A product URL being watched for price changes"""
    __tablename__ = "watchlist_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Product metadata
    name = Column(String(500), nullable=False, default=UNKNOWN_PRODUCT_NAME)
    url = Column(String(2000), nullable=False)
    platform = Column(Enum(Platform), nullable=False, default=Platform.OTHER)
    platform_icon = Column(String(16))
    asin = Column(String(20), index=True)  # marketplace identifier when known
    image_url = Column(String(2000))
    currency = Column(String(3), default="INR")

    # Price tracking
    current_price = Column(Float)
    original_price = Column(Float)  # first observed price, never changed afterwards
    lowest_price = Column(Float)
    highest_price = Column(Float)

    # Alert configuration
    target_price = Column(Float)
    notify_on_drop = Column(Boolean, default=True)
    drop_threshold = Column(Float, default=5.0)
    status = Column(Enum(WatchStatus), nullable=False, default=WatchStatus.WATCHING)

    # Timestamps
    last_checked = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="watchlist_items")
    price_history = relationship(
        "PriceHistory", back_populates="item",
        cascade="all, delete-orphan",
    )
    alerts = relationship(
        "PriceAlert", back_populates="item",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_watchlist_items_user_created", "user_id", "created_at"),
        Index("ix_watchlist_items_status", "status"),
    )


class PriceHistory(Base):
    """Append-only price samples"""
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(String(36), ForeignKey("watchlist_items.id", ondelete="CASCADE"), nullable=False)
    price = Column(Float, nullable=False)
    recorded_at = Column(DateTime, default=datetime.utcnow, index=True)

    item = relationship("WatchlistItem", back_populates="price_history")

    __table_args__ = (
        Index("ix_price_history_item_date", "item_id", "recorded_at"),
    )


class PriceAlert(Base):
    """Price drop / target hit events raised by the price checker"""
    __tablename__ = "price_alerts"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(String(36), ForeignKey("watchlist_items.id", ondelete="CASCADE"), nullable=False)
    type = Column(Enum(AlertType), nullable=False)
    product_name = Column(String(500))
    previous_price = Column(Float)
    new_price = Column(Float)
    drop_percentage = Column(Float)
    url = Column(Text)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="alerts")
    item = relationship("WatchlistItem", back_populates="alerts")

    __table_args__ = (
        Index("ix_price_alerts_user_read", "user_id", "read"),
    )
