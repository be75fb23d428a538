"""
PriceWatch URL Classifier
Detects the marketplace and product identifier of a product URL
"""
import re
from dataclasses import dataclass
from typing import Optional

from pricewatch.models import Platform

ASIN_PATTERN = re.compile(r'/(?:dp|gp/product|ASIN)/([A-Z0-9]{10})', re.IGNORECASE)
BARE_ID_PATTERN = re.compile(r'/([A-Z0-9]{10})(?:[/?]|$)', re.IGNORECASE)

PLATFORM_ICONS = {
    Platform.AMAZON: "🛒",
    Platform.FLIPKART: "🛍️",
    Platform.OTHER: "🔗",
}


@dataclass(frozen=True)
class ProductInfo:
    platform: Platform
    platform_icon: str
    identifier: Optional[str] = None


def extract_asin(url: str) -> Optional[str]:
    """Extract a 10 character Amazon identifier from known path shapes"""
    match = ASIN_PATTERN.search(url) or BARE_ID_PATTERN.search(url)
    if match:
        return match.group(1).upper()
    return None


def classify(url: Optional[str]) -> ProductInfo:
    """
    Classify a product URL. Never raises; anything unrecognised is Other.
    """
    if not url:
        return ProductInfo(Platform.OTHER, PLATFORM_ICONS[Platform.OTHER])

    url_lower = url.lower()

    if "amazon" in url_lower:
        return ProductInfo(Platform.AMAZON, PLATFORM_ICONS[Platform.AMAZON], extract_asin(url))
    if "flipkart" in url_lower:
        return ProductInfo(Platform.FLIPKART, PLATFORM_ICONS[Platform.FLIPKART])

    return ProductInfo(Platform.OTHER, PLATFORM_ICONS[Platform.OTHER])
