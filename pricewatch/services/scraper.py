"""
PriceWatch Product Scraper
Fetch + parse for a single product URL
"""
import logging
from typing import Optional

from pricewatch.models import Platform
from pricewatch.services import selectors
from pricewatch.services.classifier import classify
from pricewatch.services.page_fetcher import PageFetcher, page_fetcher
from pricewatch.services.parsers import ProductSnapshot, parse

logger = logging.getLogger(__name__)


class ProductScraper:
    """Combines the page fetcher with the platform parsers"""

    def __init__(self, fetcher: Optional[PageFetcher] = None):
        self.fetcher = fetcher or page_fetcher

    async def fetch_snapshot(self, url: str, platform: Platform) -> ProductSnapshot:
        """
        Fetch and parse a product page.

        Raises FetchError when the page cannot be retrieved. Parsing problems
        never raise; they show up as a snapshot without a price.
        """
        html = await self.fetcher.fetch(url)
        snapshot = parse(platform, html)
        if snapshot.price is None:
            logger.warning(f"No price found on {platform.value} page {url} (selectors {selectors.SELECTOR_VERSION})")
        return snapshot

    async def scrape(self, url: str, platform: Platform) -> ProductSnapshot:
        """Best-effort scrape: any failure becomes an empty snapshot"""
        try:
            return await self.fetch_snapshot(url, platform)
        except Exception as e:
            logger.warning(f"Scrape failed for {url}: {e}")
            return ProductSnapshot()

    async def preview(self, url: str) -> dict:
        """Classify and scrape a URL without storing anything"""
        info = classify(url)
        snapshot = await self.scrape(url, info.platform)
        return {
            "platform": info.platform,
            "platform_icon": info.platform_icon,
            "asin": info.identifier,
            **snapshot.to_dict(),
        }


product_scraper = ProductScraper()
