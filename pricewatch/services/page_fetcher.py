"""
PriceWatch Page Fetcher
Retrieves product page HTML with browser-like headers.

No retries happen here; the price checker decides what a failed fetch means.
"""
import logging
from typing import Optional

import httpx

from pricewatch.config import settings
from pricewatch.exceptions import FetchError, TimeoutFetchError

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetch raw HTML for product URLs"""

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.SCRAPE_TIMEOUT_SECONDS
        self.max_redirects = max_redirects if max_redirects is not None else settings.SCRAPE_MAX_REDIRECTS
        self.transport = transport
        self.headers = {
            "User-Agent": settings.SCRAPE_USER_AGENT,
            "Accept-Language": settings.SCRAPE_ACCEPT_LANGUAGE,
            "Accept": "text/html,application/xhtml+xml",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self.headers,
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            transport=self.transport,
        )

    async def fetch(self, url: str) -> str:
        """Return the page body, or raise FetchError"""
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise TimeoutFetchError(f"Timed out fetching {url}", url=url) from e
        except httpx.TooManyRedirects as e:
            raise FetchError(f"Too many redirects for {url}", url=url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Request failed for {url}: {e}", url=url) from e

        if not response.is_success:
            raise FetchError(
                f"Unexpected status {response.status_code} for {url}",
                url=url,
                status=response.status_code,
            )

        logger.debug(f"Fetched {url} ({len(response.text)} bytes)")
        return response.text


page_fetcher = PageFetcher()
