"""
PriceWatch Platform Parsers
Turn fetched product HTML into a normalized snapshot.

Each parser is a plain function over the raw HTML; PARSERS maps the platform
tag to its parser. Missing markup never raises: absent values come back as
None so callers can treat them as "unknown".
"""
import logging
import re
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Iterable, Optional

from bs4 import BeautifulSoup

from pricewatch.config import settings
from pricewatch.models import Platform
from pricewatch.services import selectors

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200

CURRENCY_CHARS = re.compile(r'[₹$€£,\s]')
LEADING_NUMBER = re.compile(r'^[-+]?(?:\d+\.?\d*|\.\d+)')
SYMBOL_PRICE = re.compile(r'[₹$€£]\s?[\d,]+\.?\d*')


@dataclass
class ProductSnapshot:
    """Normalized product data scraped from one page"""
    price: Optional[float] = None
    name: Optional[str] = None
    image_url: Optional[str] = None
    currency: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def extract_number(text: Optional[str]) -> Optional[float]:
    """
    Parse a displayed price such as "₹1,299.00".

    Currency symbols, thousands separators and whitespace are stripped and the
    leading number is parsed. Returns None when nothing numeric remains.
    """
    if not text:
        return None
    cleaned = CURRENCY_CHARS.sub('', text)
    match = LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def truncate_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    return name[:MAX_NAME_LENGTH]


def _first_text(soup: BeautifulSoup, candidates: Iterable[str]) -> str:
    for selector in candidates:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = element.get_text().strip()
        if text:
            logger.debug(f"Selector '{selector}' matched: '{text[:60]}'")
            return text
    return ""


def _first_attr(soup: BeautifulSoup, candidates: Iterable[str], attr: str) -> Optional[str]:
    for selector in candidates:
        element = soup.select_one(selector)
        if element is not None and element.get(attr):
            return element[attr]
    return None


def _make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def parse_amazon(html: str) -> ProductSnapshot:
    soup = _make_soup(html)
    config = selectors.AMAZON

    price_text = _first_text(soup, config["price"])
    if "₹" in price_text:
        currency = "INR"
    elif "$" in price_text:
        currency = "USD"
    else:
        currency = "INR"

    return ProductSnapshot(
        price=extract_number(price_text),
        name=truncate_name(_first_text(soup, config["name"])),
        image_url=_first_attr(soup, config["image"], "src"),
        currency=currency,
    )


def parse_flipkart(html: str) -> ProductSnapshot:
    soup = _make_soup(html)
    config = selectors.FLIPKART

    return ProductSnapshot(
        price=extract_number(_first_text(soup, config["price"])),
        name=truncate_name(_first_text(soup, config["name"])),
        image_url=_first_attr(soup, config["image"], "src"),
        currency="INR",
    )


def parse_generic(html: str) -> ProductSnapshot:
    soup = _make_soup(html)
    config = selectors.GENERIC

    # Structured meta tags first
    price = None
    meta_price = _first_attr(soup, config["price_meta"], "content")
    if meta_price:
        price = extract_number(meta_price)

    # Then anything that looks like a price container
    if not price:
        for element in soup.select(config["price_scan"]):
            match = SYMBOL_PRICE.search(element.get_text().strip())
            if match:
                price = extract_number(match.group(0))
                if price:
                    break

    name = _first_attr(soup, [config["name_meta"]], "content")
    if not name and soup.title is not None:
        name = soup.title.get_text().strip()

    return ProductSnapshot(
        price=price,
        name=truncate_name(name),
        image_url=_first_attr(soup, [config["image_meta"]], "content"),
        currency=_first_attr(soup, [config["currency_meta"]], "content") or settings.DEFAULT_CURRENCY,
    )


PARSERS: Dict[Platform, Callable[[str], ProductSnapshot]] = {
    Platform.AMAZON: parse_amazon,
    Platform.FLIPKART: parse_flipkart,
    Platform.OTHER: parse_generic,
}


def get_parser(platform: Platform) -> Callable[[str], ProductSnapshot]:
    """Parser for a platform tag; unknown tags fall back to the generic parser"""
    return PARSERS.get(platform, parse_generic)


def parse(platform: Platform, html: str) -> ProductSnapshot:
    return get_parser(platform)(html)
