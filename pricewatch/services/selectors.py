"""
PriceWatch Selector Configuration
CSS selector candidates per marketplace, tried in order (first non-empty wins).

SELECTOR_VERSION labels the current selector set; bump it whenever a list
changes.
"""
SELECTOR_VERSION = "2024.1"

AMAZON = {
    "price": (
        "#priceblock_dealprice",
        "#priceblock_ourprice",
        "#priceblock_saleprice",
        ".a-price .a-offscreen",
        "#corePrice_feature_div .a-offscreen",
        "#tp_price_block_total_price_ww .a-offscreen",
        ".priceToPay .a-offscreen",
    ),
    "name": (
        "#productTitle",
        "h1",
    ),
    "image": (
        "#landingImage",
        "#imgBlkFront",
    ),
}

FLIPKART = {
    "price": (
        "._30jeq3",
        "._16Jk6d",
        ".CEmiEU",
        "._25b18c ._30jeq3",
    ),
    "name": (
        ".B_NuCI",
        "h1",
    ),
    "image": (
        "img._396cs4",
        "img._2r_T1I",
    ),
}

GENERIC = {
    "price_meta": (
        'meta[property="og:price:amount"]',
        'meta[property="product:price:amount"]',
    ),
    "price_scan": '[class*="price"], [id*="price"], [data-price]',
    "name_meta": 'meta[property="og:title"]',
    "image_meta": 'meta[property="og:image"]',
    "currency_meta": 'meta[property="og:price:currency"]',
}
