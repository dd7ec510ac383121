"""
Source extractors for Shopify-style deadstock catalogs.

Usage:
    from src.extractors import get_extractor

    async with get_extractor("my_little_coupon") as extractor:
        products = await extractor.fetch_products(limit=10)
"""

from typing import Optional

import httpx

from config.settings import SourceConfig
from .my_little_coupon import MyLittleCouponExtractor
from .shopify_extractor import ProductData, ShopifyExtractor, normalize_tags, strip_html
from .the_fabric_sales import TheFabricSalesExtractor

EXTRACTORS = {
    "my_little_coupon": MyLittleCouponExtractor,
    "the_fabric_sales": TheFabricSalesExtractor,
}


def get_extractor(
    source_key: str,
    client: Optional[httpx.AsyncClient] = None,
    source: Optional[SourceConfig] = None,
) -> ShopifyExtractor:
    """Build the extractor registered for a source key."""
    if source_key not in EXTRACTORS:
        raise ValueError(
            f"Unknown source: {source_key}. Available: {', '.join(EXTRACTORS)}"
        )
    return EXTRACTORS[source_key](source=source, client=client)


__all__ = [
    "EXTRACTORS",
    "MyLittleCouponExtractor",
    "ProductData",
    "ShopifyExtractor",
    "TheFabricSalesExtractor",
    "get_extractor",
    "normalize_tags",
    "strip_html",
]
