"""
Base extractor for Shopify-style product feeds.

Fetches `<base>/products.json?limit=N` with httpx, normalizes the raw
payload (tags may be a comma-joined string or an array), strips HTML from
descriptions and hands each product to the source's smart-parse step.
"""

import html
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field
from rich.console import Console

from config.settings import SourceConfig
from src.normalization.errors import FeedError
from src.normalization.models import ExtractedTerms

console = Console()

DESCRIPTION_MAX_LENGTH = 500

TAG_RE = re.compile(r"<[^>]*>")


class ProductData(BaseModel):
    """One catalog product in the pipeline's standard shape."""

    id: str
    name: str
    description: str = ""
    price: float = 0.0
    image_url: Optional[str] = None
    source_url: str
    available: bool = False
    tags: list[str] = Field(default_factory=list)
    extracted: ExtractedTerms
    raw_data: dict[str, Any] = Field(default_factory=dict)


def normalize_tags(tags: Any) -> list[str]:
    """
    Turn the feed's `tags` field into an ordered list of lowercased tags.

    Shopify returns either "Soie, 100% Soie, Uni" or ["Soie", "Uni"].
    """
    if not tags:
        return []
    if isinstance(tags, str):
        items = tags.split(",")
    elif isinstance(tags, (list, tuple)):
        items = [str(tag) for tag in tags if tag is not None]
    else:
        return []
    return [item.strip().lower() for item in items if item and item.strip()]


def strip_html(value: Optional[str]) -> str:
    """Remove markup and collapse whitespace."""
    if not value:
        return ""
    text = html.unescape(TAG_RE.sub(" ", value))
    return re.sub(r"\s+", " ", text).strip()


def dedupe(items: list[str]) -> list[str]:
    """Remove duplicates while preserving order."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def parse_price(variants: Any) -> float:
    """Price of the first variant, 0 when missing or unparsable."""
    if not variants:
        return 0.0
    try:
        return float(variants[0].get("price") or 0)
    except (TypeError, ValueError, AttributeError):
        return 0.0


class ShopifyExtractor(ABC):
    """
    Fetches a Shopify product feed and smart-parses catalog terms.

    Subclasses implement smart_parse() with the source's own tagging
    conventions; everything else is shared.
    """

    def __init__(
        self,
        source: SourceConfig,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.source = source
        self._client = client
        self._owns_client = client is None

    @property
    def source_locale(self) -> str:
        return self.source.source_locale

    @property
    def platform(self) -> str:
        return self.source.platform

    async def __aenter__(self):
        """Async context manager entry."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating if needed."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.source.headers,
                timeout=httpx.Timeout(self.source.timeout_seconds),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this extractor created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch_products(self, limit: int = 10) -> list[ProductData]:
        """
        Fetch up to `limit` products from the feed.

        Raises FeedError on any network failure, non-2xx status or malformed
        payload. No partial results are returned.
        """
        url = self.source.feed_url
        console.print(f"[cyan]Fetching {self.platform} products from {url}[/cyan]")

        client = self._get_client()
        try:
            response = await client.get(
                url, params={"limit": limit}, headers=self.source.headers
            )
        except httpx.HTTPError as e:
            raise FeedError(f"Failed to fetch {self.platform} products: {e}") from e

        if not response.is_success:
            raise FeedError(
                f"Failed to fetch {self.platform} products: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise FeedError(f"Invalid JSON from {self.platform}: {e}") from e

        raw_products = data.get("products") if isinstance(data, dict) else None
        if not isinstance(raw_products, list):
            raise FeedError(f"No 'products' array in {self.platform} feed")

        products = [self.transform(raw) for raw in raw_products]
        console.print(f"[green]✓ Fetched {len(products)} products from {self.platform}[/green]")
        return products

    def transform(self, raw: dict) -> ProductData:
        """Transform a raw feed product into ProductData."""
        tags = normalize_tags(raw.get("tags"))
        title = (raw.get("title") or "").strip()
        images = raw.get("images") or []
        handle = raw.get("handle") or str(raw.get("id", ""))

        return ProductData(
            id=str(raw.get("id", "")),
            name=title,
            description=strip_html(raw.get("body_html"))[:DESCRIPTION_MAX_LENGTH],
            price=parse_price(raw.get("variants")),
            image_url=(images[0].get("src") if images and isinstance(images[0], dict) else None),
            source_url=f"{self.source.base_url}/products/{handle}",
            available=self._is_available(raw),
            tags=tags,
            extracted=self.smart_parse(title, tags),
            raw_data=raw,
        )

    @abstractmethod
    def smart_parse(self, title: str, tags: list[str]) -> ExtractedTerms:
        """Extract candidate materials, colors and patterns."""

    def _is_available(self, raw: dict) -> bool:
        if "available" in raw:
            return bool(raw["available"])
        return any(v.get("available") for v in raw.get("variants") or [])

    @staticmethod
    def _match_keywords(text: str, keywords: list[str]) -> list[str]:
        """Keywords found in text, in vocabulary order."""
        return dedupe([keyword for keyword in keywords if keyword in text])
