"""
Textile entity: the canonical, normalized deadstock product record.

Validation runs once, at construction. Fields stay mutable afterwards so
callers can patch a record before saving it, but mutations are not
re-validated.
"""

import uuid
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from src.extractors.shopify_extractor import ProductData
from src.normalization.textile_normalizer import NormalizeTextileOutput


class Textile(BaseModel):
    """Validated textile ready for persistence (upserted on source_url)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    material_type: Optional[str] = None
    color: Optional[str] = None
    pattern: Optional[str] = None
    composition: Optional[dict[str, int]] = None
    quantity_value: float = Field(allow_inf_nan=False)
    quantity_unit: str = "m"
    price_value: float = Field(allow_inf_nan=False)
    price_currency: str = "EUR"
    source_platform: str
    source_url: str
    source_product_id: str
    supplier_name: Optional[str] = None
    available: bool = True
    image_url: Optional[str] = None
    raw_data: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Textile name cannot be empty")
        return v

    @field_validator("price_value")
    @classmethod
    def non_negative_price(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("quantity_value")
    @classmethod
    def positive_quantity(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Quantity must be positive")
        return v

    @field_validator("source_url")
    @classmethod
    def absolute_http_url(cls, v: str) -> str:
        parsed = urlparse(v or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Source URL must be an absolute http(s) URL")
        return v

    def is_available(self) -> bool:
        return self.available

    def has_image(self) -> bool:
        return bool(self.image_url)

    def is_normalized(self) -> bool:
        return self.material_type is not None and self.material_type != "unknown"

    @classmethod
    def from_product(
        cls,
        product: ProductData,
        normalized: NormalizeTextileOutput,
        composition: dict[str, int],
        *,
        source_platform: str,
        quantity_value: float,
        quantity_unit: str = "m",
        currency: str = "EUR",
        supplier_name: Optional[str] = None,
    ) -> "Textile":
        """Build a textile from a scraped product and its normalization."""
        return cls(
            name=product.name,
            description=product.description,
            material_type=normalized.material.value if normalized.material else None,
            color=normalized.color.value if normalized.color else None,
            pattern=normalized.pattern.value if normalized.pattern else None,
            composition=composition or None,
            quantity_value=quantity_value,
            quantity_unit=quantity_unit,
            price_value=product.price,
            price_currency=currency,
            source_platform=source_platform,
            source_url=product.source_url,
            source_product_id=product.id,
            supplier_name=supplier_name,
            available=product.available,
            image_url=product.image_url,
            raw_data=product.raw_data,
        )
