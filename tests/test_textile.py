"""
Tests for the Textile entity and the textile repositories.

Run tests:
    pytest tests/test_textile.py -v
"""

import asyncio

import pytest
from pydantic import ValidationError

from src.extractors.shopify_extractor import ProductData, parse_price
from src.loaders.memory import InMemoryTextileRepository
from src.loaders.supabase_loader import SupabaseTextileRepository, SupabaseUnknownTermStore
from src.normalization import Color, ExtractedTerms, MaterialType, NormalizeTextileOutput
from src.normalization.unknowns import UnknownTerm, UnknownTermStatus
from src.transformers.textile import Textile


def make_textile(**overrides) -> Textile:
    fields = {
        "name": "Coupon de soie",
        "quantity_value": 3.0,
        "price_value": 24.9,
        "source_platform": "my_little_coupon",
        "source_url": "https://mylittlecoupon.fr/products/coupon-soie",
        "source_product_id": "101",
    }
    fields.update(overrides)
    return Textile(**fields)


class TestTextileValidation:
    """Construction-time invariants."""

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(price_value=-0.01)

    def test_zero_price_allowed(self):
        assert make_textile(price_value=0).price_value == 0

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(quantity_value=0)

    def test_nan_price_from_feed_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(price_value=parse_price([{"price": "NaN"}]))

    def test_infinite_price_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(price_value=float("inf"))

    def test_non_finite_quantity_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(quantity_value=float("inf"))
        with pytest.raises(ValidationError):
            make_textile(quantity_value=float("nan"))

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(name="   ")

    def test_non_http_url_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(source_url="ftp://mylittlecoupon.fr/products/x")

    def test_relative_url_rejected(self):
        with pytest.raises(ValidationError):
            make_textile(source_url="/products/x")

    def test_minimal_https_url_allowed(self):
        assert make_textile(source_url="https://x").source_url == "https://x"

    def test_mutation_not_revalidated(self):
        textile = make_textile()
        textile.price_value = -5
        assert textile.price_value == -5


class TestTextilePredicates:
    def test_is_normalized(self):
        assert make_textile(material_type="silk").is_normalized()
        assert not make_textile().is_normalized()
        assert not make_textile(material_type="unknown").is_normalized()

    def test_has_image_and_available(self):
        textile = make_textile(image_url="https://cdn.shopify.com/1.jpg", available=False)
        assert textile.has_image()
        assert not textile.is_available()
        assert not make_textile().has_image()

    def test_from_product(self):
        product = ProductData(
            id="101",
            name="Coupon de soie, Noir",
            description="Belle soie",
            price=24.9,
            source_url="https://mylittlecoupon.fr/products/coupon-soie",
            available=True,
            extracted=ExtractedTerms(materials=["soie"], colors=["noir"]),
        )
        normalized = NormalizeTextileOutput(material=MaterialType("silk"), color=Color("black"))
        textile = Textile.from_product(
            product,
            normalized,
            {"silk": 100},
            source_platform="my_little_coupon",
            quantity_value=3.0,
            currency="EUR",
            supplier_name="Maison de couture française",
        )

        assert textile.material_type == "silk"
        assert textile.color == "black"
        assert textile.pattern is None
        assert textile.composition == {"silk": 100}
        assert textile.quantity_value == 3.0
        assert textile.source_product_id == "101"


class TestInMemoryTextileRepository:
    def test_upsert_on_source_url(self):
        repository = InMemoryTextileRepository()

        async def run():
            await repository.save(make_textile(price_value=24.9))
            first = await repository.find_by_source_url(make_textile().source_url)
            await repository.save(make_textile(price_value=19.9))
            second = await repository.find_by_source_url(make_textile().source_url)
            return first, second, await repository.count()

        first, second, count = asyncio.run(run())
        assert count == 1
        assert second.price_value == 19.9
        assert second.id == first.id
        assert second.created_at == first.created_at

    def test_distinct_urls_are_distinct_rows(self):
        repository = InMemoryTextileRepository()

        async def run():
            await repository.save(make_textile())
            await repository.save(make_textile(source_url="https://mylittlecoupon.fr/products/b"))
            return await repository.find_all()

        assert len(asyncio.run(run())) == 2


class TestSupabaseRowMapping:
    """Row conversion only; no database access."""

    def test_textile_round_trip(self):
        textile = make_textile(material_type="silk", composition={"silk": 100})
        row = SupabaseTextileRepository.to_row(textile)
        assert "id" not in row
        assert row["source_url"] == textile.source_url

        restored = SupabaseTextileRepository.from_row(dict(row, id=textile.id))
        assert restored.material_type == "silk"
        assert restored.composition == {"silk": 100}

    def test_unknown_row_marks_added_to_dict(self):
        unknown = UnknownTerm(term="lilas", category="color")
        unknown.add_to_dictionary("lilac", by="anna")
        row = SupabaseUnknownTermStore.to_row(unknown)
        assert row["status"] == "added_to_dict"
        assert row["added_to_dict"] is True
        assert row["human_mapping"] == "lilac"

        restored = SupabaseUnknownTermStore.to_unknown(dict(row, id=unknown.id))
        assert restored.status == UnknownTermStatus.ADDED_TO_DICT
