"""
Tests for the Shopify feed extractors.

HTTP is served by httpx.MockTransport; no network access is needed.

Run tests:
    pytest tests/test_extractors.py -v
"""

import asyncio

import httpx
import pytest

from config.settings import SOURCES
from src.extractors import (
    MyLittleCouponExtractor,
    ShopifyExtractor,
    TheFabricSalesExtractor,
    get_extractor,
    normalize_tags,
    strip_html,
)
from src.extractors.shopify_extractor import DESCRIPTION_MAX_LENGTH
from src.normalization import FeedError


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def feed_handler(products: list, seen: list = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, json={"products": products})

    return handler


def fetch(extractor, limit=10):
    async def run():
        async with extractor:
            return await extractor.fetch_products(limit)

    return asyncio.run(run())


MLC_PRODUCT = {
    "id": 101,
    "title": "Coupon de soie imprimée, Bleu nuit",
    "handle": "coupon-soie-bleu-nuit",
    "body_html": "<p>Très belle <strong>soie</strong>&nbsp;imprimée.</p>\n<p>3 mètres</p>",
    "tags": "Soie, 100% Soie, Imprimé",
    "variants": [{"price": "24.90", "available": True}],
    "images": [{"src": "https://cdn.shopify.com/101.jpg"}],
}

TFS_PRODUCT = {
    "id": 202,
    "title": "Navy Striped Cotton Shirting",
    "handle": "navy-striped-cotton",
    "body_html": "<p>Designer deadstock.</p>",
    "tags": ["Cotton", "Striped", "Shirting"],
    "variants": [{"price": "12.00", "available": False}],
    "images": [],
}


class TestHelpers:
    def test_tags_string_and_array_agree(self):
        assert normalize_tags("Soie, 100% Soie , Uni") == ["soie", "100% soie", "uni"]
        assert normalize_tags(["Soie", " 100% Soie", "Uni"]) == ["soie", "100% soie", "uni"]

    def test_tags_missing(self):
        assert normalize_tags(None) == []
        assert normalize_tags("") == []
        assert normalize_tags(42) == []

    def test_strip_html(self):
        assert strip_html("<p>Belle&nbsp;<b>soie</b></p>\n<br/>") == "Belle soie"
        assert strip_html(None) == ""


class TestFetchProducts:
    """Feed fetching, payload normalization and failure handling."""

    def test_requests_feed_with_limit(self):
        seen = []
        extractor = MyLittleCouponExtractor(client=mock_client(feed_handler([MLC_PRODUCT], seen)))
        products = fetch(extractor, limit=5)

        assert len(products) == 1
        assert seen[0].url.path == "/collections/all/products.json"
        assert seen[0].url.params["limit"] == "5"
        assert seen[0].headers["accept-language"].startswith("fr-FR")

    def test_transform_mlc_product(self):
        extractor = MyLittleCouponExtractor(client=mock_client(feed_handler([MLC_PRODUCT])))
        product = fetch(extractor)[0]

        assert product.id == "101"
        assert product.name == "Coupon de soie imprimée, Bleu nuit"
        assert product.description == "Très belle soie imprimée. 3 mètres"
        assert product.price == 24.90
        assert product.available is True
        assert product.image_url == "https://cdn.shopify.com/101.jpg"
        assert product.source_url == "https://mylittlecoupon.fr/products/coupon-soie-bleu-nuit"
        assert product.tags == ["soie", "100% soie", "imprimé"]

    def test_description_truncated(self):
        raw = dict(MLC_PRODUCT, body_html="<div>" + "a" * 800 + "</div>")
        extractor = MyLittleCouponExtractor(client=mock_client(feed_handler([raw])))
        assert len(fetch(extractor)[0].description) == DESCRIPTION_MAX_LENGTH

    def test_missing_fields_default(self):
        raw = {"id": 5, "title": "Coupon", "handle": "coupon"}
        extractor = TheFabricSalesExtractor(client=mock_client(feed_handler([raw])))
        product = fetch(extractor)[0]

        assert product.price == 0.0
        assert product.image_url is None
        assert product.description == ""
        assert product.available is False

    def test_non_success_status_raises(self):
        client = mock_client(lambda request: httpx.Response(503, text="down"))
        extractor = MyLittleCouponExtractor(client=client)

        with pytest.raises(FeedError) as exc_info:
            fetch(extractor)
        assert exc_info.value.status_code == 503

    def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        extractor = TheFabricSalesExtractor(client=mock_client(handler))
        with pytest.raises(FeedError):
            fetch(extractor)

    def test_invalid_json_raises(self):
        client = mock_client(lambda request: httpx.Response(200, text="<html>blocked</html>"))
        with pytest.raises(FeedError):
            fetch(TheFabricSalesExtractor(client=client))

    def test_missing_products_array_raises(self):
        client = mock_client(lambda request: httpx.Response(200, json={"items": []}))
        with pytest.raises(FeedError):
            fetch(TheFabricSalesExtractor(client=client))

    def test_injected_client_not_closed(self):
        client = mock_client(feed_handler([]))
        fetch(TheFabricSalesExtractor(client=client))
        assert not client.is_closed


class TestMyLittleCouponParsing:
    def setup_method(self):
        self.extractor = MyLittleCouponExtractor(client=mock_client(feed_handler([])))

    def test_materials_from_composition_tags(self):
        terms = self.extractor.smart_parse("Coupon", ["80% coton", "20% polyester", "uni"])
        assert terms.materials == ["coton", "polyester"]
        assert terms.source_locale == "fr"

    def test_materials_deduplicated(self):
        terms = self.extractor.smart_parse("Coupon", ["soie", "100% soie"])
        assert terms.materials == ["soie"]

    def test_color_after_last_comma(self):
        terms = self.extractor.smart_parse("Coupon de lin, lavé, Bleu nuit", [])
        assert terms.colors == ["bleu nuit"]
        assert terms.confidence.colors == 0.8

    def test_no_comma_no_color(self):
        terms = self.extractor.smart_parse("Coupon de lin bleu", [])
        assert terms.colors == []
        assert terms.confidence.colors == 0.0

    def test_long_title_fragment_is_not_a_color(self):
        terms = self.extractor.smart_parse(
            "Coupon, idéal pour robes et jupes d'été légères", []
        )
        assert terms.colors == []

    def test_patterns_from_tags(self):
        terms = self.extractor.smart_parse("Coupon", ["soie", "imprimé", "fleuri"])
        assert terms.patterns == ["imprimé", "fleuri"]
        assert terms.confidence.patterns == 0.7


class TestTheFabricSalesParsing:
    def setup_method(self):
        self.extractor = TheFabricSalesExtractor(client=mock_client(feed_handler([])))

    def test_keywords_from_tags(self):
        terms = self.extractor.smart_parse("Shirting", ["cotton", "navy", "striped"])
        assert terms.materials == ["cotton"]
        assert terms.colors == ["navy"]
        assert "stripe" in terms.patterns
        assert terms.source_locale == "en"
        assert terms.confidence.materials == 0.9

    def test_color_falls_back_to_title(self):
        product = fetch(TheFabricSalesExtractor(client=mock_client(feed_handler([TFS_PRODUCT]))))[0]
        assert product.extracted.colors == ["navy"]
        assert product.extracted.materials == ["cotton"]

    def test_title_color_scores_below_tag_color(self):
        from_tags = self.extractor.smart_parse("Shirting", ["cotton", "navy"])
        from_title = self.extractor.smart_parse("Navy Shirting", ["cotton"])

        assert from_title.colors == ["navy"]
        assert from_title.confidence.colors == TheFabricSalesExtractor.TITLE_CONFIDENCE
        assert from_title.confidence.colors < from_tags.confidence.colors

    def test_no_color_anywhere(self):
        terms = self.extractor.smart_parse("Shirting", ["cotton"])
        assert terms.colors == []
        assert terms.confidence.colors == 0.0


class TestExtractorBase:
    def test_subclass_without_smart_parse_cannot_be_built(self):
        class IncompleteExtractor(ShopifyExtractor):
            pass

        with pytest.raises(TypeError):
            IncompleteExtractor(SOURCES["the_fabric_sales"])


class TestRegistry:
    def test_get_extractor(self):
        extractor = get_extractor("the_fabric_sales")
        assert isinstance(extractor, TheFabricSalesExtractor)
        assert extractor.source is SOURCES["the_fabric_sales"]

    def test_unknown_source(self):
        with pytest.raises(ValueError):
            get_extractor("etsy")
