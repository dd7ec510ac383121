"""
Tests for dictionary mappings, value objects and configuration.

Run tests:
    pytest tests/test_models.py -v
"""

import pytest
from pydantic import ValidationError

from config.settings import NormalizationConfig, PipelineConfig
from src.extractors.shopify_extractor import dedupe, parse_price
from src.loaders.memory import InMemoryDictionaryStore
from src.normalization import Color, DictionaryMapping, ExtractedTerms, MaterialType, Pattern


class TestDictionaryMapping:
    def test_source_term_lowercased_and_trimmed(self):
        mapping = DictionaryMapping(
            category="material", source_locale="fr", source_term="  Soie ", translations={"en": "silk"}
        )
        assert mapping.source_term == "soie"
        assert mapping.canonical_value == "silk"
        assert mapping.get_translation("de") is None

    def test_empty_translations_rejected(self):
        with pytest.raises(ValidationError):
            DictionaryMapping(
                category="material", source_locale="fr", source_term="soie", translations={"en": " "}
            )

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            DictionaryMapping(
                category="color",
                source_locale="fr",
                source_term="noir",
                translations={"en": "black"},
                confidence=1.5,
            )

    def test_reliability_and_source(self):
        mapping = DictionaryMapping(
            category="color",
            source_locale="fr",
            source_term="prune",
            translations={"en": "plum"},
            confidence=0.6,
            source="llm_suggested",
        )
        assert not mapping.is_reliable()
        assert mapping.is_llm_suggested()


class TestValueObjects:
    def test_lowercased_and_frozen(self):
        color = Color(" Navy ")
        assert color.value == "navy"
        assert str(color) == "navy"
        with pytest.raises(ValidationError):
            color.value = "black"

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            MaterialType("")

    def test_material_groups(self):
        assert MaterialType("linen").is_natural()
        assert MaterialType("polyester").is_synthetic()
        assert not MaterialType("viscose").is_natural()

    def test_pattern_groups(self):
        assert Pattern("stripes").is_geometric()
        assert Pattern("floral").is_natural()

    def test_extracted_terms_candidates(self):
        terms = ExtractedTerms(materials=["soie"], colors=["noir", "bleu"])
        assert terms.candidates("color") == ["noir", "bleu"]
        assert terms.candidates("texture") == []


class TestHelpersAndConfig:
    def test_dedupe_keeps_order(self):
        assert dedupe(["soie", "coton", "soie"]) == ["soie", "coton"]

    def test_parse_price(self):
        assert parse_price([{"price": "12.50"}]) == 12.5
        assert parse_price([{"price": "n/a"}]) == 0.0
        assert parse_price(None) == 0.0

    def test_invalid_partial_strategy(self):
        with pytest.raises(ValueError):
            NormalizationConfig(partial_match_strategy="random")

    def test_get_source(self):
        pipeline_config = PipelineConfig()
        assert pipeline_config.get_source("my_little_coupon").source_locale == "fr"
        with pytest.raises(ValueError):
            pipeline_config.get_source("zalando")

    def test_dictionary_from_json(self, tmp_path):
        path = tmp_path / "dictionary.json"
        path.write_text(
            '[{"category": "color", "source_locale": "fr", "source_term": "Noir",'
            ' "translations": {"en": "black"}}]',
            encoding="utf-8",
        )
        store = InMemoryDictionaryStore.from_json(path)
        assert store.mappings[0].source_term == "noir"
