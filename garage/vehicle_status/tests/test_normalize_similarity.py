"""
Tests for name normalization, keywords and edit-distance similarity.

Run with: pytest garage/vehicle_status/tests/test_normalize_similarity.py -v
"""

import pytest

from garage.vehicle_status.normalize import normalize_name, extract_keywords
from garage.vehicle_status.similarity import levenshtein, distance, similarity


class TestNormalizeName:

    def test_basic(self):
        assert normalize_name("  BMW   4-Series!! ") == "bmw 4-series"

    def test_keeps_hyphens(self):
        assert normalize_name("Rolls-Royce Phantom") == "rolls-royce phantom"

    def test_strips_punctuation(self):
        assert normalize_name("Porsche 911 (Turbo).") == "porsche 911 turbo"

    def test_collapses_tabs_and_newlines(self):
        assert normalize_name("Audi\t\tRS6\n") == "audi rs6"

    def test_non_string(self):
        assert normalize_name(None) == ""
        assert normalize_name(42) == ""

    def test_empty(self):
        assert normalize_name("") == ""
        assert normalize_name("   ") == ""

    def test_cyrillic_letters_survive(self):
        assert normalize_name("Машина  Один") == "машина один"

    @pytest.mark.parametrize("raw", [
        "  BMW   4-Series!! ",
        "Tesla , Model 3",
        "a ! b",
        "Lamborghini Huracan 2022",
    ])
    def test_idempotent(self, raw):
        once = normalize_name(raw)
        assert normalize_name(once) == once


class TestExtractKeywords:

    def test_drops_stop_words(self):
        assert extract_keywords("The BMW M3 Touring") == ["bmw", "m3", "touring"]

    def test_splits_on_hyphens(self):
        assert extract_keywords("Mercedes-Benz C63S") == ["mercedes", "benz", "c63s"]

    def test_drops_single_characters(self):
        assert extract_keywords("Tesla Model 3") == ["tesla", "model"]

    def test_deduplicates(self):
        assert extract_keywords("bmw BMW m3") == ["bmw", "m3"]

    def test_custom_stop_words(self):
        assert extract_keywords("Audi RS6", stop_words=("audi",)) == ["rs6"]


class TestSimilarity:

    def test_levenshtein_known_values(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert levenshtein("abc", "abc") == 0

    def test_distance_is_symmetric(self):
        assert distance("Mercedes G63", "Mercedes G63AMG") == distance("Mercedes G63AMG", "Mercedes G63")

    def test_distance_uses_normalized_names(self):
        assert distance("BMW 4-Series", "  bmw 4-series! ") == 0

    def test_identical_after_normalization(self):
        assert similarity("Audi RS6", "audi   rs6") == 1.0

    def test_both_empty(self):
        assert similarity("", None) == 1.0

    def test_one_empty(self):
        assert similarity("", "Sparrow") == 0.0

    def test_partial_name(self):
        assert similarity("Mercedes G63", "Mercedes G63AMG") == pytest.approx(0.8)

    def test_range(self):
        for a, b in [("Sparrow", "Ferrari J50"), ("NRG-500", "nrg 500"), ("x", "Porsche 911")]:
            assert 0.0 <= similarity(a, b) <= 1.0
