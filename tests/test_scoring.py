"""Tests for edit distance and fuzzy field scoring."""

import pytest

from snipsearch.core.scoring import (
    FieldScore,
    calculate_fuzzy_score,
    calculate_partial_match,
    calculate_similarity,
    get_field_weight,
    levenshtein_distance,
    weighted_aggregate,
)


class TestLevenshtein:
    def test_classic_pair(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_identical(self):
        assert levenshtein_distance("abc", "abc") == 0

    def test_against_empty(self):
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3


class TestSimilarity:
    def test_normalized(self):
        assert calculate_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
        assert calculate_similarity("abc", "abc") == 1.0

    def test_empty_inputs_stay_in_range(self):
        assert calculate_similarity("", "") == 1.0
        assert calculate_similarity("", "abc") == 0.0
        assert calculate_similarity("abc", "") == 0.0


class TestPartialMatch:
    def test_fixed_offset_alignment(self):
        assert calculate_partial_match("vae", "vue") == pytest.approx(2 / 3)
        assert calculate_partial_match("uve", "vue") == pytest.approx(1 / 3)

    def test_full_window(self):
        assert calculate_partial_match("hello world", "world") == 1.0

    def test_term_longer_than_text(self):
        assert calculate_partial_match("ab", "abc") == 0.0
        assert calculate_partial_match("abc", "") == 0.0


class TestFuzzyScore:
    def test_literal_hits_with_bonuses(self):
        # vue: 3/17 + start + boundary; data: 4/17 + boundary
        expected = 3 / 17 + 0.2 + 0.1 + 4 / 17 + 0.1
        assert calculate_fuzzy_score("Vue Reactive Data", ["vue", "data"]) == pytest.approx(expected)

    def test_partial_misses_are_halved(self):
        # vue best window 1/3, data best window 2/4
        expected = (1 / 3) * 0.5 + 0.5 * 0.5
        assert calculate_fuzzy_score("Python Decorators", ["vue", "data"]) == pytest.approx(expected)

    def test_clamped_to_one(self):
        assert calculate_fuzzy_score("vue", ["vue"]) == 1.0

    def test_empty_text(self):
        assert calculate_fuzzy_score("", ["vue"]) == 0.0


class TestWeights:
    def test_field_weights(self):
        assert get_field_weight("title") > get_field_weight("tags")
        assert get_field_weight("tags") > get_field_weight("description")
        assert get_field_weight("description") > get_field_weight("code")
        assert get_field_weight("meta.author") == 1.0

    def test_weighted_aggregate(self):
        scores = [FieldScore("title", 0.8, 3.0), FieldScore("code", 0.2, 1.0)]
        assert weighted_aggregate(scores) == pytest.approx(0.65)

    def test_weighted_aggregate_empty(self):
        assert weighted_aggregate([]) == 0.0
