"""Tests for the exact, regex, fuzzy and semantic match strategies."""

from typing import List, Sequence

import pytest

from snipsearch.config import SearchConfig
from snipsearch.core.schemas import SearchMode, SearchOptions, SearchResultItem, Snippet
from snipsearch.core.strategies import (
    ExactStrategy,
    FuzzyStrategy,
    InvalidPatternError,
    MatchStrategy,
    RegexStrategy,
    SemanticStrategy,
    create_strategy,
    parse_mode,
)


@pytest.fixture
def config():
    return SearchConfig()


class TestFuzzyStrategy:
    @pytest.mark.asyncio
    async def test_accepts_items_over_threshold(self, config):
        items = [Snippet(id=1, title="Vue Reactive Data"), Snippet(id=2, title="Python Decorators")]

        results = await FuzzyStrategy(config).search(items, "vue data")

        assert [r.id for r in results] == [1]
        assert results[0].search_score > 0
        assert results[0].matched_fields == ["title"]
        assert results[0].search_highlights == {"title": "<mark>Vue</mark> Reactive <mark>Data</mark>"}

    @pytest.mark.asyncio
    async def test_threshold_is_respected(self):
        items = [Snippet(id=1, title="Vue Reactive Data"), Snippet(id=2, title="Python Decorators")]

        strict = await FuzzyStrategy(SearchConfig(fuzzy_threshold=0.9)).search(items, "vue data")
        lenient = await FuzzyStrategy(SearchConfig(fuzzy_threshold=0.0)).search(items, "vue data")

        assert strict == []
        assert [r.id for r in lenient] == [1, 2]

    @pytest.mark.asyncio
    async def test_scores_stay_in_unit_range(self, config, snippets):
        results = await FuzzyStrategy(SearchConfig(fuzzy_threshold=0.0)).search(snippets, "error reactive")
        assert results
        assert all(0.0 <= r.search_score <= 1.0 for r in results)

    @pytest.mark.asyncio
    async def test_empty_query_passes_items_through(self, config, snippets):
        results = await FuzzyStrategy(config).search(snippets, "")
        assert [r.id for r in results] == [1, 2, 3]
        assert all(r.search_score == 0.0 for r in results)

    @pytest.mark.asyncio
    async def test_inputs_are_not_modified(self, config, snippets):
        before = [s.model_dump() for s in snippets]
        await FuzzyStrategy(config).search(snippets, "vue")
        assert [s.model_dump() for s in snippets] == before
        assert not any(isinstance(s, SearchResultItem) for s in snippets)

    @pytest.mark.asyncio
    async def test_highlights_can_be_disabled(self, snippets):
        config = SearchConfig(enable_highlight=False, fuzzy_threshold=0.0)
        results = await FuzzyStrategy(config).search(snippets, "vue")
        assert results
        assert all(r.search_highlights == {} for r in results)

    @pytest.mark.asyncio
    async def test_short_terms_do_not_mark_inside_markup(self):
        items = [Snippet(id=1, title="Vue data")]

        results = await FuzzyStrategy(SearchConfig(fuzzy_threshold=0.0)).search(items, "vue a")

        assert results[0].search_highlights == {"title": "<mark>Vue</mark> d<mark>a</mark>t<mark>a</mark>"}


class TestExactStrategy:
    @pytest.mark.asyncio
    async def test_case_insensitive_by_default(self, config):
        items = [Snippet(id=1, title="JavaScript Debounce")]
        strategy = ExactStrategy(config)

        hits = await strategy.search(items, "JAVASCRIPT")
        misses = await strategy.search(items, "react")

        assert [r.id for r in hits] == [1]
        assert hits[0].search_score == 1.0
        assert hits[0].search_highlights["title"] == "<mark>JavaScript</mark> Debounce"
        assert misses == []

    @pytest.mark.asyncio
    async def test_non_title_match_scores_lower(self, config):
        items = [Snippet(id=1, title="Throttle", description="Like debounce but periodic")]
        results = await ExactStrategy(config).search(items, "debounce")
        assert results[0].search_score == 0.5
        assert results[0].matched_fields == ["description"]

    @pytest.mark.asyncio
    async def test_case_sensitive_option(self, config):
        items = [Snippet(id=1, title="JavaScript Debounce")]
        strategy = ExactStrategy(config, SearchOptions(case_sensitive=True))

        assert await strategy.search(items, "JAVASCRIPT") == []
        assert len(await strategy.search(items, "JavaScript")) == 1

    @pytest.mark.asyncio
    async def test_whole_word_option(self, config):
        items = [Snippet(id=1, title="JavaScript Debounce")]
        strategy = ExactStrategy(config, SearchOptions(whole_word=True))

        assert await strategy.search(items, "java") == []
        assert len(await strategy.search(items, "debounce")) == 1

    @pytest.mark.asyncio
    async def test_case_sensitive_highlights_only_exact_case(self, config):
        items = [Snippet(id=1, title="JavaScript javascript")]
        strategy = ExactStrategy(config, SearchOptions(case_sensitive=True))

        results = await strategy.search(items, "javascript")

        assert results[0].search_highlights == {"title": "JavaScript <mark>javascript</mark>"}

    @pytest.mark.asyncio
    async def test_whole_word_highlights_only_whole_words(self, config):
        items = [Snippet(id=1, title="java javascript", description="javascript only")]
        strategy = ExactStrategy(config, SearchOptions(whole_word=True))

        results = await strategy.search(items, "java")

        assert results[0].matched_fields == ["title"]
        assert results[0].search_highlights == {"title": "<mark>java</mark> javascript"}


class TestRegexStrategy:
    @pytest.mark.asyncio
    async def test_invalid_pattern_returns_empty(self, config, snippets):
        assert await RegexStrategy(config).search(snippets, "(unclosed") == []

    def test_compile_raises_invalid_pattern(self, config):
        with pytest.raises(InvalidPatternError) as exc_info:
            RegexStrategy(config).compile("(unclosed")
        assert exc_info.value.strategy_name == "regex"

    @pytest.mark.asyncio
    async def test_title_match_scores_high(self, config, snippets):
        results = await RegexStrategy(config).search(snippets, r"^go\b")
        assert [r.id for r in results] == [3]
        assert results[0].search_score == 1.0

    @pytest.mark.asyncio
    async def test_field_match_with_highlights(self, config):
        items = [Snippet(id=1, title="Loop", code="for i in range(10)")]
        results = await RegexStrategy(config).search(items, r"range\(\d+\)")

        assert results[0].search_score == 0.5
        assert results[0].matched_fields == ["code"]
        assert results[0].search_highlights == {"code": "for i in <mark>range(10)</mark>"}


class TestSemanticStrategy:
    @pytest.mark.asyncio
    async def test_synonym_lookup(self, config):
        strategy = SemanticStrategy(config)
        assert await strategy.get_synonyms("Function error") == [
            "method", "procedure", "routine", "exception", "bug", "issue",
        ]
        assert await strategy.expand_query("data") == "data information content value"
        assert await strategy.expand_query("vue") == "vue"

    @pytest.mark.asyncio
    async def test_finds_items_through_synonyms(self, config):
        items = [Snippet(id=1, title="Handle Exception")]

        plain = await FuzzyStrategy(config).search(items, "error")
        expanded = await SemanticStrategy(config).search(items, "error")

        assert plain == []
        assert [r.id for r in expanded] == [1]

    @pytest.mark.asyncio
    async def test_custom_synonyms(self, config):
        items = [Snippet(id=1, title="JavaScript Debounce")]
        strategy = SemanticStrategy(config, synonyms={"js": ["javascript"]})
        assert [r.id for r in await strategy.search(items, "js")] == [1]


class TestStrategyRegistry:
    def test_create_strategy_by_mode(self, config):
        assert isinstance(create_strategy(SearchMode.EXACT, config), ExactStrategy)
        assert isinstance(create_strategy("regex", config), RegexStrategy)
        assert isinstance(create_strategy("semantic", config), SemanticStrategy)

    def test_unknown_mode_falls_back_to_fuzzy(self, config):
        assert parse_mode("bogus") == SearchMode.FUZZY
        assert parse_mode(None) == SearchMode.FUZZY
        assert isinstance(create_strategy("bogus", config), FuzzyStrategy)

    def test_repr(self, config):
        assert repr(ExactStrategy(config)) == "ExactStrategy(mode='exact')"


class BrokenStrategy(MatchStrategy):
    @property
    def mode(self) -> SearchMode:
        return SearchMode.FUZZY

    async def search(self, items: Sequence[Snippet], query: str) -> List[SearchResultItem]:
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_search_safe_degrades_to_empty(config, snippets):
    assert await BrokenStrategy(config).search_safe(snippets, "vue") == []
