"""Tests for search history, popular queries and suggestions."""

from snipsearch.core.history import (
    HISTORY_STORAGE_KEY,
    PopularQueries,
    SearchHistory,
    generate_suggestions,
)
from snipsearch.core.schemas import Snippet
from snipsearch.core.storage import MemoryKeyValueStore


class TestSearchHistory:
    def test_most_recent_first_without_duplicates(self):
        history = SearchHistory()
        for query in ["foo", "bar", "foo"]:
            history.add(query)
        assert history.items() == ["foo", "bar"]

    def test_bounded(self):
        history = SearchHistory(max_size=2)
        for query in ["a", "b", "c"]:
            history.add(query)
        assert history.items() == ["c", "b"]
        assert len(history) == 2

    def test_blank_queries_are_ignored(self):
        history = SearchHistory()
        assert history.add("   ") is False
        assert history.add("") is False
        assert len(history) == 0

    def test_persisted_through_store(self):
        store = MemoryKeyValueStore()
        SearchHistory(store=store).add("vue data")

        restored = SearchHistory(store=store)
        assert "vue data" in restored
        assert store.get(HISTORY_STORAGE_KEY) == ["vue data"]

    def test_malformed_stored_history_is_ignored(self):
        store = MemoryKeyValueStore({HISTORY_STORAGE_KEY: "not a list"})
        assert SearchHistory(store=store).items() == []

    def test_clear(self):
        store = MemoryKeyValueStore()
        history = SearchHistory(store=store)
        history.add("foo")
        history.clear()
        assert history.items() == []
        assert store.get(HISTORY_STORAGE_KEY) is None


class TestPopularQueries:
    def test_ranked_by_count(self, clock):
        popular = PopularQueries(clock=clock)
        popular.record("b", 1, 1.0)
        popular.record("a", 1, 1.0)
        popular.record("a", 1, 1.0)
        assert popular.queries() == ["a", "b"]

    def test_ties_keep_first_seen_order(self, clock):
        popular = PopularQueries(clock=clock)
        for query in ["x", "y", "z"]:
            popular.record(query, 0, 0.0)
        assert popular.queries() == ["x", "y", "z"]

    def test_running_averages_and_last_used(self, clock):
        popular = PopularQueries(clock=clock)
        popular.record("a", 10, 2.0)
        clock.advance(5)
        entry = popular.record("a", 20, 4.0)

        assert entry.count == 2
        assert entry.average_results == 15.0
        assert entry.average_time == 3.0
        assert entry.last_used == clock.now

    def test_truncated_to_limit(self, clock):
        popular = PopularQueries(limit=2, clock=clock)
        for query in ["a", "b", "c"]:
            popular.record(query, 0, 0.0)
        assert len(popular) == 2

    def test_items_are_copies(self, clock):
        popular = PopularQueries(clock=clock)
        popular.record("a", 1, 1.0)
        popular.items()[0].count = 99
        assert popular.items()[0].count == 1


class TestSuggestions:
    def test_sources_in_order_without_duplicates(self):
        items = [Snippet(id=1, title="Vue Reactive Data", tags=["vue", "reactivity"])]

        suggestions = generate_suggestions(
            "vu",
            history=["vue data", "react hooks"],
            popular=["vue data", "vue router"],
            items=items,
        )

        assert suggestions == ["vue data", "vue router", "Vue Reactive Data", "vue"]

    def test_short_queries_get_nothing(self):
        assert generate_suggestions("v", history=["vue"]) == []
        assert generate_suggestions("", history=["vue"]) == []

    def test_capped(self):
        history = [f"query {i}" for i in range(20)]
        assert len(generate_suggestions("query", history=history)) == 10
        assert generate_suggestions("query", history=history, limit=3) == ["query 0", "query 1", "query 2"]
