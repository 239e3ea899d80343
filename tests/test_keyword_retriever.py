"""
Tests for keyword retrieval.
"""

import pytest

from bookmark_search.core.models.search import SearchFilters
from bookmark_search.core.services.keyword_retriever import (
    DEFAULT_FIELD_WEIGHTS,
    KeywordRetriever,
    extract_query_terms,
    keyword_score,
)
from bookmark_search.infrastructure.storage.json_store import InMemoryBookmarkStore

from conftest import make_bookmark


def test_extract_query_terms_splits_on_punctuation():
    assert extract_query_terms("vue.js, react!") == ["vue", "js", "react"]
    assert extract_query_terms("  ...  ") == []


def test_exact_title_scores_higher_than_partial():
    exact = make_bookmark("b1", "React")
    partial = make_bookmark("b2", "Learning React today")

    assert keyword_score(exact, ["react"], DEFAULT_FIELD_WEIGHTS) > keyword_score(
        partial, ["react"], DEFAULT_FIELD_WEIGHTS
    )


def test_description_hits_are_capped():
    bookmark = make_bookmark("b1", "x", description="go go go go go go")
    score = keyword_score(bookmark, ["go"], {**DEFAULT_FIELD_WEIGHTS, "url": 0.0})
    assert score == pytest.approx(DEFAULT_FIELD_WEIGHTS["description"] * 3)


@pytest.mark.asyncio
async def test_search_normalizes_top_score_to_one(store):
    retriever = KeywordRetriever(store)

    result = await retriever.search("react")

    assert result.items
    assert result.items[0].score == pytest.approx(1.0)
    assert all(0 < item.score <= 1.0 for item in result.items)
    assert [i.score for i in result.items] == sorted(
        (i.score for i in result.items), reverse=True
    )


@pytest.mark.asyncio
async def test_search_skips_deleted_and_excluded(store):
    retriever = KeywordRetriever(store)

    result = await retriever.search("react", exclude_ids=["b1"])

    ids = [item.bookmark_id for item in result.items]
    assert "b1" not in ids
    assert "b6" not in ids
    assert "b2" in ids


@pytest.mark.asyncio
async def test_search_applies_filters(store):
    retriever = KeywordRetriever(store)

    result = await retriever.search("tutorial", filters=SearchFilters(time_range_days=7))

    assert {item.bookmark_id for item in result.items} == {"b1", "b3"}


@pytest.mark.asyncio
async def test_empty_query_returns_nothing(store):
    retriever = KeywordRetriever(store)

    result = await retriever.search("   ")

    assert result.items == []
    assert result.searched_count == 0


@pytest.mark.asyncio
async def test_searched_count_is_collection_size(store):
    retriever = KeywordRetriever(store)

    result = await retriever.search("nothing-matches-this")

    assert result.items == []
    assert result.searched_count == 5


@pytest.mark.asyncio
async def test_match_reason_names_title_terms_and_tags(store):
    retriever = KeywordRetriever(store)

    result = await retriever.search("hooks react")

    top = result.items[0]
    assert top.bookmark_id == "b1"
    assert "Title matches" in top.match_reason
    assert "Tags: react" in top.match_reason


@pytest.mark.asyncio
async def test_field_weight_override_changes_ranking():
    store = InMemoryBookmarkStore(
        [
            make_bookmark("title", "Rust book"),
            make_bookmark("tag", "Systems programming", tags=["rust"]),
        ]
    )
    retriever = KeywordRetriever(store)

    default = await retriever.search("rust")
    tags_heavy = await retriever.search("rust", field_weights={"title": 0.1, "url": 0.0})

    assert default.items[0].bookmark_id == "title"
    assert tags_heavy.items[0].bookmark_id == "tag"


@pytest.mark.asyncio
async def test_simple_search_is_plain_substring(store):
    retriever = KeywordRetriever(store)

    matches = await retriever.simple_search("asyncio")

    assert [b.id for b in matches] == ["b4"]
