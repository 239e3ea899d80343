"""
Tests for hybrid retrieval.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from bookmark_search.core.exceptions import EmbeddingError
from bookmark_search.core.models.search import SearchFilters
from bookmark_search.core.services.hybrid_retriever import HybridRetriever, HybridWeights
from bookmark_search.core.services.keyword_retriever import KeywordRetriever
from bookmark_search.core.services.semantic_retriever import SemanticRetriever

from conftest import FakeEmbedder


def build(store, vector_store, embedder=None, **options) -> HybridRetriever:
    embedder = embedder or FakeEmbedder({"react": [1.0, 0.0, 0.0]})
    return HybridRetriever(
        KeywordRetriever(store),
        SemanticRetriever(embedder, vector_store, store),
        store,
        **options,
    )


@pytest.mark.asyncio
async def test_results_are_sorted_and_unique(store, vector_store):
    retriever = build(store, vector_store)

    result = await retriever.search("react")

    ids = result.bookmark_ids
    assert len(ids) == len(set(ids))
    scores = [item.score for item in result.items]
    assert scores == sorted(scores, reverse=True)
    assert result.used_keyword and result.used_semantic


@pytest.mark.asyncio
async def test_candidate_scores_combine_both_paths(store, vector_store):
    retriever = build(store, vector_store, strategies=[])

    result = await retriever.search("react")

    top = result.items[0]
    assert top.bookmark_id == "b1"
    assert top.keyword_score == pytest.approx(1.0)
    assert top.semantic_score == pytest.approx(1.0)
    assert top.score == pytest.approx(0.4 + 0.6)
    assert "Semantic similarity" in top.match_reason


@pytest.mark.asyncio
async def test_semantic_only_candidate_still_passes_filters(store, vector_store):
    # b2 matches semantically but is 40 days old.
    retriever = build(store, vector_store)

    result = await retriever.search("react", filters=SearchFilters(time_range_days=7))

    assert "b2" not in result.bookmark_ids
    assert "b1" in result.bookmark_ids


@pytest.mark.asyncio
async def test_excluded_ids_never_returned(store, vector_store):
    retriever = build(store, vector_store)

    result = await retriever.search("react", exclude_ids=["b1", "b2"])

    assert "b1" not in result.bookmark_ids
    assert "b2" not in result.bookmark_ids


@pytest.mark.asyncio
async def test_semantic_failure_falls_back_to_keyword(store, vector_store):
    embedder = FakeEmbedder(error=EmbeddingError("provider down"))
    retriever = build(store, vector_store, embedder=embedder)

    result = await retriever.search("react")

    assert result.items
    assert result.used_keyword is True
    assert result.used_semantic is False


@pytest.mark.asyncio
async def test_semantic_unavailable_uses_keyword_only(store, vector_store):
    embedder = FakeEmbedder(enabled=False)
    retriever = build(store, vector_store, embedder=embedder)

    result = await retriever.search("react")

    assert result.used_keyword is True
    assert result.used_semantic is False
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_disabling_semantic_skips_embedding(store, vector_store):
    embedder = FakeEmbedder({"react": [1.0, 0.0, 0.0]})
    retriever = build(store, vector_store, embedder=embedder)

    result = await retriever.search_keyword_only("react")

    assert embedder.calls == []
    assert result.used_semantic is False


@pytest.mark.asyncio
async def test_semantic_only_search(store, vector_store):
    retriever = build(store, vector_store)

    result = await retriever.search_semantic_only("react")

    assert result.used_keyword is False
    assert result.used_semantic is True
    assert all(item.keyword_score == 0.0 for item in result.items)


@pytest.mark.asyncio
async def test_both_paths_run_concurrently(store, vector_store):
    started = []
    release = asyncio.Event()

    class SlowEmbedder(FakeEmbedder):
        async def embed(self, text):
            started.append("semantic")
            await release.wait()
            return [1.0, 0.0, 0.0]

    keyword = KeywordRetriever(store)
    original = keyword.search

    async def keyword_search(*args, **kwargs):
        started.append("keyword")
        release.set()
        return await original(*args, **kwargs)

    keyword.search = keyword_search
    retriever = HybridRetriever(
        keyword, SemanticRetriever(SlowEmbedder(), vector_store, store), store
    )

    result = await asyncio.wait_for(retriever.search("react"), timeout=2)

    assert set(started) == {"keyword", "semantic"}
    assert result.used_semantic


@pytest.mark.asyncio
async def test_total_counts_filtered_survivors(store, vector_store):
    retriever = build(store, vector_store)

    result = await retriever.search("react", top_k=1)

    assert len(result.items) == 1
    assert result.total == 2
    assert result.has_more


@pytest.mark.asyncio
async def test_weights_override_per_call(store, vector_store):
    retriever = build(store, vector_store, strategies=[])

    result = await retriever.search(
        "react", weights=HybridWeights(keyword=1.0, semantic=0.0)
    )

    for item in result.items:
        assert item.score == pytest.approx(item.keyword_score)


@pytest.mark.asyncio
async def test_tag_filter_narrows_keyword_candidates(store, vector_store):
    retriever = build(store, vector_store)

    plain = await retriever.search("javascript", enable_semantic=False)
    boosted = await retriever.search(
        "javascript",
        enable_semantic=False,
        filters=SearchFilters(tags_any=("vue",)),
    )

    assert set(plain.bookmark_ids) == {"b1", "b3"}
    assert boosted.bookmark_ids == ["b3"]


@pytest.mark.asyncio
async def test_browse_lists_filtered_bookmarks_newest_first(store, vector_store):
    embedder = FakeEmbedder()
    retriever = build(store, vector_store, embedder=embedder)

    result = await retriever.browse(SearchFilters(category_id="c-fe"))

    assert result.bookmark_ids == ["b1", "b3", "b2"]
    assert not result.used_keyword and not result.used_semantic
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_find_similar_and_stats(store, vector_store):
    retriever = build(store, vector_store)

    similar = await retriever.find_similar("b1")
    stats = await retriever.get_search_stats()

    assert similar.bookmark_ids == ["b2"]
    assert stats.semantic_available is True
    assert stats.embedding_coverage.total == 5


@pytest.mark.asyncio
async def test_merged_candidates_are_fetched_once(store, vector_store):
    retriever = build(store, vector_store)
    store.get_bookmarks = AsyncMock(wraps=store.get_bookmarks)

    await retriever.search("react", enable_semantic=False)

    id_calls = [c for c in store.get_bookmarks.await_args_list if c.kwargs.get("ids")]
    assert len(id_calls) == 1
