"""Hybrid retriever - concurrent keyword and semantic recall merged into one ranking."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..messages import t
from ..models.bookmark import Bookmark
from ..models.search import (
    KeywordSearchResult,
    SearchFilters,
    SearchResult,
    SearchResultItem,
    SearchStats,
    SemanticSearchResult,
)
from ..protocols.bookmark_store import BookmarkStoreProtocol
from ..strategies.filters import matches_filters
from ..strategies.scoring import FilterBoostStrategy, ScoringStrategy, TimeDecayStrategy
from .keyword_retriever import KeywordRetriever
from .semantic_retriever import SemanticRetriever

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HybridWeights:
    """Weights for combining and adjusting scores."""
    keyword: float = 0.4
    semantic: float = 0.6
    time_decay: float = 0.001
    filter_boost: float = 0.1


@dataclass
class _Candidate:
    keyword_score: float = 0.0
    semantic_score: float = 0.0
    reasons: list[str] = field(default_factory=list)


class HybridRetriever:
    """Keyword + semantic search with a single authoritative filter pass."""

    def __init__(
        self,
        keyword: KeywordRetriever,
        semantic: SemanticRetriever,
        store: BookmarkStoreProtocol,
        weights: Optional[HybridWeights] = None,
        strategies: list[ScoringStrategy] | None = None,
        language: str = "en",
    ):
        """Initialize hybrid retriever.

        Args:
            keyword: Keyword retriever.
            semantic: Semantic retriever.
            store: Bookmark store used to re-fetch merged candidates.
            weights: Default weights.
            strategies: Post-merge scoring strategies; built from the
                weights (time decay, filter boost) when omitted.
            language: Display language for match reasons.
        """
        self._keyword = keyword
        self._semantic = semantic
        self._store = store
        self._weights = weights or HybridWeights()
        self._strategies = strategies
        self._language = language

    def _strategies_for(self, weights: HybridWeights) -> list[ScoringStrategy]:
        if self._strategies is not None:
            return self._strategies
        return [
            TimeDecayStrategy(weights.time_decay),
            FilterBoostStrategy(weights.filter_boost),
        ]

    async def _semantic_branch(
        self, query: str, top_k: int, exclude_ids: list[str]
    ) -> SemanticSearchResult:
        """Run semantic search, treating any failure as unavailable for this call."""
        try:
            return await self._semantic.search(
                query, top_k=top_k, exclude_ids=exclude_ids
            )
        except Exception as e:
            logger.warning(f"Semantic search failed, continuing without it: {e}")
            return SemanticSearchResult()

    async def _empty_keyword(self) -> KeywordSearchResult:
        return KeywordSearchResult()

    async def _empty_semantic(self) -> SemanticSearchResult:
        return SemanticSearchResult()

    async def search(
        self,
        query: str,
        top_k: int = 20,
        filters: Optional[SearchFilters] = None,
        exclude_ids: Iterable[str] = (),
        weights: Optional[HybridWeights] = None,
        enable_semantic: bool = True,
        enable_keyword: bool = True,
    ) -> SearchResult:
        """Search bookmarks with keyword and semantic recall.

        Args:
            query: Search text.
            top_k: Max results.
            filters: Filters; re-checked on every merged candidate.
            exclude_ids: Bookmark ids to skip.
            weights: Override default weights for this call.
            enable_semantic: Allow the semantic path.
            enable_keyword: Allow the keyword path.

        Returns:
            Merged ranking and which paths contributed.
        """
        weights = weights or self._weights
        exclude_ids = list(exclude_ids)
        use_semantic = enable_semantic and self._semantic.is_available()

        logger.info(
            f"Hybrid search: keyword={enable_keyword} semantic={use_semantic} "
            f"(requested={enable_semantic}) query='{query[:50]}'"
        )

        keyword_result, semantic_result = await asyncio.gather(
            self._keyword.search(
                query, top_k=top_k * 2, filters=filters, exclude_ids=exclude_ids
            )
            if enable_keyword
            else self._empty_keyword(),
            self._semantic_branch(query, top_k * 2, exclude_ids)
            if use_semantic
            else self._empty_semantic(),
        )

        used_keyword = bool(keyword_result.items)
        used_semantic = bool(semantic_result.items)

        candidates: dict[str, _Candidate] = {}
        for item in keyword_result.items:
            candidates[item.bookmark_id] = _Candidate(
                keyword_score=item.keyword_score or item.score,
                reasons=[item.match_reason or t("match_keyword", self._language)],
            )
        for item in semantic_result.items:
            candidate = candidates.setdefault(item.bookmark_id, _Candidate())
            candidate.semantic_score = item.semantic_score or item.score
            candidate.reasons.append(item.match_reason)

        bookmarks = await self._fetch(candidates)

        items = []
        for bookmark_id, candidate in candidates.items():
            bookmark = bookmarks.get(bookmark_id)
            if bookmark is None or not matches_filters(bookmark, filters):
                continue
            items.append(
                SearchResultItem(
                    bookmark_id=bookmark_id,
                    score=candidate.keyword_score * weights.keyword
                    + candidate.semantic_score * weights.semantic,
                    keyword_score=candidate.keyword_score,
                    semantic_score=candidate.semantic_score,
                    match_reason="; ".join(r for r in candidate.reasons if r),
                )
            )

        items = self._rank(items, bookmarks, filters, weights)

        logger.debug(
            f"Hybrid search: keyword={len(keyword_result.items)} "
            f"semantic={len(semantic_result.items)} merged={len(items)}"
        )

        return SearchResult(
            items=items[:top_k],
            total=len(items),
            used_keyword=used_keyword,
            used_semantic=used_semantic,
        )

    async def search_keyword_only(self, query: str, **options) -> SearchResult:
        """Hybrid search with only the keyword path."""
        return await self.search(
            query, enable_keyword=True, enable_semantic=False, **options
        )

    async def search_semantic_only(self, query: str, **options) -> SearchResult:
        """Hybrid search with only the semantic path."""
        return await self.search(
            query, enable_keyword=False, enable_semantic=True, **options
        )

    async def browse(
        self,
        filters: Optional[SearchFilters] = None,
        top_k: int = 20,
        exclude_ids: Iterable[str] = (),
        weights: Optional[HybridWeights] = None,
    ) -> SearchResult:
        """List bookmarks matching filters alone, most recent first.

        Used when there is no text to match. Neither retrieval path runs.
        """
        weights = weights or self._weights
        excluded = set(exclude_ids)
        bookmarks = {
            b.id: b
            for b in await self._store.get_bookmarks()
            if b.id not in excluded and matches_filters(b, filters)
        }
        items = [
            SearchResultItem(
                bookmark_id=bookmark_id,
                score=1.0,
                match_reason=t("match_filters", self._language),
            )
            for bookmark_id in bookmarks
        ]
        items = self._rank(items, bookmarks, filters, weights)

        logger.debug(f"Browse: {len(items)} bookmarks match {filters}")

        return SearchResult(items=items[:top_k], total=len(items))

    async def find_similar(self, bookmark_id: str, top_k: int = 10) -> SearchResult:
        """More-like-this listing for one bookmark."""
        similar = await self._semantic.find_similar(bookmark_id, top_k=top_k)
        return SearchResult(
            items=similar.items,
            total=len(similar.items),
            used_semantic=bool(similar.items),
        )

    def is_semantic_available(self) -> bool:
        return self._semantic.is_available()

    async def get_search_stats(self) -> SearchStats:
        """Semantic availability and embedding coverage."""
        return SearchStats(
            semantic_available=self.is_semantic_available(),
            embedding_coverage=await self._semantic.get_coverage_stats(),
        )

    async def _fetch(self, candidates: dict[str, _Candidate]) -> dict[str, Bookmark]:
        if not candidates:
            return {}
        bookmarks = await self._store.get_bookmarks(ids=list(candidates))
        return {b.id: b for b in bookmarks}

    def _rank(
        self,
        items: list[SearchResultItem],
        bookmarks: dict[str, Bookmark],
        filters: Optional[SearchFilters],
        weights: HybridWeights,
    ) -> list[SearchResultItem]:
        for strategy in self._strategies_for(weights):
            items = strategy.apply(items, bookmarks, filters)
        return sorted(items, key=lambda item: item.score, reverse=True)
