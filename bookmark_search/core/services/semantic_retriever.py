"""Semantic retriever - cosine similarity over stored embeddings."""

import logging
from typing import Iterable, Optional

import numpy as np

from ..messages import t
from ..models.bookmark import Embedding
from ..models.search import CoverageStats, SearchResultItem, SemanticSearchResult
from ..protocols.bookmark_store import BookmarkStoreProtocol
from ..protocols.embedder import EmbedderProtocol
from ..protocols.vector_store import VectorStoreProtocol

logger = logging.getLogger(__name__)


def cosine_similarity(a, b) -> float:
    """Cosine similarity in [-1, 1]; 0 when either vector has zero norm."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Vector dimensions do not match: {a.shape} vs {b.shape}")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


class SemanticRetriever:
    """Vector search over bookmark embeddings for the active model."""

    def __init__(
        self,
        embedder: EmbedderProtocol,
        vector_store: VectorStoreProtocol,
        store: BookmarkStoreProtocol,
        min_score: float = 0.3,
        similar_min_score: float = 0.5,
        language: str = "en",
    ):
        """Initialize semantic retriever.

        Args:
            embedder: Query embedding service.
            vector_store: Stored bookmark embeddings.
            store: Bookmark store (coverage statistics).
            min_score: Default similarity threshold for search.
            similar_min_score: Default similarity threshold for find_similar.
            language: Display language for match reasons.
        """
        self._embedder = embedder
        self._vector_store = vector_store
        self._store = store
        self._min_score = min_score
        self._similar_min_score = similar_min_score
        self._language = language

    def unavailable_reason(self) -> Optional[str]:
        """Why semantic search cannot run, or None when it can."""
        if not self._embedder.is_enabled():
            return "Embedding not enabled in settings"
        if not self._embedder.is_provider_supported():
            return f"Provider {self._embedder.provider} does not support embedding"
        if not self._embedder.has_credentials():
            return "API key not configured"
        return None

    def is_available(self) -> bool:
        """Check whether semantic search can run."""
        reason = self.unavailable_reason()
        if reason:
            logger.info(f"Semantic retriever not available: {reason}")
            return False
        return True

    async def search(
        self,
        query: str,
        top_k: int = 20,
        min_score: Optional[float] = None,
        exclude_ids: Iterable[str] = (),
        filter_ids: Optional[Iterable[str]] = None,
    ) -> SemanticSearchResult:
        """Search bookmarks by meaning.

        Args:
            query: Search text.
            top_k: Max results.
            min_score: Similarity threshold.
            exclude_ids: Bookmark ids to skip.
            filter_ids: Restrict the search to these ids.

        Returns:
            Results sorted by similarity. Empty with ``query_dimensions == 0``
            when semantic search is unavailable.

        Raises:
            EmbeddingError: The query text could not be embedded.
        """
        if not self.is_available():
            return SemanticSearchResult()

        min_score = self._min_score if min_score is None else min_score
        query_vector = await self._embedder.embed(query)
        model_key = self._embedder.model_key
        embeddings = await self._vector_store.get_embeddings_by_model(model_key)

        if not embeddings:
            logger.warning(f"No embeddings found for model {model_key}")

        if filter_ids is not None:
            allowed = set(filter_ids)
            embeddings = [e for e in embeddings if e.bookmark_id in allowed]

        excluded = set(exclude_ids)
        if excluded:
            embeddings = [e for e in embeddings if e.bookmark_id not in excluded]

        dims = len(query_vector)
        scores = self._score(query_vector, embeddings, min_score)
        items = [
            SearchResultItem(
                bookmark_id=bookmark_id,
                score=score,
                semantic_score=score,
                match_reason=t("match_semantic", self._language, percent=f"{score * 100:.1f}"),
            )
            for bookmark_id, score in scores[:top_k]
        ]

        logger.debug(
            f"Semantic search: {len(items)} results from {len(embeddings)} "
            f"embeddings (model={model_key}, dims={dims})"
        )

        return SemanticSearchResult(
            items=items, query_dimensions=dims, searched_count=len(embeddings)
        )

    async def find_similar(
        self,
        bookmark_id: str,
        top_k: int = 10,
        min_score: Optional[float] = None,
        exclude_ids: Iterable[str] = (),
    ) -> SemanticSearchResult:
        """Find bookmarks similar to a stored one (never the bookmark itself)."""
        min_score = self._similar_min_score if min_score is None else min_score

        target = await self._vector_store.get_embedding(
            bookmark_id, self._embedder.model_key
        )
        if target is None:
            target = await self._vector_store.get_embedding(bookmark_id)
        if target is None:
            logger.warning(f"Bookmark embedding not found: {bookmark_id}")
            return SemanticSearchResult()

        excluded = {bookmark_id, *exclude_ids}
        embeddings = [
            e
            for e in await self._vector_store.get_embeddings_by_model(target.model_key)
            if e.bookmark_id not in excluded
        ]

        scores = self._score(target.vector, embeddings, min_score)
        items = [
            SearchResultItem(
                bookmark_id=other_id,
                score=score,
                semantic_score=score,
                match_reason=t("match_similar", self._language, percent=f"{score * 100:.1f}"),
            )
            for other_id, score in scores[:top_k]
        ]

        return SemanticSearchResult(
            items=items, query_dimensions=target.dim, searched_count=len(embeddings)
        )

    async def get_coverage_stats(self) -> CoverageStats:
        """Share of live bookmarks holding a current embedding."""
        bookmarks = await self._store.get_bookmarks()
        if not bookmarks:
            return CoverageStats()

        current = {
            e.bookmark_id: e
            for e in await self._vector_store.get_embeddings_by_model(
                self._embedder.model_key
            )
        }
        with_embedding = 0
        for bookmark in bookmarks:
            embedding = current.get(bookmark.id)
            if embedding is None:
                continue
            if embedding.checksum and embedding.checksum != bookmark.content_checksum():
                continue
            with_embedding += 1

        return CoverageStats(
            total=len(bookmarks),
            with_embedding=with_embedding,
            coverage=round(with_embedding / len(bookmarks) * 100),
        )

    def _score(
        self, query_vector, embeddings: list[Embedding], min_score: float
    ) -> list[tuple[str, float]]:
        """Score embeddings against a vector, skipping dimension mismatches."""
        dims = len(query_vector)
        scores = []
        for embedding in embeddings:
            if embedding.dim != dims:
                logger.warning(
                    f"Dimension mismatch for {embedding.bookmark_id}: "
                    f"{embedding.dim} != {dims}"
                )
                continue
            score = cosine_similarity(query_vector, embedding.vector)
            if score >= min_score:
                scores.append((embedding.bookmark_id, score))

        scores.sort(key=lambda pair: pair[1], reverse=True)
        return scores
