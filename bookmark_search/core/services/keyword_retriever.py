"""Keyword retriever - lexical matching with field-weighted scoring."""

import logging
import re
from typing import Iterable, Optional

from ..messages import t
from ..models.bookmark import Bookmark
from ..models.search import KeywordSearchResult, SearchFilters, SearchResultItem
from ..protocols.bookmark_store import BookmarkStoreProtocol
from ..strategies.filters import matches_filters

logger = logging.getLogger(__name__)

DEFAULT_FIELD_WEIGHTS = {
    "title": 3.0,
    "description": 1.5,
    "tags": 2.0,
    "url": 0.5,
}

MAX_DESCRIPTION_HITS = 3

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def extract_query_terms(query: str) -> list[str]:
    """Split a query into terms, treating punctuation as whitespace."""
    return _PUNCTUATION_RE.sub(" ", query).split()


def matches_query(bookmark: Bookmark, terms: list[str]) -> bool:
    """At least one term appears in title, description, url or tags."""
    searchable = " ".join(
        [bookmark.title, bookmark.description, bookmark.url, *bookmark.tags]
    ).lower()
    return any(term.lower() in searchable for term in terms)


def keyword_score(
    bookmark: Bookmark, terms: list[str], field_weights: dict[str, float]
) -> float:
    """Raw field-weighted score of a bookmark for the given terms."""
    score = 0.0
    terms = [term.lower() for term in terms]

    title = bookmark.title.lower()
    for term in terms:
        if term not in title:
            continue
        if title == term:
            score += field_weights["title"] * 2
        elif title.startswith(term) or title.endswith(term):
            score += field_weights["title"] * 1.5
        else:
            score += field_weights["title"]

    description = bookmark.description.lower()
    for term in terms:
        hits = description.count(term)
        if hits:
            score += field_weights["description"] * min(hits, MAX_DESCRIPTION_HITS)

    tags = [tag.lower() for tag in bookmark.tags]
    for term in terms:
        for tag in tags:
            if tag == term:
                score += field_weights["tags"] * 2
            elif term in tag:
                score += field_weights["tags"]

    url = bookmark.url.lower()
    for term in terms:
        if term in url:
            score += field_weights["url"]

    return score


class KeywordRetriever:
    """Keyword search over the bookmark store."""

    def __init__(
        self,
        store: BookmarkStoreProtocol,
        field_weights: Optional[dict[str, float]] = None,
        language: str = "en",
    ):
        """Initialize keyword retriever.

        Args:
            store: Bookmark store.
            field_weights: Per-field weights (title, description, tags, url).
            language: Display language for match reasons.
        """
        self._store = store
        self._field_weights = {**DEFAULT_FIELD_WEIGHTS, **(field_weights or {})}
        self._language = language

    async def search(
        self,
        query: str,
        top_k: int = 20,
        filters: Optional[SearchFilters] = None,
        exclude_ids: Iterable[str] = (),
        field_weights: Optional[dict[str, float]] = None,
    ) -> KeywordSearchResult:
        """Search bookmarks by keyword.

        Args:
            query: Search text.
            top_k: Max results.
            filters: Pre-filter (same predicate as the hybrid re-check).
            exclude_ids: Bookmark ids to skip.
            field_weights: Override per-field weights for this call.

        Returns:
            Normalized results (best = 1.0) and the scanned bookmark count.
        """
        terms = extract_query_terms(query)
        if not terms:
            return KeywordSearchResult(items=[], searched_count=0)

        weights = {**self._field_weights, **(field_weights or {})}
        excluded = set(exclude_ids)
        bookmarks = await self._store.get_bookmarks()

        logger.debug(
            f"Keyword search: terms={terms} bookmarks={len(bookmarks)}"
        )

        scored: list[tuple[Bookmark, float]] = []
        for bookmark in bookmarks:
            if bookmark.id in excluded:
                continue
            if not matches_filters(bookmark, filters):
                continue
            if not matches_query(bookmark, terms):
                continue
            score = keyword_score(bookmark, terms, weights)
            if score > 0:
                scored.append((bookmark, score))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        top = scored[:top_k]

        max_score = top[0][1] if top else 1.0
        items = [
            SearchResultItem(
                bookmark_id=bookmark.id,
                score=score / max_score,
                keyword_score=score / max_score,
                match_reason=self._match_reason(bookmark, terms),
            )
            for bookmark, score in top
        ]

        logger.debug(
            f"Keyword search: {len(items)} results from {len(bookmarks)} bookmarks"
        )

        return KeywordSearchResult(items=items, searched_count=len(bookmarks))

    async def simple_search(self, query: str, limit: int = 50) -> list[Bookmark]:
        """Unscored substring lookup over title, description, url and tags."""
        needle = query.strip().lower()
        if not needle:
            return []

        matches = []
        for bookmark in await self._store.get_bookmarks():
            searchable = " ".join(
                [bookmark.title, bookmark.description, bookmark.url, *bookmark.tags]
            ).lower()
            if needle in searchable:
                matches.append(bookmark)
                if len(matches) >= limit:
                    break
        return matches

    def _match_reason(self, bookmark: Bookmark, terms: list[str]) -> str:
        terms = [term.lower() for term in terms]
        reasons = []

        title = bookmark.title.lower()
        title_terms = [term for term in terms if term in title]
        if title_terms:
            reasons.append(
                t("match_title", self._language, terms=", ".join(title_terms))
            )

        tag_hits = [
            tag for tag in bookmark.tags if any(term in tag.lower() for term in terms)
        ]
        if tag_hits:
            reasons.append(t("match_tags", self._language, tags=", ".join(tag_hits)))

        return "; ".join(reasons) if reasons else t("match_keyword", self._language)
