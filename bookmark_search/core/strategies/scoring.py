import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from ..models.bookmark import Bookmark
from ..models.search import SearchFilters, SearchResultItem

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class ScoringStrategy(ABC):
    """Base class for post-merge scoring strategies."""

    @abstractmethod
    def apply(
        self,
        items: list[SearchResultItem],
        bookmarks: dict[str, Bookmark],
        filters: Optional[SearchFilters],
    ) -> list[SearchResultItem]:
        """Apply strategy to results.

        Args:
            items: Merged candidates.
            bookmarks: Records keyed by id; every item has one.
            filters: Filters used for the search.

        Returns:
            Candidates with adjusted scores.
        """
        ...


class TimeDecayStrategy(ScoringStrategy):
    """Gently favor recent bookmarks."""

    def __init__(self, decay_rate: float = 0.001, now: Optional[datetime] = None):
        """Initialize strategy.

        Args:
            decay_rate: Score fraction lost per day of age.
            now: Fixed reference time (defaults to the time of each call).
        """
        self._decay_rate = decay_rate
        self._now = now

    def factor(self, created_at: datetime) -> float:
        """Multiplier in [0.9, 1.0] for a creation time."""
        now = self._now or datetime.now(timezone.utc)
        days = max(0.0, (now - created_at).total_seconds() / SECONDS_PER_DAY)
        return 0.9 + 0.1 * max(0.0, 1 - days * self._decay_rate)

    def apply(self, items, bookmarks, filters):
        for item in items:
            item.score *= self.factor(bookmarks[item.bookmark_id].created_at)
        return items


class FilterBoostStrategy(ScoringStrategy):
    """Boost bookmarks that hit the requested category or tags."""

    def __init__(self, boost: float = 0.1):
        """Initialize strategy.

        Args:
            boost: Relative boost per matched filter dimension.
        """
        self._boost = boost

    def apply(self, items, bookmarks, filters):
        if filters is None or (not filters.category_id and not filters.tags_any):
            return items

        boosted = 0
        for item in items:
            bookmark = bookmarks[item.bookmark_id]
            hit = False
            if filters.category_id and bookmark.category_id == filters.category_id:
                item.score *= 1 + self._boost
                hit = True
            if filters.tags_any and any(tag in bookmark.tags for tag in filters.tags_any):
                item.score *= 1 + self._boost
                hit = True
            boosted += hit

        if boosted:
            logger.debug(f"Filter boost: {boosted}/{len(items)} items boosted")

        return items
