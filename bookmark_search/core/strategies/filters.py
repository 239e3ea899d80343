"""Filter predicate shared by every retrieval layer."""
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlparse

from ..models.bookmark import Bookmark
from ..models.search import SearchFilters


def matches_filters(
    bookmark: Bookmark,
    filters: Optional[SearchFilters],
    now: Optional[datetime] = None,
) -> bool:
    """Check a bookmark against search filters.

    Category is an exact match, tags match if any overlaps, domain is a
    substring of the hostname (unparsable urls never match) and the time
    range keeps bookmarks created within the last N days.

    Args:
        bookmark: Bookmark to check.
        filters: Filters; None means unconstrained.
        now: Reference time (defaults to current UTC time).

    Returns:
        True if the bookmark passes every populated filter.
    """
    if filters is None:
        return True

    if filters.category_id and bookmark.category_id != filters.category_id:
        return False

    if filters.tags_any and not any(tag in bookmark.tags for tag in filters.tags_any):
        return False

    if filters.domain:
        try:
            hostname = urlparse(bookmark.url).hostname
        except ValueError:
            return False
        if not hostname or filters.domain.lower() not in hostname:
            return False

    if filters.time_range_days:
        now = now or datetime.now(timezone.utc)
        try:
            cutoff = now - timedelta(days=filters.time_range_days)
        except OverflowError:
            # Window reaches before datetime.min: every bookmark is inside it.
            return True
        if bookmark.created_at < cutoff:
            return False

    return True
