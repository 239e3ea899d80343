"""Bookmark store protocol for dependency injection."""
from typing import Iterable, Optional, Protocol, runtime_checkable

from ..models.bookmark import Bookmark, Category


@runtime_checkable
class BookmarkStoreProtocol(Protocol):
    """Protocol for the external bookmark store."""

    async def get_bookmarks(
        self,
        include_deleted: bool = False,
        ids: Optional[Iterable[str]] = None,
    ) -> list[Bookmark]:
        """Get bookmarks.

        Args:
            include_deleted: Include soft-deleted bookmarks.
            ids: Restrict to these ids (any order).

        Returns:
            Matching bookmarks.
        """
        ...

    async def get_categories(self) -> list[Category]:
        """Get all categories."""
        ...

    async def get_all_tags(self) -> list[str]:
        """Get distinct tags used by live bookmarks."""
        ...
