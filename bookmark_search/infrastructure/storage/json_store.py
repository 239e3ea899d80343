"""JSON-file backed bookmark and embedding stores held in memory."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from ...core.models.bookmark import Bookmark, Category, Embedding

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> datetime:
    """Accept epoch seconds, epoch milliseconds or ISO-8601; always UTC-aware."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    elif isinstance(value, str) and value:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _field(raw: dict, snake: str, camel: str, default: Any = None) -> Any:
    if snake in raw:
        return raw[snake]
    return raw.get(camel, default)


def bookmark_from_dict(raw: dict) -> Bookmark:
    created_at = parse_timestamp(_field(raw, "created_at", "createdAt"))
    updated = _field(raw, "updated_at", "updatedAt")
    return Bookmark(
        id=str(raw["id"]),
        url=raw.get("url", ""),
        title=raw.get("title", ""),
        created_at=created_at,
        updated_at=parse_timestamp(updated) if updated is not None else created_at,
        description=raw.get("description") or "",
        tags=list(raw.get("tags") or []),
        category_id=_field(raw, "category_id", "categoryId"),
        is_deleted=bool(_field(raw, "is_deleted", "isDeleted", False)),
    )


def category_from_dict(raw: dict) -> Category:
    return Category(
        id=str(raw["id"]),
        name=raw["name"],
        parent_id=_field(raw, "parent_id", "parentId"),
        order=int(raw.get("order", 0)),
    )


def embedding_from_dict(raw: dict) -> Embedding:
    return Embedding(
        bookmark_id=str(_field(raw, "bookmark_id", "bookmarkId")),
        model_key=_field(raw, "model_key", "modelKey"),
        vector=[float(x) for x in raw["vector"]],
        checksum=raw.get("checksum", ""),
    )


def _load_json(path: str) -> Optional[dict]:
    file = Path(path)
    if not file.exists():
        logger.warning(f"{path} not found, starting empty")
        return None
    with open(file, "r", encoding="utf-8") as f:
        return json.load(f)


class InMemoryBookmarkStore:
    """Bookmark store over a list held in memory."""

    def __init__(
        self,
        bookmarks: Iterable[Bookmark] = (),
        categories: Iterable[Category] = (),
    ):
        self._bookmarks = {b.id: b for b in bookmarks}
        self._categories = list(categories)

    @classmethod
    def from_json(cls, path: str) -> "InMemoryBookmarkStore":
        """Load ``{"bookmarks": [...], "categories": [...]}`` from a file."""
        data = _load_json(path) or {}
        store = cls(
            [bookmark_from_dict(b) for b in data.get("bookmarks", [])],
            [category_from_dict(c) for c in data.get("categories", [])],
        )
        logger.info(
            f"Loaded {len(store._bookmarks)} bookmarks and "
            f"{len(store._categories)} categories from {path}"
        )
        return store

    def add(self, bookmark: Bookmark) -> None:
        self._bookmarks[bookmark.id] = bookmark

    def add_category(self, category: Category) -> None:
        self._categories.append(category)

    async def get_bookmarks(
        self,
        include_deleted: bool = False,
        ids: Optional[Iterable[str]] = None,
    ) -> list[Bookmark]:
        if ids is None:
            bookmarks = list(self._bookmarks.values())
        else:
            bookmarks = [self._bookmarks[i] for i in ids if i in self._bookmarks]
        if include_deleted:
            return bookmarks
        return [b for b in bookmarks if not b.is_deleted]

    async def get_categories(self) -> list[Category]:
        return list(self._categories)

    async def get_all_tags(self) -> list[str]:
        tags: dict[str, None] = {}
        for bookmark in self._bookmarks.values():
            if bookmark.is_deleted:
                continue
            for tag in bookmark.tags:
                tags.setdefault(tag, None)
        return list(tags)


class InMemoryVectorStore:
    """Embeddings keyed by (bookmark id, model key)."""

    def __init__(self, embeddings: Iterable[Embedding] = ()):
        self._embeddings: dict[tuple[str, str], Embedding] = {}
        for embedding in embeddings:
            self.add(embedding)

    @classmethod
    def from_json(cls, path: str) -> "InMemoryVectorStore":
        """Load ``{"embeddings": [...]}`` from a file."""
        data = _load_json(path) or {}
        store = cls(embedding_from_dict(e) for e in data.get("embeddings", []))
        logger.info(f"Loaded {len(store._embeddings)} embeddings from {path}")
        return store

    def add(self, embedding: Embedding) -> None:
        self._embeddings[(embedding.bookmark_id, embedding.model_key)] = embedding

    async def get_embeddings_by_model(self, model_key: str) -> list[Embedding]:
        return [e for (_, key), e in self._embeddings.items() if key == model_key]

    async def get_embedding(
        self, bookmark_id: str, model_key: Optional[str] = None
    ) -> Optional[Embedding]:
        if model_key is not None:
            return self._embeddings.get((bookmark_id, model_key))
        for (owner, _), embedding in self._embeddings.items():
            if owner == bookmark_id:
                return embedding
        return None
