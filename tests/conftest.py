"""
Pytest configuration and fixtures for bookmark search tests.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from bookmark_search.core.models.bookmark import Bookmark, Category, Embedding
from bookmark_search.infrastructure.storage.json_store import (
    InMemoryBookmarkStore,
    InMemoryVectorStore,
)

NOW = datetime.now(timezone.utc)
MODEL_KEY = "openai:text-embedding-3-small:auto:v1"


def make_bookmark(
    bookmark_id: str,
    title: str,
    url: str = "https://example.com",
    days_ago: float = 1,
    description: str = "",
    tags: list[str] | None = None,
    category_id: str | None = None,
    is_deleted: bool = False,
) -> Bookmark:
    """Create a test bookmark saved ``days_ago`` days before now."""
    created = NOW - timedelta(days=days_ago)
    return Bookmark(
        id=bookmark_id,
        url=url,
        title=title,
        created_at=created,
        updated_at=created,
        description=description,
        tags=tags or [],
        category_id=category_id,
        is_deleted=is_deleted,
    )


class FakeEmbedder:
    """Embedder returning canned vectors per text."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        enabled: bool = True,
        supported: bool = True,
        credentials: bool = True,
        model_key: str = MODEL_KEY,
        error: Exception | None = None,
    ):
        self.provider = "openai"
        self.vectors = vectors or {}
        self.enabled = enabled
        self.supported = supported
        self.credentials = credentials
        self._model_key = model_key
        self.error = error
        self.calls: list[str] = []

    @property
    def model_key(self) -> str:
        return self._model_key

    def is_enabled(self) -> bool:
        return self.enabled

    def is_provider_supported(self) -> bool:
        return self.supported

    def has_credentials(self) -> bool:
        return self.credentials

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.vectors.get(text, [0.0, 0.0, 1.0])


def make_llm(configured: bool = True, result=None, error: Exception | None = None):
    """Structured LLM double; ``generate_object`` is an AsyncMock."""
    llm = MagicMock()
    llm.is_configured.return_value = configured
    llm.generate_object = AsyncMock(return_value=result, side_effect=error)
    return llm


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category("c-dev", "Development"),
        Category("c-fe", "Frontend"),
        Category("c-news", "News"),
    ]


@pytest.fixture
def bookmarks() -> list[Bookmark]:
    return [
        make_bookmark(
            "b1",
            "React Hooks tutorial",
            "https://react.dev/learn/hooks",
            days_ago=2,
            description="Learn useState and useEffect",
            tags=["react", "javascript"],
            category_id="c-fe",
        ),
        make_bookmark(
            "b2",
            "React Router tutorial",
            "https://reactrouter.com/tutorial",
            days_ago=40,
            tags=["react"],
            category_id="c-fe",
        ),
        make_bookmark(
            "b3",
            "Vue.js tutorial",
            "https://vuejs.org/tutorial",
            days_ago=3,
            tags=["vue", "javascript"],
            category_id="c-fe",
        ),
        make_bookmark(
            "b4",
            "Python asyncio docs",
            "https://docs.python.org/3/library/asyncio.html",
            days_ago=0.5,
            tags=["python"],
            category_id="c-dev",
        ),
        make_bookmark(
            "b5",
            "Hacker News",
            "https://news.ycombinator.com",
            days_ago=10,
            tags=["news"],
            category_id="c-news",
        ),
        make_bookmark(
            "b6",
            "Old React class components",
            "https://legacy.reactjs.org/docs",
            days_ago=5,
            tags=["react"],
            is_deleted=True,
        ),
    ]


@pytest.fixture
def store(bookmarks, categories) -> InMemoryBookmarkStore:
    return InMemoryBookmarkStore(bookmarks, categories)


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(
        [
            Embedding("b1", MODEL_KEY, [1.0, 0.0, 0.0]),
            Embedding("b2", MODEL_KEY, [0.9, 0.1, 0.0]),
            Embedding("b3", MODEL_KEY, [0.0, 1.0, 0.0]),
            Embedding("b4", MODEL_KEY, [0.0, 0.0, 1.0]),
            Embedding("b5", "other:model:auto:v1", [1.0, 0.0, 0.0]),
        ]
    )
