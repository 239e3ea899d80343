"""
Tests for dependency wiring.
"""

import json

import pytest

from bookmark_search.config.settings import Settings
from bookmark_search.container import Container, build_embedder, configure_container
from bookmark_search.core.protocols import (
    BookmarkStoreProtocol,
    EmbedderProtocol,
    StructuredLLMProtocol,
)
from bookmark_search.core.services import (
    ChatSearchAgent,
    ConversationSession,
    HybridRetriever,
    QueryPlanner,
)
from bookmark_search.infrastructure.embeddings.openai_embedder import OpenAIEmbedder
from bookmark_search.infrastructure.embeddings.sentence_transformer import (
    SentenceTransformerEmbedder,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    bookmarks = tmp_path / "bookmarks.json"
    bookmarks.write_text(
        json.dumps(
            {
                "bookmarks": [
                    {
                        "id": "1",
                        "url": "https://react.dev",
                        "title": "React docs",
                        "created_at": "2024-01-01T00:00:00Z",
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    return Settings(
        _env_file=None,
        ai_api_key="",
        embedding_enabled=False,
        embedding_provider="openai",
        language="en",
        bookmarks_path=str(bookmarks),
        embeddings_path=str(tmp_path / "embeddings.json"),
        planner_patterns_path=str(tmp_path / "planner_patterns.json"),
    )


def test_singletons_and_sessions(settings):
    container = configure_container(settings, Container())

    assert container.resolve(ChatSearchAgent) is container.resolve(ChatSearchAgent)
    assert container.resolve(HybridRetriever) is container.resolve(HybridRetriever)
    assert container.resolve(ConversationSession) is not container.resolve(ConversationSession)
    assert isinstance(container.resolve(EmbedderProtocol), EmbedderProtocol)
    assert isinstance(container.resolve(QueryPlanner), QueryPlanner)


def test_unknown_interface_raises():
    with pytest.raises(KeyError):
        Container().resolve(ChatSearchAgent)


def test_register_replaces_cached_singleton(settings):
    container = configure_container(settings, Container())
    container.resolve(StructuredLLMProtocol)

    container.register(StructuredLLMProtocol, lambda: None, singleton=True)

    assert container.resolve(StructuredLLMProtocol) is None


def test_embedder_is_picked_by_provider(settings):
    assert isinstance(build_embedder(settings), OpenAIEmbedder)

    local = settings.model_copy(update={"embedding_provider": "local"})
    embedder = build_embedder(local)
    assert isinstance(embedder, SentenceTransformerEmbedder)
    assert embedder.model_key == "local:intfloat/multilingual-e5-base:auto:v1"


@pytest.mark.asyncio
async def test_wired_session_answers_without_providers(settings):
    container = configure_container(settings, Container())
    session = container.resolve(ConversationSession)

    outcome = await session.send("react")

    store = container.resolve(BookmarkStoreProtocol)
    assert len(await store.get_bookmarks()) == 1
    assert [b.id for b in outcome.bookmarks] == ["1"]
    assert outcome.search_result.used_semantic is False
    assert outcome.response.answer == "Found 1 related bookmark: React docs"
