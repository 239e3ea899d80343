import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)
        else:
            self._singleton_flags.discard(interface)
        self._singletons.pop(interface, None)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def build_embedder(settings: Settings):
    """Pick the embedder implementation for the configured provider."""
    from .infrastructure.embeddings.openai_embedder import OpenAIEmbedder
    from .infrastructure.embeddings.sentence_transformer import (
        SentenceTransformerEmbedder,
    )

    if settings.embedding_provider.lower() == "local":
        return SentenceTransformerEmbedder(
            model_name=settings.embedding_model,
            enabled=settings.embedding_enabled,
            dimensions=settings.embedding_dimensions,
        )
    return OpenAIEmbedder(
        provider=settings.embedding_provider,
        enabled=settings.embedding_enabled,
        api_key=settings.embedding_api_key,
        base_url=settings.embedding_base_url,
        model=settings.embedding_model,
        dimensions=settings.embedding_dimensions,
        timeout=settings.llm_timeout,
    )


def configure_container(settings: Settings, target: Container | None = None) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.
        target: Container to fill; the module-level one when omitted.

    Returns:
        Configured container.
    """
    from .core.protocols.bookmark_store import BookmarkStoreProtocol
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.llm import StructuredLLMProtocol
    from .core.protocols.vector_store import VectorStoreProtocol
    from .core.services.chat_search_agent import ChatSearchAgent
    from .core.services.conversation_session import ConversationSession
    from .core.services.hybrid_retriever import HybridRetriever, HybridWeights
    from .core.services.keyword_retriever import KeywordRetriever
    from .core.services.patterns import load_pattern_table
    from .core.services.query_planner import QueryPlanner
    from .core.services.semantic_retriever import SemanticRetriever
    from .infrastructure.llm.openai_client import OpenAICompatibleClient
    from .infrastructure.storage.json_store import (
        InMemoryBookmarkStore,
        InMemoryVectorStore,
    )

    c = target if target is not None else container

    c.register(
        BookmarkStoreProtocol,
        lambda: InMemoryBookmarkStore.from_json(settings.bookmarks_path),
        singleton=True,
    )

    c.register(
        VectorStoreProtocol,
        lambda: InMemoryVectorStore.from_json(settings.embeddings_path),
        singleton=True,
    )

    c.register(EmbedderProtocol, lambda: build_embedder(settings), singleton=True)

    c.register(
        StructuredLLMProtocol,
        lambda: OpenAICompatibleClient(
            provider=settings.ai_provider,
            api_key=settings.ai_api_key,
            base_url=settings.ai_base_url,
            model=settings.ai_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        ),
        singleton=True,
    )

    c.register(
        KeywordRetriever,
        lambda: KeywordRetriever(
            store=c.resolve(BookmarkStoreProtocol),
            field_weights={
                "title": settings.keyword_title_weight,
                "description": settings.keyword_description_weight,
                "tags": settings.keyword_tags_weight,
                "url": settings.keyword_url_weight,
            },
            language=settings.language,
        ),
        singleton=True,
    )

    c.register(
        SemanticRetriever,
        lambda: SemanticRetriever(
            embedder=c.resolve(EmbedderProtocol),
            vector_store=c.resolve(VectorStoreProtocol),
            store=c.resolve(BookmarkStoreProtocol),
            min_score=settings.semantic_min_score,
            similar_min_score=settings.similar_min_score,
            language=settings.language,
        ),
        singleton=True,
    )

    c.register(
        HybridRetriever,
        lambda: HybridRetriever(
            keyword=c.resolve(KeywordRetriever),
            semantic=c.resolve(SemanticRetriever),
            store=c.resolve(BookmarkStoreProtocol),
            weights=HybridWeights(
                keyword=settings.hybrid_keyword_weight,
                semantic=settings.hybrid_semantic_weight,
                time_decay=settings.hybrid_time_decay,
                filter_boost=settings.hybrid_filter_boost,
            ),
            language=settings.language,
        ),
        singleton=True,
    )

    c.register(
        QueryPlanner,
        lambda: QueryPlanner(
            llm=c.resolve(StructuredLLMProtocol),
            patterns=load_pattern_table(settings.planner_patterns_path),
            language=settings.language,
            default_top_k=settings.search_top_k,
            temperature=settings.llm_temperature,
        ),
        singleton=True,
    )

    c.register(
        ChatSearchAgent,
        lambda: ChatSearchAgent(
            store=c.resolve(BookmarkStoreProtocol),
            planner=c.resolve(QueryPlanner),
            retriever=c.resolve(HybridRetriever),
            llm=c.resolve(StructuredLLMProtocol),
            language=settings.language,
            max_turns=settings.max_short_memory_turns,
            temperature=settings.answer_temperature,
            max_tokens=settings.llm_max_tokens,
        ),
        singleton=True,
    )

    # One session per conversation.
    c.register(
        ConversationSession,
        lambda: ConversationSession(agent=c.resolve(ChatSearchAgent)),
    )

    logger.info("Container configured")
    return c
