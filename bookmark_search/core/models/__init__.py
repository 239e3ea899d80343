"""Domain models."""
from .bookmark import Bookmark, Category, Embedding
from .search import (
    CoverageStats,
    Intent,
    KeywordSearchResult,
    QuerySubtype,
    SearchFilters,
    SearchRequest,
    SearchResult,
    SearchResultItem,
    SearchStats,
    SemanticSearchResult,
)
from .chat import (
    ChatMessage,
    ChatSearchOutcome,
    ChatSearchResponse,
    ConversationState,
    Suggestion,
    SuggestionAction,
)

__all__ = [
    "Bookmark",
    "Category",
    "Embedding",
    "CoverageStats",
    "Intent",
    "KeywordSearchResult",
    "QuerySubtype",
    "SearchFilters",
    "SearchRequest",
    "SearchResult",
    "SearchResultItem",
    "SearchStats",
    "SemanticSearchResult",
    "ChatMessage",
    "ChatSearchOutcome",
    "ChatSearchResponse",
    "ConversationState",
    "Suggestion",
    "SuggestionAction",
]
