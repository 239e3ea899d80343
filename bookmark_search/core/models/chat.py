"""Chat domain models."""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from .bookmark import Bookmark
from .search import Intent, QuerySubtype, SearchFilters, SearchResult

DEFAULT_MAX_TURNS = 6


@dataclass(frozen=True)
class ChatMessage:
    """Chat message."""
    role: str  # "user" | "assistant"
    text: str


@dataclass(frozen=True)
class ConversationState:
    """Per-conversation retrieval state.

    Immutable: every turn produces a new value via ``dataclasses.replace``.
    """
    intent: Intent = Intent.QUERY
    query_subtype: Optional[QuerySubtype] = QuerySubtype.SEMANTIC
    query: str = ""
    refined_query: str = ""
    filters: SearchFilters = field(default_factory=SearchFilters)
    seen_bookmark_ids: tuple[str, ...] = ()
    short_memory: tuple[ChatMessage, ...] = ()
    long_memory_summary: Optional[str] = None

    def with_turn(
        self, user_text: str, assistant_text: str, max_turns: int = DEFAULT_MAX_TURNS
    ) -> "ConversationState":
        """Append a user/assistant pair, dropping the oldest entries past the cap."""
        memory = self.short_memory + (
            ChatMessage(role="user", text=user_text),
            ChatMessage(role="assistant", text=assistant_text),
        )
        limit = max_turns * 2
        if len(memory) > limit:
            memory = memory[-limit:]
        return replace(self, short_memory=memory)

    def with_seen(self, bookmark_ids: list[str]) -> "ConversationState":
        """Union newly shown ids into the seen set, keeping first-seen order."""
        seen = list(self.seen_bookmark_ids)
        known = set(seen)
        for bookmark_id in bookmark_ids:
            if bookmark_id not in known:
                known.add(bookmark_id)
                seen.append(bookmark_id)
        return replace(self, seen_bookmark_ids=tuple(seen))

    def to_list(self) -> list[dict]:
        """Short memory as role/content dicts for LLM prompts."""
        return [{"role": m.role, "content": m.text} for m in self.short_memory]


class SuggestionAction(str, Enum):
    """What the UI should do when a suggestion chip is picked."""
    TEXT = "text"
    SHOW_MORE = "show_more"
    TIME_FILTER = "time_filter"
    KEYWORD_ONLY = "keyword_only"
    SEMANTIC_ONLY = "semantic_only"
    DOMAIN_FILTER = "domain_filter"
    CATEGORY_FILTER = "category_filter"


@dataclass(frozen=True)
class Suggestion:
    label: str
    action: SuggestionAction = SuggestionAction.TEXT
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatSearchResponse:
    """Answer text, cited bookmark ids (``[n]`` order) and next steps."""
    answer: str
    sources: list[str] = field(default_factory=list)
    next_suggestions: list[Suggestion] = field(default_factory=list)


@dataclass
class ChatSearchOutcome:
    """Everything one conversational turn produces."""
    response: ChatSearchResponse
    bookmarks: list[Bookmark]
    search_result: SearchResult
    new_state: ConversationState
    stale: bool = False
