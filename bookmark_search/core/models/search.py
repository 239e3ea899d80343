"""Search request and result models."""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

MIN_TOP_K = 1
MAX_TOP_K = 50
MAX_TIME_RANGE_DAYS = 36500


class Intent(str, Enum):
    """High-level purpose of a user utterance."""
    QUERY = "query"
    STATISTICS = "statistics"
    HELP = "help"


class QuerySubtype(str, Enum):
    """Which filter dimensions a query intent is using."""
    TIME = "time"
    CATEGORY = "category"
    TAG = "tag"
    SEMANTIC = "semantic"
    COMPOUND = "compound"


@dataclass(frozen=True)
class SearchFilters:
    """Additive constraints; an unset field means unconstrained."""
    category_id: Optional[str] = None
    tags_any: tuple[str, ...] = ()
    domain: Optional[str] = None
    time_range_days: Optional[int] = None
    semantic: Optional[bool] = None

    def populated_fields(self) -> list[str]:
        """Populated constraint fields (the semantic toggle is not a constraint)."""
        fields = []
        if self.category_id:
            fields.append("category_id")
        if self.tags_any:
            fields.append("tags_any")
        if self.domain:
            fields.append("domain")
        if self.time_range_days:
            fields.append("time_range_days")
        return fields

    def is_empty(self) -> bool:
        return not self.populated_fields()

    def update(self, other: "SearchFilters") -> "SearchFilters":
        """Return a copy where every populated field of ``other`` wins."""
        return replace(
            self,
            category_id=other.category_id or self.category_id,
            tags_any=other.tags_any or self.tags_any,
            domain=other.domain or self.domain,
            time_range_days=other.time_range_days or self.time_range_days,
            semantic=other.semantic if other.semantic is not None else self.semantic,
        )


def clamp_top_k(value: int) -> int:
    return max(MIN_TOP_K, min(MAX_TOP_K, int(value)))


def clamp_time_range(days: Optional[int]) -> Optional[int]:
    """Day window capped at MAX_TIME_RANGE_DAYS; None when absent or not positive."""
    if not days or days <= 0:
        return None
    return min(int(days), MAX_TIME_RANGE_DAYS)


@dataclass(frozen=True)
class SearchRequest:
    """Structured request produced by the query planner."""
    intent: Intent
    query: str
    refined_query: str
    filters: SearchFilters = field(default_factory=SearchFilters)
    top_k: int = 20
    query_subtype: Optional[QuerySubtype] = None
    follow_up: bool = False

    def __post_init__(self):
        object.__setattr__(self, "top_k", clamp_top_k(self.top_k))


@dataclass
class SearchResultItem:
    """Single ranked hit."""
    bookmark_id: str
    score: float
    keyword_score: Optional[float] = None
    semantic_score: Optional[float] = None
    match_reason: str = ""


@dataclass
class SearchResult:
    """Ranked hits plus which retrieval paths contributed."""
    items: list[SearchResultItem] = field(default_factory=list)
    total: int = 0
    used_keyword: bool = False
    used_semantic: bool = False

    @property
    def bookmark_ids(self) -> list[str]:
        return [item.bookmark_id for item in self.items]

    @property
    def has_more(self) -> bool:
        return self.total > len(self.items)


@dataclass
class KeywordSearchResult:
    items: list[SearchResultItem] = field(default_factory=list)
    searched_count: int = 0


@dataclass
class SemanticSearchResult:
    items: list[SearchResultItem] = field(default_factory=list)
    query_dimensions: int = 0
    searched_count: int = 0


@dataclass
class CoverageStats:
    """Share of live bookmarks with a current embedding."""
    total: int = 0
    with_embedding: int = 0
    coverage: int = 0  # percent, rounded


@dataclass
class SearchStats:
    semantic_available: bool
    embedding_coverage: CoverageStats
