"""Chat search agent - planner, hybrid retrieval and answer generation per turn."""

import logging
from collections import Counter
from dataclasses import dataclass, replace
from typing import Optional

from pydantic import BaseModel, Field

from ..messages import help_content, t
from ..models.bookmark import Bookmark, Category
from ..models.chat import (
    DEFAULT_MAX_TURNS,
    ChatSearchOutcome,
    ChatSearchResponse,
    ConversationState,
    Suggestion,
    SuggestionAction,
)
from ..models.search import (
    Intent,
    SearchFilters,
    SearchRequest,
    SearchResult,
    SearchResultItem,
)
from ..protocols.bookmark_store import BookmarkStoreProtocol
from ..protocols.llm import StructuredLLMProtocol
from ..strategies.filters import matches_filters
from .hybrid_retriever import HybridRetriever
from .query_planner import PlannerContext, QueryPlanner, derive_subtype

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 4
MIN_MODEL_SUGGESTIONS = 2
LARGE_RESULT_THRESHOLD = 20
FEW_RESULTS_THRESHOLD = 3
HIGH_SCORE_VARIANCE = 0.15
STATISTICS_DEFAULT_DAYS = 7
STATISTICS_LIMIT = 20
STATISTICS_TOP = 3
RULE_ANSWER_LIST_LIMIT = 5
DESCRIPTION_PREVIEW = 200

ANSWER_SYSTEM_PROMPTS = {
    "en": """You are a bookmark search assistant. Based on the user's query and the search results, write a concise answer.

## Rules
1. Only answer from the provided sources, never fabricate information
2. Results are provided, so describe them (even if relevance looks low), never say "no bookmarks found"
3. If relevance is low, say "Found some potentially related bookmarks" and describe them briefly
4. Keep answers brief (1-5 sentences)
5. Cite sources as [1], [2], etc.
6. Provide 2-4 short, actionable next step suggestions

## Suggestion ideas
- Narrow: "Only show last 30 days", "Only from XX domain", "In XX category"
- Expand: "Show more results", "Try similar keywords", "Use semantic search"

Respond with JSON: {"answer": "...", "next_suggestions": ["...", "..."]}""",
    "zh": """你是一个书签搜索助手。基于用户的查询和搜索结果，生成简洁的回答。

## 规则
1. 只基于提供的 sources 回答，不要编造信息
2. 已提供搜索结果，必须描述这些结果（即使相关性不高也要提及），不要说"未找到"
3. 如果结果相关性较低，可以说"找到了一些可能相关的书签"并简要介绍
4. 回答要简洁（1-5 句话）
5. 引用来源时使用格式 [1], [2] 等
6. 提供 2-4 个简短、可执行的下一步建议

## 建议示例
- 缩小范围："只看最近 30 天"、"只看 XX 网站"、"限定 XX 分类"
- 扩大范围："显示更多结果"、"尝试相近关键词"、"使用语义搜索"

以 JSON 格式回复：{"answer": "...", "next_suggestions": ["...", "..."]}""",
}


class AnswerOutput(BaseModel):
    """Structured answer requested from the model."""
    answer: str
    next_suggestions: list[str] = Field(default_factory=list)


@dataclass
class ResultAnalysis:
    """Shape of a result set used to pick refining suggestions."""
    count: int
    total: int
    score_variance: float = 0.0
    top_domain: Optional[str] = None
    top_category_id: Optional[str] = None
    used_keyword: bool = False
    used_semantic: bool = False


def analyze_results(bookmarks: list[Bookmark], result: SearchResult) -> ResultAnalysis:
    """Summarize shown bookmarks and their scores."""
    scores = [item.score for item in result.items]
    variance = 0.0
    if scores:
        mean = sum(scores) / len(scores)
        variance = sum((s - mean) ** 2 for s in scores) / len(scores)

    domains = Counter(b.domain for b in bookmarks)
    categories = Counter(b.category_id for b in bookmarks if b.category_id)

    return ResultAnalysis(
        count=len(bookmarks),
        total=result.total,
        score_variance=variance,
        top_domain=domains.most_common(1)[0][0] if domains else None,
        top_category_id=categories.most_common(1)[0][0] if categories else None,
        used_keyword=result.used_keyword,
        used_semantic=result.used_semantic,
    )


class ChatSearchAgent:
    """Conversational search over the bookmark collection."""

    def __init__(
        self,
        store: BookmarkStoreProtocol,
        planner: QueryPlanner,
        retriever: HybridRetriever,
        llm: Optional[StructuredLLMProtocol] = None,
        language: str = "en",
        max_turns: int = DEFAULT_MAX_TURNS,
        temperature: float = 0.3,
        max_tokens: int = 600,
    ):
        """Initialize chat search agent.

        Args:
            store: Bookmark store.
            planner: Query planner.
            retriever: Hybrid retriever.
            llm: Structured-output client for answers; rule-based when absent.
            language: Display language.
            max_turns: Round-trips kept in short memory.
            temperature: Sampling temperature for answers.
            max_tokens: Max tokens for answers.
        """
        self._store = store
        self._planner = planner
        self._retriever = retriever
        self._llm = llm
        self._language = language
        self._max_turns = max_turns
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._categories: dict[str, Category] = {}

    async def search(
        self, user_input: str, state: Optional[ConversationState] = None
    ) -> ChatSearchOutcome:
        """Run one conversational turn.

        Args:
            user_input: User text.
            state: Conversation state from the previous turn.

        Returns:
            Answer, bookmarks in rank order, raw search result and the new state.
        """
        return await self._turn(user_input, state or ConversationState())

    async def _turn(
        self,
        user_input: str,
        state: ConversationState,
        overrides: Optional[SearchFilters] = None,
    ) -> ChatSearchOutcome:
        self._categories = {c.id: c for c in await self._store.get_categories()}
        tags = await self._store.get_all_tags()

        request = await self._planner.parse(
            user_input,
            PlannerContext(
                categories=list(self._categories.values()),
                tags=tags,
                state=state if state.query else None,
            ),
        )

        logger.debug(
            f"Parsed request: intent={request.intent.value} "
            f"subtype={request.query_subtype}"
        )

        if request.intent == Intent.HELP:
            return self._handle_help(user_input, state)
        if request.intent == Intent.STATISTICS:
            return await self._handle_statistics(user_input, state, request)
        return await self._handle_query(user_input, state, request, overrides)

    async def continue_search(self, state: ConversationState) -> ChatSearchOutcome:
        """Show more results for the current query."""
        return await self.search(t("continue_query", self._language), state)

    async def apply_filter(
        self, filter_update: SearchFilters, state: ConversationState
    ) -> ChatSearchOutcome:
        """Narrow the current query with extra filters and restart pagination."""
        updated = replace(
            state,
            filters=state.filters.update(filter_update),
            seen_bookmark_ids=(),
        )

        prefix = ""
        if filter_update.time_range_days:
            prefix += t("prefix_time", self._language, days=filter_update.time_range_days)
        if filter_update.category_id:
            prefix += t("prefix_category", self._language)

        # The update wins over filter phrases still present in the re-parsed query.
        return await self._turn(f"{prefix}{state.query}", updated, filter_update)

    def _handle_help(
        self, user_input: str, state: ConversationState
    ) -> ChatSearchOutcome:
        topic = self._planner.patterns.help_topic(user_input) or "default"
        content = help_content(topic, self._language)

        response = ChatSearchResponse(
            answer=content["answer"],
            next_suggestions=[Suggestion(label) for label in content["suggestions"]],
        )
        new_state = replace(state, intent=Intent.HELP).with_turn(
            user_input, response.answer, self._max_turns
        )

        logger.info(f"Help topic: {topic}")
        return ChatSearchOutcome(
            response=response,
            bookmarks=[],
            search_result=SearchResult(),
            new_state=new_state,
        )

    async def _handle_statistics(
        self, user_input: str, state: ConversationState, request: SearchRequest
    ) -> ChatSearchOutcome:
        days = request.filters.time_range_days or STATISTICS_DEFAULT_DAYS
        window = SearchFilters(time_range_days=days)
        bookmarks = sorted(
            (b for b in await self._store.get_bookmarks() if matches_filters(b, window)),
            key=lambda b: b.created_at,
            reverse=True,
        )
        shown = bookmarks[:STATISTICS_LIMIT]

        response = self._statistics_answer(bookmarks, days)
        new_state = (
            replace(state, intent=Intent.STATISTICS)
            .with_turn(user_input, response.answer, self._max_turns)
            .with_seen([b.id for b in shown])
        )

        logger.info(f"Statistics: {len(bookmarks)} bookmarks in {days} days")
        return ChatSearchOutcome(
            response=response,
            bookmarks=shown,
            search_result=SearchResult(
                items=[SearchResultItem(bookmark_id=b.id, score=1.0) for b in shown],
                total=len(bookmarks),
            ),
            new_state=new_state,
        )

    def _statistics_answer(
        self, bookmarks: list[Bookmark], days: int
    ) -> ChatSearchResponse:
        lang = self._language
        if days == 1:
            period = t("stats_yesterday", lang)
        elif days <= 7:
            period = t("stats_week", lang)
        else:
            period = t("stats_days", lang, days=days)

        if not bookmarks:
            return ChatSearchResponse(
                answer=t("stats_empty", lang, period=period),
                next_suggestions=[Suggestion(t("suggest_widen_time", lang))],
            )

        by_category = Counter(self._category_name(b.category_id) for b in bookmarks)
        by_domain = Counter(b.domain for b in bookmarks)

        lines = [t("stats_total", lang, period=period, total=len(bookmarks)), ""]
        lines.append(t("stats_by_category", lang))
        lines += [
            t("stats_line", lang, name=name, count=count)
            for name, count in by_category.most_common(STATISTICS_TOP)
        ]
        lines.append("")
        lines.append(t("stats_top_sites", lang))
        lines += [
            t("stats_line", lang, name=domain, count=count)
            for domain, count in by_domain.most_common(STATISTICS_TOP)
        ]

        return ChatSearchResponse(
            answer="\n".join(lines),
            sources=[b.id for b in bookmarks[:10]],
            next_suggestions=[
                Suggestion(t("suggest_view_list", lang), SuggestionAction.SHOW_MORE),
                Suggestion(t("suggest_filter_category", lang)),
                Suggestion(
                    t("suggest_monthly_stats", lang),
                    SuggestionAction.TIME_FILTER,
                    {"days": 30},
                ),
            ],
        )

    async def _handle_query(
        self,
        user_input: str,
        state: ConversationState,
        request: SearchRequest,
        overrides: Optional[SearchFilters] = None,
    ) -> ChatSearchOutcome:
        merged = self._planner.merge_with_state(request, state)
        if overrides is not None:
            filters = merged.filters.update(overrides)
            merged = replace(merged, filters=filters, query_subtype=derive_subtype(filters))

        if merged.refined_query:
            enable_semantic = merged.filters.semantic is not False
            logger.info(
                f"Semantic decision: requested={merged.filters.semantic} "
                f"enabled={enable_semantic} refined='{merged.refined_query[:50]}'"
            )
            result = await self._retriever.search(
                merged.refined_query,
                top_k=merged.top_k,
                filters=merged.filters,
                exclude_ids=state.seen_bookmark_ids,
                enable_semantic=enable_semantic,
            )
        else:
            result = await self._retriever.browse(
                merged.filters,
                top_k=merged.top_k,
                exclude_ids=state.seen_bookmark_ids,
            )

        bookmarks = await self._resolve(result.bookmark_ids)
        response = await self._generate_answer(merged, bookmarks, result, state)

        new_state = replace(
            state,
            intent=merged.intent,
            query_subtype=merged.query_subtype,
            query=merged.query,
            refined_query=merged.refined_query,
            filters=merged.filters,
        )
        new_state = new_state.with_turn(
            user_input, response.answer, self._max_turns
        ).with_seen([b.id for b in bookmarks])

        return ChatSearchOutcome(
            response=response,
            bookmarks=bookmarks,
            search_result=result,
            new_state=new_state,
        )

    async def _resolve(self, ids: list[str]) -> list[Bookmark]:
        """Fetch records for ids, keeping rank order and dropping missing ones."""
        if not ids:
            return []
        records = {b.id: b for b in await self._store.get_bookmarks(ids=ids)}
        return [records[i] for i in ids if i in records]

    async def _generate_answer(
        self,
        request: SearchRequest,
        bookmarks: list[Bookmark],
        result: SearchResult,
        state: ConversationState,
    ) -> ChatSearchResponse:
        defaults = self._default_suggestions(result, request)

        if not bookmarks:
            return ChatSearchResponse(
                answer=t("no_results", self._language),
                next_suggestions=defaults,
            )

        sources = [b.id for b in bookmarks]
        smart = self._smart_suggestions(analyze_results(bookmarks, result), request)
        fallback = smart + defaults

        if self._llm is None or not self._llm.is_configured():
            return ChatSearchResponse(
                answer=self._rule_based_answer(bookmarks),
                sources=sources,
                next_suggestions=_dedupe(fallback)[:MAX_SUGGESTIONS],
            )

        try:
            output = await self._llm.generate_object(
                system=ANSWER_SYSTEM_PROMPTS.get(self._language, ANSWER_SYSTEM_PROMPTS["en"]),
                prompt=self._build_answer_prompt(request, bookmarks, state),
                schema=AnswerOutput,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            logger.warning(f"AI answer generation failed, using rule-based: {e}")
            return ChatSearchResponse(
                answer=self._rule_based_answer(bookmarks),
                sources=sources,
                next_suggestions=_dedupe(fallback)[:MAX_SUGGESTIONS],
            )

        suggestions = [Suggestion(s.strip()) for s in output.next_suggestions if s.strip()]
        if len(suggestions) < MIN_MODEL_SUGGESTIONS:
            suggestions += fallback

        return ChatSearchResponse(
            answer=output.answer.strip() or self._rule_based_answer(bookmarks),
            sources=sources,
            next_suggestions=_dedupe(suggestions)[:MAX_SUGGESTIONS],
        )

    def _rule_based_answer(self, bookmarks: list[Bookmark]) -> str:
        lang = self._language
        sep = t("title_separator", lang)
        count = len(bookmarks)
        if count == 1:
            return t("found_one", lang, title=bookmarks[0].title)
        if count <= RULE_ANSWER_LIST_LIMIT:
            return t("found_few", lang, count=count, titles=sep.join(b.title for b in bookmarks))
        return t(
            "found_many",
            lang,
            count=count,
            titles=sep.join(b.title for b in bookmarks[:3]),
            more=count - 3,
        )

    def _default_suggestions(
        self, result: SearchResult, request: SearchRequest
    ) -> list[Suggestion]:
        lang = self._language
        filters = request.filters
        suggestions = []

        if not result.items:
            suggestions.append(Suggestion(t("suggest_other_keywords", lang)))
            if filters.time_range_days:
                suggestions.append(Suggestion(t("suggest_widen_time", lang)))
            if filters.semantic is not True:
                suggestions.append(
                    Suggestion(t("suggest_semantic", lang), SuggestionAction.SEMANTIC_ONLY)
                )
        else:
            if result.has_more:
                suggestions.append(
                    Suggestion(t("suggest_show_more", lang), SuggestionAction.SHOW_MORE)
                )
            if not filters.time_range_days:
                suggestions.append(
                    Suggestion(
                        t("suggest_last_30_days", lang),
                        SuggestionAction.TIME_FILTER,
                        {"days": 30},
                    )
                )
            if result.used_keyword and result.used_semantic:
                suggestions.append(
                    Suggestion(t("suggest_keyword_only", lang), SuggestionAction.KEYWORD_ONLY)
                )
                suggestions.append(
                    Suggestion(t("suggest_semantic_only", lang), SuggestionAction.SEMANTIC_ONLY)
                )

        return suggestions[:MAX_SUGGESTIONS]

    def _smart_suggestions(
        self, analysis: ResultAnalysis, request: SearchRequest
    ) -> list[Suggestion]:
        """Refining suggestions derived from the shape of a result set."""
        lang = self._language
        filters = request.filters
        suggestions = []

        if analysis.total > LARGE_RESULT_THRESHOLD:
            if analysis.top_domain and not filters.domain:
                suggestions.append(
                    Suggestion(
                        t("suggest_domain", lang, domain=analysis.top_domain),
                        SuggestionAction.DOMAIN_FILTER,
                        {"domain": analysis.top_domain},
                    )
                )
            if analysis.top_category_id and not filters.category_id:
                name = self._category_name(analysis.top_category_id)
                suggestions.append(
                    Suggestion(
                        t("suggest_category", lang, name=name),
                        SuggestionAction.CATEGORY_FILTER,
                        {"category_id": analysis.top_category_id, "category_name": name},
                    )
                )

        if 0 < analysis.count < FEW_RESULTS_THRESHOLD:
            if filters.time_range_days:
                suggestions.append(Suggestion(t("suggest_widen_time", lang)))
            suggestions.append(Suggestion(t("suggest_similar_keywords", lang)))

        if (
            analysis.score_variance > HIGH_SCORE_VARIANCE
            and analysis.used_keyword
            and analysis.used_semantic
        ):
            suggestions.append(
                Suggestion(t("suggest_keyword_only", lang), SuggestionAction.KEYWORD_ONLY)
            )
            suggestions.append(
                Suggestion(t("suggest_semantic_only", lang), SuggestionAction.SEMANTIC_ONLY)
            )

        return suggestions

    def _build_answer_prompt(
        self,
        request: SearchRequest,
        bookmarks: list[Bookmark],
        state: ConversationState,
    ) -> str:
        parts = []

        if state.short_memory:
            parts.append("Conversation so far:")
            for message in state.short_memory:
                parts.append(f"- {message.role}: {message.text}")
            parts.append("")
            parts.append(f'Current structured query: "{request.refined_query or request.query}"')
        else:
            parts.append(f'User query: "{request.query}"')

        parts.append(f"Intent: {request.intent.value}")
        parts.append("")
        parts.append("Retrieved bookmarks (sources):")

        for index, bookmark in enumerate(bookmarks, 1):
            parts.append(f"[{index}] {bookmark.title}")
            parts.append(f"    URL: {bookmark.url}")
            parts.append(f"    Description: {bookmark.description[:DESCRIPTION_PREVIEW]}")
            parts.append(f"    Category: {self._category_name(bookmark.category_id)}")
            parts.append(f"    Tags: {', '.join(bookmark.tags) or t('none', self._language)}")
            parts.append(f"    Saved: {bookmark.created_at.date().isoformat()}")
            parts.append("")

        return "\n".join(parts)

    def _category_name(self, category_id: Optional[str]) -> str:
        if not category_id:
            return t("uncategorized", self._language)
        category = self._categories.get(category_id)
        return category.name if category else t("unknown", self._language)


def _dedupe(suggestions: list[Suggestion]) -> list[Suggestion]:
    seen = set()
    unique = []
    for suggestion in suggestions:
        if suggestion.label not in seen:
            seen.add(suggestion.label)
            unique.append(suggestion)
    return unique
