"""Query planner - turns user text into a structured search request."""

import json
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..models.bookmark import Category
from ..models.chat import ConversationState
from ..models.search import (
    Intent,
    QuerySubtype,
    SearchFilters,
    SearchRequest,
    clamp_time_range,
)
from ..protocols.llm import StructuredLLMProtocol
from .patterns import PatternTable, load_pattern_table

logger = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPTS = {
    "en": """You are a search query parser for a personal bookmark collection. Convert the user's input into a structured search request.

Rules:
1. intent: "help" for questions about features, settings or shortcuts; "statistics" for counting questions ("how many did I save"); otherwise "query".
2. refined_query: only the words worth matching against bookmark titles and content. Remove filler ("please find", "related to", "bookmarks") and every time, category, tag or site phrase. Use "" when the input only expresses filters.
3. filters.category_id: an id from the available categories, only if the user names that category. Never invent ids.
4. filters.tags_any: tags from the existing tags, only if the user names them.
5. filters.domain: a site the user restricts to, e.g. "github.com".
6. filters.time_range_days: yesterday -> 1, recent / this week / last week -> 7, this month -> 30, this year -> 365, "last N days" -> N.
7. filters.semantic: false only when the user asks for keyword or exact matching; otherwise null.
8. top_k: number of results (1-50), 20 unless the user asks for a specific amount.

Output JSON only, no explanations.""",
    "zh": """你是个人书签库的搜索查询解析器。请把用户输入转换为结构化搜索请求。

规则：
1. intent：询问功能、设置、快捷键时为 "help"；询问数量统计（"收藏了多少"）时为 "statistics"；其余为 "query"。
2. refined_query：只保留用于匹配书签标题和内容的词。去掉"帮我找"、"相关的"、"书签"等语气词，以及所有时间、分类、标签、网站相关的表述。如果输入只表达了筛选条件，返回 ""。
3. filters.category_id：仅当用户明确提到某个可用分类时，填写该分类的 id。不要编造 id。
4. filters.tags_any：仅当用户明确提到已有标签时填写。
5. filters.domain：用户限定的网站，例如 "github.com"。
6. filters.time_range_days：昨天 -> 1，最近/这周/上周 -> 7，这个月/本月 -> 30，今年 -> 365，"最近N天" -> N。
7. filters.semantic：仅当用户要求关键词匹配或精确匹配时为 false，否则为 null。
8. top_k：返回数量（1-50），除非用户指定，否则为 20。

只输出 JSON，不需要解释。""",
}


class PlannerFilters(BaseModel):
    category_id: Optional[str] = None
    tags_any: list[str] = Field(default_factory=list)
    domain: Optional[str] = None
    time_range_days: Optional[int] = None
    semantic: Optional[bool] = None


class PlannerOutput(BaseModel):
    """Structured output requested from the model."""
    intent: Literal["query", "statistics", "help"] = "query"
    refined_query: str = ""
    filters: PlannerFilters = Field(default_factory=PlannerFilters)
    top_k: int = 20


@dataclass
class PlannerContext:
    """Vocabulary and prior state available to the planner."""
    categories: list[Category] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    state: Optional[ConversationState] = None


def derive_subtype(filters: SearchFilters) -> QuerySubtype:
    """Query subtype from the populated filter fields."""
    if len(filters.populated_fields()) >= 2:
        return QuerySubtype.COMPOUND
    if filters.time_range_days:
        return QuerySubtype.TIME
    if filters.category_id:
        return QuerySubtype.CATEGORY
    if filters.tags_any:
        return QuerySubtype.TAG
    return QuerySubtype.SEMANTIC


def _name_regex(name: str) -> str:
    body = r"\s+".join(re.escape(part) for part in name.split())
    if name[:1].isascii() and name[:1].isalnum():
        body = r"(?<!\w)" + body
    if name[-1:].isascii() and name[-1:].isalnum():
        body = body + r"(?!\w)"
    return body


class QueryPlanner:
    """Rule-based planner with optional LLM-assisted extraction."""

    def __init__(
        self,
        llm: Optional[StructuredLLMProtocol] = None,
        patterns: Optional[PatternTable] = None,
        language: str = "en",
        default_top_k: int = 20,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ):
        """Initialize query planner.

        Args:
            llm: Structured-output client; rule-based only when absent.
            patterns: Phrase table (defaults built in).
            language: Prompt language.
            default_top_k: Result count when the text does not ask for one.
            temperature: Sampling temperature for extraction.
            max_tokens: Max tokens for extraction.
        """
        self._llm = llm
        self._patterns = patterns or load_pattern_table()
        self._language = language
        self._default_top_k = default_top_k
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def patterns(self) -> PatternTable:
        return self._patterns

    async def parse(
        self, user_input: str, context: Optional[PlannerContext] = None
    ) -> SearchRequest:
        """Parse user text into a search request.

        Uses the model when one is configured and falls back to rules on
        any failure. Never raises.

        Args:
            user_input: Raw user text.
            context: Category/tag vocabulary and prior state.

        Returns:
            Structured search request.
        """
        context = context or PlannerContext()

        if self._llm is None or not self._llm.is_configured():
            logger.debug("AI not configured, using rule-based parsing")
            return self.parse_quick(user_input, context)

        try:
            return await self._parse_with_ai(user_input, context)
        except Exception as e:
            logger.warning(f"AI parsing failed, falling back to rules: {e}")
            return self.parse_quick(user_input, context)

    def parse_quick(
        self, user_input: str, context: Optional[PlannerContext] = None
    ) -> SearchRequest:
        """Rule-based parse, no model call."""
        context = context or PlannerContext()
        patterns = self._patterns
        text = user_input.strip()

        if patterns.help_topic(text) is not None:
            intent = Intent.HELP
        elif patterns.is_statistics(text):
            intent = Intent.STATISTICS
        else:
            intent = Intent.QUERY

        category_id, text = self._extract_category(text, context.categories)
        tags, text = self._extract_tags(text, context.tags)
        domain, text = self._extract_domain(text)
        top_k, text = self._extract_top_k(text)

        time_range_days = clamp_time_range(patterns.time_range(text))
        text = patterns.strip_time(text)

        semantic = False if patterns.disables_semantic(text) else None
        text = patterns.strip_semantic_disable(text)

        follow_up = patterns.is_continuation(text)
        text = patterns.strip_continuation(text)

        text = patterns.strip_filler(text)
        refined_query = "" if patterns.is_pure_filter(text) else patterns.clean(text)

        filters = SearchFilters(
            category_id=category_id,
            tags_any=tuple(tags),
            domain=domain,
            time_range_days=time_range_days,
            semantic=semantic,
        )

        request = SearchRequest(
            intent=intent,
            query=user_input.strip(),
            refined_query=refined_query,
            filters=filters,
            top_k=top_k or self._default_top_k,
            query_subtype=derive_subtype(filters) if intent == Intent.QUERY else None,
            follow_up=follow_up,
        )

        logger.debug(
            f"Rule parse: intent={intent.value} refined='{refined_query}' "
            f"filters={filters.populated_fields()}"
        )
        return request

    def merge_with_state(
        self, request: SearchRequest, state: ConversationState
    ) -> SearchRequest:
        """Layer a new request onto the conversation state.

        Populated filter fields of the request win; absent ones inherit the
        state's values. A follow-up with no text of its own inherits the
        prior query.
        """
        filters = state.filters.update(request.filters)

        query = request.query
        refined_query = request.refined_query
        if request.follow_up and not refined_query and state.query:
            query = state.query
            refined_query = state.refined_query

        return replace(
            request,
            query=query,
            refined_query=refined_query,
            filters=filters,
            query_subtype=(
                derive_subtype(filters)
                if request.intent == Intent.QUERY
                else request.query_subtype
            ),
        )

    async def _parse_with_ai(
        self, user_input: str, context: PlannerContext
    ) -> SearchRequest:
        rules = self.parse_quick(user_input, context)
        stated_top_k, _ = self._extract_top_k(user_input)

        output = await self._llm.generate_object(
            system=PLANNER_SYSTEM_PROMPTS.get(self._language, PLANNER_SYSTEM_PROMPTS["en"]),
            prompt=self._build_prompt(user_input, context),
            schema=PlannerOutput,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        logger.debug(f"AI parse result: {output.model_dump()}")

        filters = SearchFilters(
            category_id=self._constrain_category(output.filters.category_id, context.categories),
            tags_any=tuple(self._constrain_tags(output.filters.tags_any, context.tags)),
            domain=(output.filters.domain or "").strip().lower().removeprefix("www.") or None,
            time_range_days=clamp_time_range(output.filters.time_range_days),
            semantic=False if rules.filters.semantic is False else output.filters.semantic,
        )

        intent = Intent(output.intent)
        refined_query = "" if not rules.refined_query else output.refined_query.strip()

        return SearchRequest(
            intent=intent,
            query=user_input.strip(),
            refined_query=refined_query,
            filters=filters,
            top_k=stated_top_k or output.top_k,
            query_subtype=derive_subtype(filters) if intent == Intent.QUERY else None,
            follow_up=rules.follow_up,
        )

    def _build_prompt(self, user_input: str, context: PlannerContext) -> str:
        parts = [f'User input: "{user_input}"']

        if context.categories:
            vocabulary = ", ".join(f"{c.id}: {c.name}" for c in context.categories)
            parts.append(f"Available categories: {vocabulary}")

        if context.tags:
            parts.append(f"Existing tags: {', '.join(context.tags[:20])}")

        state = context.state
        if state is not None and state.query:
            filters = {
                name: getattr(state.filters, name)
                for name in state.filters.populated_fields()
            }
            parts.append("Current conversation state:")
            parts.append(f"- Previous query: {state.query}")
            parts.append(
                f"- Active filters: {json.dumps(filters, ensure_ascii=False, default=list)}"
            )
            parts.append(f"- Results already shown: {len(state.seen_bookmark_ids)}")

        parts.append(
            "Respond with JSON: "
            '{"intent": ..., "refined_query": ..., "filters": {"category_id": ..., '
            '"tags_any": [...], "domain": ..., "time_range_days": ..., "semantic": ...}, '
            '"top_k": ...}'
        )
        return "\n".join(parts)

    def _constrain_category(
        self, value: Optional[str], categories: list[Category]
    ) -> Optional[str]:
        if not value:
            return None
        for category in categories:
            if value == category.id or value.lower() == category.name.lower():
                return category.id
        logger.debug(f"Dropping category outside vocabulary: {value}")
        return None

    def _constrain_tags(self, values: list[str], vocabulary: list[str]) -> list[str]:
        known = {tag.lower(): tag for tag in vocabulary}
        tags = []
        for value in values:
            tag = known.get(value.lower().lstrip("#"))
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    def _extract_category(
        self, text: str, categories: list[Category]
    ) -> tuple[Optional[str], str]:
        markers = self._patterns.category_markers
        for category in sorted(categories, key=lambda c: len(c.name), reverse=True):
            if not category.name.strip():
                continue
            name = _name_regex(category.name)
            sources = [rf"(?:{m})\s*[:：]?\s*{name}" for m in markers.get("prefix", [])]
            sources += [rf"{name}\s*(?:{m})" for m in markers.get("suffix", [])]
            for source in sources:
                match = re.search(source, text, re.IGNORECASE)
                if match:
                    return category.id, _cut(text, match)
        return None, text

    def _extract_tags(self, text: str, vocabulary: list[str]) -> tuple[list[str], str]:
        markers = self._patterns.tag_markers
        tags = []
        for tag in sorted(vocabulary, key=len, reverse=True):
            if not tag.strip():
                continue
            name = _name_regex(tag)
            sources = [rf"(?:{m})\s*[:：]?\s*{name}" for m in markers.get("prefix", [])]
            sources += [rf"{name}\s*(?:{m})" for m in markers.get("suffix", [])]
            for source in sources:
                match = re.search(source, text, re.IGNORECASE)
                if match:
                    tags.append(tag)
                    text = _cut(text, match)
                    break
        return tags, text

    def _extract_domain(self, text: str) -> tuple[Optional[str], str]:
        for pattern in self._patterns.domain:
            match = pattern.search(text)
            if match:
                domain = match.group(1).lower().removeprefix("www.")
                return domain, _cut(text, match)
        return None, text

    def _extract_top_k(self, text: str) -> tuple[Optional[int], str]:
        for pattern in self._patterns.top_k:
            match = pattern.search(text)
            if match:
                return int(match.group(1)), _cut(text, match)
        return None, text


def _cut(text: str, match: re.Match) -> str:
    return f"{text[:match.start()]} {text[match.end():]}"
