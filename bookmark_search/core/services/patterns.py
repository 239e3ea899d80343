"""Rule-based phrase table for the query planner.

Phrases for every language are always matched; the display language only
selects prompts and messages. The table can be replaced from a JSON file
with the same shape (missing keys fall back to the defaults).
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

PATTERN_TABLE_VERSION = 4

# Optional English lead-in consumed together with a time phrase ("from last week").
EN_TIME_LEAD_IN = r"(?:(?:from|in|during|over|since|within)\s+)?(?:the\s+)?"

# Endings accepted for a bare "on example.com"; "vue.js" and the like are not sites.
KNOWN_TLDS = (
    r"com|org|net|io|dev|app|ai|co|me|edu|gov|info|xyz|tech|blog|site|"
    r"cn|uk|de|jp|fr|ru|us|ca|au|in|tv|gg|news"
)
BARE_DOMAIN = r"(?:https?://)?((?:[\w-]+\.)+(?:" + KNOWN_TLDS + r"))(?![\w-])"

DEFAULT_PATTERN_TABLE: dict = {
    "version": PATTERN_TABLE_VERSION,
    "help_topics": {
        "settings": [
            "what are the shortcuts", "what are the keyboard shortcuts",
            "what shortcuts", "which shortcuts", "shortcut settings",
            "how do i change settings", "how to change settings",
            "where are the settings", "where is the settings", "open settings",
            "how to configure ai", "how do i configure ai",
            "how to set up ai", "how do i set up ai",
            "how to enable semantic search", "how do i enable semantic search",
            "有哪些快捷键", "快捷键是什么", "快捷键设置", "怎么设置", "如何设置",
            "在哪设置", "在哪里设置", "怎么配置", "如何配置", "如何启用语义搜索",
        ],
        "features": [
            {"regex": r"^\s*(?:how\s+(?:do\s+i|to)\s+use(?:\s+(?:this|it|the\s+extension))?|怎么用|如何使用)\s*[?？]?\s*$"},
            "how to use semantic search", "how do i use semantic search",
            "what features", "which features", "what can you do", "what can this do",
            "feature introduction", "how to batch manage", "how do i batch manage",
            "如何使用语义搜索", "这个怎么用", "有什么功能", "有哪些功能", "能做什么",
            "功能介绍", "如何批量管理", "怎么批量管理",
        ],
        "search": [
            "how to search", "how do i search", "how can i search",
            "如何搜索", "怎么搜索",
        ],
        "default": [
            {"regex": r"^\s*(?:help|帮助)\s*[?？!！]?\s*$"},
            "i need help", "需要帮助",
        ],
    },
    "help_exclusions": [
        "help me find", "help me search", "help me look",
    ],
    "statistics": [
        {"regex": r"how\s+many\b.*?\b(?:bookmarks?|saved?|added|add)\b"},
        {"regex": r"(?:收藏|添加|保存|存)了?\s*(?:多少|几个|几条)"},
        {"regex": r"(?:多少|几个|几条)\s*(?:个|条)?\s*书签"},
        "show my statistics", "show my stats", "bookmark statistics",
        "bookmark stats", "统计我的收藏", "统计一下", "收藏统计", "书签统计",
    ],
    "time": [
        {"regex": EN_TIME_LEAD_IN + r"(?:last|past)\s+(\d+)\s+days?"},
        {"regex": r"(?:最近|近|过去)\s*(\d+)\s*天"},
        {"phrase": "yesterday", "days": 1},
        {"phrase": "today", "days": 1},
        {"phrase": "recently", "days": 7},
        {"phrase": "recent", "days": 7},
        {"phrase": "lately", "days": 7},
        {"phrase": "this week", "days": 7},
        {"phrase": "last week", "days": 7},
        {"phrase": "past week", "days": 7},
        {"phrase": "weekly", "days": 7},
        {"phrase": "this month", "days": 30},
        {"phrase": "last month", "days": 30},
        {"phrase": "past month", "days": 30},
        {"phrase": "monthly", "days": 30},
        {"phrase": "this year", "days": 365},
        {"phrase": "last year", "days": 365},
        {"phrase": "past year", "days": 365},
        {"phrase": "昨天", "days": 1},
        {"phrase": "今天", "days": 1},
        {"phrase": "最近一周", "days": 7},
        {"phrase": "最近一个月", "days": 30},
        {"phrase": "最近", "days": 7},
        {"phrase": "近期", "days": 7},
        {"phrase": "这周", "days": 7},
        {"phrase": "本周", "days": 7},
        {"phrase": "上周", "days": 7},
        {"phrase": "这个月", "days": 30},
        {"phrase": "本月", "days": 30},
        {"phrase": "上个月", "days": 30},
        {"phrase": "今年", "days": 365},
        {"phrase": "这一年", "days": 365},
    ],
    "semantic_disable": [
        "keyword only search", "keyword matches only", "keyword only",
        "keywords only", "exact match", "only keywords",
        "只看关键词匹配", "只看关键词", "仅关键词", "精确匹配",
    ],
    "continuation": [
        "find more", "show more", "more results", "load more",
        "继续查找更多", "继续查找", "继续", "更多", "再找",
    ],
    "filler": [
        "please", "can you", "could you", "help me find", "find me",
        "search for", "look for", "looking for", "show me", "give me",
        "find", "under that category's", "related to", "that i saved",
        "i saved", "i added", "my bookmarks", "bookmarks", "bookmark",
        "帮我找一下", "帮我找", "帮我查", "请帮我", "请找", "查找", "搜索",
        "找一下", "该分类下的", "相关的", "有关的", "关于", "的书签",
        "添加的", "收藏的", "添加", "书签", "网页", "我的", "找",
        "'s", "\u2019s",
    ],
    "trailing_filler": [
        "pages", "links", "sites", "saved", "added",
    ],
    "stopwords": [
        "the", "a", "an", "my", "all", "of", "in", "from", "with", "on",
        "for", "s", "me", "i", "that", "which", "any", "some", "only",
        "just", "and", "or", "to", "saved", "added", "under", "category",
        "的", "在", "下", "里", "中", "所有", "全部", "一些", "了", "我",
    ],
    "trim": " \t'\"`,.;:!?，。；：！？、的",
    "category_markers": {
        "prefix": [r"categor(?:y|ies)", r"folder", r"分类", r"目录", r"类别"],
        "suffix": [r"categor(?:y|ies)", r"folder", r"分类", r"目录", r"类别"],
    },
    "tag_markers": {
        "prefix": [r"tag(?:ged)?(?:\s+with)?", r"#", r"标签"],
        "suffix": [r"tags?", r"标签"],
    },
    "domain": [
        r"site:\s*((?:[\w-]+\.)+[a-z]{2,})",
        r"(?:from|on|at)\s+https?://((?:[\w-]+\.)+[a-z]{2,})",
        r"(?:from|on|at)\s+" + BARE_DOMAIN,
        r"来自\s*" + BARE_DOMAIN,
    ],
    "top_k": [
        r"top\s+(\d+)",
        r"前\s*(\d+)\s*(?:个|条)",
    ],
}


def phrase_regex(phrase: str) -> str:
    """Regex source for a literal phrase; word-bounded where it starts or ends in ASCII."""
    body = r"\s+".join(re.escape(part) for part in phrase.split())
    if phrase[:1].isascii() and phrase[:1].isalnum():
        body = r"(?<!\w)" + body
    if phrase[-1:].isascii() and phrase[-1:].isalnum():
        body = body + r"(?!\w)"
    return body


def _compile(source: str) -> re.Pattern:
    return re.compile(source, re.IGNORECASE)


def _compile_entry(entry) -> re.Pattern:
    """Compile a phrase-list entry: a literal phrase or a {"regex": ...} mapping."""
    if isinstance(entry, dict):
        return _compile(entry["regex"])
    return _compile(phrase_regex(entry))


@dataclass
class TimeRule:
    pattern: re.Pattern
    days: Optional[int] = None  # None: day count is capture group 1


@dataclass
class PatternTable:
    """Compiled phrase table."""
    version: int
    help_topics: dict[str, list[re.Pattern]]
    help_exclusions: list[re.Pattern]
    statistics: list[re.Pattern]
    time: list[TimeRule]
    semantic_disable: list[re.Pattern]
    continuation: list[re.Pattern]
    filler: list[re.Pattern]
    trailing_filler: list[re.Pattern]
    stopwords: set[str]
    trim: str
    category_markers: dict[str, list[str]] = field(default_factory=dict)
    tag_markers: dict[str, list[str]] = field(default_factory=dict)
    domain: list[re.Pattern] = field(default_factory=list)
    top_k: list[re.Pattern] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "PatternTable":
        merged = {**DEFAULT_PATTERN_TABLE, **data}

        time_rules = []
        for rule in merged["time"]:
            if "regex" in rule:
                time_rules.append(TimeRule(_compile(rule["regex"]), rule.get("days")))
            else:
                source = phrase_regex(rule["phrase"])
                if rule["phrase"][:1].isascii():
                    source = EN_TIME_LEAD_IN + source
                time_rules.append(TimeRule(_compile(source), int(rule["days"])))

        def phrases(key: str) -> list[re.Pattern]:
            return [_compile_entry(p) for p in merged[key]]

        return cls(
            version=int(merged.get("version", PATTERN_TABLE_VERSION)),
            help_topics={
                topic: [_compile_entry(p) for p in items]
                for topic, items in merged["help_topics"].items()
            },
            help_exclusions=phrases("help_exclusions"),
            statistics=phrases("statistics"),
            time=time_rules,
            semantic_disable=phrases("semantic_disable"),
            continuation=phrases("continuation"),
            filler=phrases("filler"),
            trailing_filler=[
                _compile(r"(?:\s+|^)" + phrase_regex(p) + r"\s*$")
                for p in merged["trailing_filler"]
            ],
            stopwords={w.lower() for w in merged["stopwords"]},
            trim=merged["trim"],
            category_markers=merged["category_markers"],
            tag_markers=merged["tag_markers"],
            domain=[_compile(p) for p in merged["domain"]],
            top_k=[_compile(p) for p in merged["top_k"]],
        )

    def help_topic(self, text: str) -> Optional[str]:
        """Help topic named by the text, or None if it is not a help question."""
        text = _strip(text, self.help_exclusions)
        for topic, patterns in self.help_topics.items():
            if any(p.search(text) for p in patterns):
                return topic
        return None

    def is_statistics(self, text: str) -> bool:
        return any(p.search(text) for p in self.statistics)

    def time_range(self, text: str) -> Optional[int]:
        """Day count of the earliest time phrase in the text (longest on ties)."""
        best = None
        for rule in self.time:
            for match in rule.pattern.finditer(text):
                days = rule.days if rule.days is not None else int(match.group(1))
                key = (match.start(), -(match.end() - match.start()))
                if best is None or key < best[0]:
                    best = (key, days)
        if best is None or best[1] <= 0:
            return None
        return best[1]

    def strip_time(self, text: str) -> str:
        for rule in self.time:
            text = rule.pattern.sub(" ", text)
        return text

    def disables_semantic(self, text: str) -> bool:
        return any(p.search(text) for p in self.semantic_disable)

    def strip_semantic_disable(self, text: str) -> str:
        return _strip(text, self.semantic_disable)

    def is_continuation(self, text: str) -> bool:
        return any(p.search(text) for p in self.continuation)

    def strip_continuation(self, text: str) -> str:
        return _strip(text, self.continuation)

    def strip_filler(self, text: str) -> str:
        text = _strip(text, self.filler)
        previous = None
        while previous != text:
            previous = text
            text = _strip(text, self.trailing_filler)
        return text

    def clean(self, text: str) -> str:
        """Collapse whitespace; trim punctuation, particles and stopwords at both ends."""
        tokens = text.strip().strip(self.trim).split()
        while tokens and tokens[0].strip(self.trim).lower() in self.stopwords:
            tokens.pop(0)
        while tokens and tokens[-1].strip(self.trim).lower() in self.stopwords:
            tokens.pop()
        return " ".join(tokens).strip(self.trim)

    def is_pure_filter(self, remainder: str) -> bool:
        """True when nothing but stopwords and punctuation is left."""
        tokens = re.sub(r"[^\w\s]", " ", remainder).lower().split()
        return all(token in self.stopwords for token in tokens)


def _strip(text: str, patterns: list[re.Pattern]) -> str:
    for pattern in patterns:
        text = pattern.sub(" ", text)
    return text


def load_pattern_table(path: Optional[str] = None) -> PatternTable:
    """Load the phrase table, overriding defaults from a JSON file if it exists."""
    if not path:
        return PatternTable.from_dict(DEFAULT_PATTERN_TABLE)

    config_file = Path(path)
    if not config_file.exists():
        logger.debug(f"Pattern table {path} not found, using defaults")
        return PatternTable.from_dict(DEFAULT_PATTERN_TABLE)

    with open(config_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    table = PatternTable.from_dict(data)
    logger.info(f"Pattern table v{table.version} loaded from {path}")
    return table
