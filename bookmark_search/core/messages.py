"""User-facing strings in the supported display languages."""

SUPPORTED_LANGUAGES = ("zh", "en")

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "no_results": "No matching bookmarks found. Try other keywords or widen the search.",
        "found_one": "Found 1 related bookmark: {title}",
        "found_few": "Found {count} related bookmarks: {titles}",
        "found_many": "Found {count} related bookmarks. The most relevant are: {titles}, and {more} more.",
        "title_separator": ", ",
        "match_title": "Title matches: {terms}",
        "match_tags": "Tags: {tags}",
        "match_keyword": "Keyword match",
        "match_semantic": "Semantic similarity: {percent}%",
        "match_similar": "Similarity: {percent}%",
        "match_filters": "Matches filters",
        "uncategorized": "Uncategorized",
        "unknown": "Unknown",
        "none": "none",
        "continue_query": "find more",
        "prefix_time": "last {days} days' ",
        "prefix_category": "under that category's ",
        "suggest_other_keywords": "Try other keywords",
        "suggest_widen_time": "Expand time range",
        "suggest_similar_keywords": "Try similar keywords",
        "suggest_semantic": "Use semantic search",
        "suggest_show_more": "Show more results",
        "suggest_last_30_days": "Last 30 days only",
        "suggest_keyword_only": "Keyword matches only",
        "suggest_semantic_only": "Semantic matches only",
        "suggest_domain": "Only from {domain}",
        "suggest_category": "In {name} category",
        "stats_yesterday": "yesterday",
        "stats_week": "this week",
        "stats_days": "in the last {days} days",
        "stats_empty": "No bookmarks saved {period}.",
        "stats_total": "You saved {total} bookmarks {period}.",
        "stats_by_category": "**By Category:**",
        "stats_top_sites": "**Top Sites:**",
        "stats_line": "- {name}: {count}",
        "suggest_view_list": "View detailed list",
        "suggest_filter_category": "Filter by category",
        "suggest_monthly_stats": "View monthly stats",
    },
    "zh": {
        "no_results": "未找到相关书签。您可以尝试其他关键词，或者扩大搜索范围。",
        "found_one": "找到 1 条相关书签：{title}",
        "found_few": "找到 {count} 条相关书签：{titles}",
        "found_many": "找到 {count} 条相关书签。最相关的是：{titles} 等，还有 {more} 条。",
        "title_separator": "、",
        "match_title": "标题匹配: {terms}",
        "match_tags": "标签: {tags}",
        "match_keyword": "关键词匹配",
        "match_semantic": "语义相似度: {percent}%",
        "match_similar": "相似度: {percent}%",
        "match_filters": "符合筛选条件",
        "uncategorized": "未分类",
        "unknown": "未知",
        "none": "无",
        "continue_query": "继续查找更多",
        "prefix_time": "最近 {days} 天的",
        "prefix_category": "该分类下的",
        "suggest_other_keywords": "尝试其他关键词",
        "suggest_widen_time": "扩大时间范围",
        "suggest_similar_keywords": "尝试相近关键词",
        "suggest_semantic": "使用语义搜索",
        "suggest_show_more": "显示更多结果",
        "suggest_last_30_days": "只看最近 30 天",
        "suggest_keyword_only": "只看关键词匹配",
        "suggest_semantic_only": "只看语义匹配",
        "suggest_domain": "只看 {domain}",
        "suggest_category": "限定 {name} 分类",
        "stats_yesterday": "昨天",
        "stats_week": "最近一周",
        "stats_days": "最近 {days} 天",
        "stats_empty": "{period}没有收藏任何书签。",
        "stats_total": "{period}共收藏了 {total} 个书签。",
        "stats_by_category": "**按分类：**",
        "stats_top_sites": "**热门网站：**",
        "stats_line": "- {name}: {count} 个",
        "suggest_view_list": "查看详细列表",
        "suggest_filter_category": "按分类筛选",
        "suggest_monthly_stats": "查看本月统计",
    },
}

HELP_CONTENT: dict[str, dict[str, dict]] = {
    "settings": {
        "en": {
            "answer": (
                "Settings live in the extension menu, or behind the gear icon at the "
                "top right of the panel. You can configure:\n"
                "- AI service (smart categorization and semantic search)\n"
                "- Theme and language\n"
                "- Keyboard shortcuts\n"
                "- Auto-save options"
            ),
            "suggestions": [
                "How to configure AI",
                "How to enable semantic search",
                "Shortcut settings",
            ],
        },
        "zh": {
            "answer": (
                "设置页面可以在插件图标右键菜单中找到，或者点击面板右上角的设置图标。您可以配置：\n"
                "- AI 服务（用于智能分类和语义搜索）\n"
                "- 主题和语言\n"
                "- 快捷键\n"
                "- 自动保存选项"
            ),
            "suggestions": ["如何配置 AI", "如何启用语义搜索", "快捷键设置"],
        },
    },
    "features": {
        "en": {
            "answer": (
                "Main features:\n"
                "- Smart bookmarking: AI categorization and tagging\n"
                "- Semantic search: find bookmarks by meaning\n"
                "- Conversational search: ask in natural language\n"
                "- Batch management: move, tag and delete in bulk"
            ),
            "suggestions": [
                "How to use semantic search",
                "How to batch manage",
                "Show my statistics",
            ],
        },
        "zh": {
            "answer": (
                "主要功能：\n"
                "- 智能收藏：AI 自动分类和打标签\n"
                "- 语义搜索：通过含义查找书签\n"
                "- 对话式搜索：自然语言查询\n"
                "- 批量管理：批量移动、打标签、删除"
            ),
            "suggestions": ["如何使用语义搜索", "如何批量管理", "统计我的收藏"],
        },
    },
    "search": {
        "en": {
            "answer": (
                "Just describe what you are looking for. You can also:\n"
                "- Limit by time: \"last week\", \"last 30 days\"\n"
                "- Limit by category or tag: \"category Dev\", \"#react\"\n"
                "- Limit by site: \"site:github.com\"\n"
                "- Switch to exact matching: \"keyword only\""
            ),
            "suggestions": [
                "Bookmarks from this week",
                "Keyword only search",
                "Feature introduction",
            ],
        },
        "zh": {
            "answer": (
                "直接描述您要找的内容即可。您还可以：\n"
                "- 限定时间：\"最近一周\"、\"最近30天\"\n"
                "- 限定分类或标签：\"前端分类\"、\"#react\"\n"
                "- 限定网站：\"site:github.com\"\n"
                "- 精确匹配：\"只看关键词\""
            ),
            "suggestions": ["本周收藏的书签", "只看关键词匹配", "功能介绍"],
        },
    },
    "default": {
        "en": {
            "answer": (
                "I can help you:\n"
                "- Search and find bookmarks\n"
                "- Learn about features and settings\n"
                "- View your bookmark statistics\n\n"
                "What would you like to know?"
            ),
            "suggestions": [
                "How to search",
                "How to set up AI",
                "Feature introduction",
            ],
        },
        "zh": {
            "answer": (
                "我可以帮助您：\n"
                "- 搜索和查找书签\n"
                "- 了解插件功能和设置\n"
                "- 统计您的收藏情况\n\n"
                "请问您想了解什么？"
            ),
            "suggestions": ["如何搜索", "如何设置 AI", "功能介绍"],
        },
    },
}


def normalize_language(language: str | None) -> str:
    """Map any unsupported language to English."""
    return language if language in SUPPORTED_LANGUAGES else "en"


def t(key: str, language: str | None = "en", **kwargs) -> str:
    """Look up a localized string and format it."""
    template = MESSAGES[normalize_language(language)][key]
    return template.format(**kwargs) if kwargs else template


def help_content(topic: str, language: str | None = "en") -> dict:
    """Canned help answer and suggestion labels for a topic."""
    content = HELP_CONTENT.get(topic, HELP_CONTENT["default"])
    return content[normalize_language(language)]
