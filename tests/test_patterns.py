"""
Tests for the planner phrase table.
"""

import json

import pytest

from bookmark_search.core.services.patterns import (
    DEFAULT_PATTERN_TABLE,
    PATTERN_TABLE_VERSION,
    PatternTable,
    load_pattern_table,
    phrase_regex,
)


@pytest.fixture
def table() -> PatternTable:
    return load_pattern_table()


def test_phrase_regex_is_word_bounded_for_ascii():
    import re

    pattern = re.compile(phrase_regex("find more"), re.IGNORECASE)
    assert pattern.search("please find  more")
    assert not pattern.search("findmore")
    assert not pattern.search("refind more")


@pytest.mark.parametrize(
    "text, days",
    [
        ("React tutorials from last week", 7),
        ("yesterday's bookmarks", 1),
        ("posts from the last 14 days", 14),
        ("this month", 30),
        ("最近3天的文章", 3),
        ("昨天添加的书签", 1),
        ("上个月收藏的", 30),
        ("react hooks", None),
    ],
)
def test_time_range(table, text, days):
    assert table.time_range(text) == days


def test_earliest_time_phrase_wins(table):
    assert table.time_range("yesterday or this month") == 1


def test_help_topics(table):
    assert table.help_topic("what are the shortcuts") == "settings"
    assert table.help_topic("how to search") == "search"
    assert table.help_topic("帮助") == "default"
    assert table.help_topic("help me find react docs") is None


def test_statistics_and_continuation(table):
    assert table.is_statistics("How many bookmarks did I save")
    assert table.is_statistics("这周收藏了多少")
    assert table.is_continuation("find more")
    assert table.is_continuation("继续查找更多")
    assert not table.is_continuation("furthermore")


def test_semantic_disable(table):
    assert table.disables_semantic("python keyword only")
    assert table.disables_semantic("只看关键词匹配 python")
    assert not table.disables_semantic("python keywords")


def test_pure_filter_detection(table):
    assert table.is_pure_filter(" 's   ")
    assert table.is_pure_filter("my saved")
    assert not table.is_pure_filter("react")


def test_override_file_replaces_sections(tmp_path):
    config = tmp_path / "planner_patterns.json"
    config.write_text(
        json.dumps({"version": 7, "continuation": ["again please"]}),
        encoding="utf-8",
    )

    table = load_pattern_table(str(config))

    assert table.version == 7
    assert table.is_continuation("again please")
    assert not table.is_continuation("find more")
    # Untouched sections keep their defaults.
    assert table.time_range("last week") == 7


def test_missing_override_file_uses_defaults(tmp_path):
    table = load_pattern_table(str(tmp_path / "missing.json"))

    assert table.version == PATTERN_TABLE_VERSION
    assert DEFAULT_PATTERN_TABLE["version"] == PATTERN_TABLE_VERSION


def test_extra_time_phrase_via_override(tmp_path):
    config = tmp_path / "planner_patterns.json"
    config.write_text(
        json.dumps(
            {"time": DEFAULT_PATTERN_TABLE["time"] + [{"phrase": "fortnight", "days": 14}]}
        ),
        encoding="utf-8",
    )

    table = load_pattern_table(str(config))

    assert table.time_range("articles from the last fortnight") == 14


@pytest.mark.parametrize(
    "text",
    [
        "feature flags in React",
        "VS Code settings sync",
        "how to use react hooks",
        "help wanted issues",
        "功能测试框架",
        "设置代理教程",
    ],
)
def test_topic_words_inside_searches_are_not_help(table, text):
    assert table.help_topic(text) is None


@pytest.mark.parametrize(
    "text, topic",
    [
        ("how do I change settings?", "settings"),
        ("what features are there", "features"),
        ("how to use?", "features"),
        ("how do i search by tag", "search"),
        ("help", "default"),
        ("怎么设置快捷键", "settings"),
        ("有哪些功能", "features"),
    ],
)
def test_question_shaped_help(table, text, topic):
    assert table.help_topic(text) == topic


@pytest.mark.parametrize(
    "text", ["statistics course notes", "python stats library", "how many ways to center a div"]
)
def test_counting_words_inside_searches_are_not_statistics(table, text):
    assert not table.is_statistics(text)


def test_statistics_phrases(table):
    assert table.is_statistics("how many did I save yesterday")
    assert table.is_statistics("Show my statistics")
    assert table.is_statistics("上个月添加了几个书签")
