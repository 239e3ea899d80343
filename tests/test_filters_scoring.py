"""
Tests for the shared filter predicate and scoring strategies.
"""

from datetime import timedelta

import pytest

from bookmark_search.core.models.search import SearchFilters, SearchResultItem
from bookmark_search.core.strategies import (
    FilterBoostStrategy,
    TimeDecayStrategy,
    matches_filters,
)

from conftest import NOW, make_bookmark


def test_no_filters_matches_everything():
    bookmark = make_bookmark("b1", "Anything")
    assert matches_filters(bookmark, None)
    assert matches_filters(bookmark, SearchFilters())


def test_category_is_exact_match():
    bookmark = make_bookmark("b1", "Doc", category_id="c-dev")
    assert matches_filters(bookmark, SearchFilters(category_id="c-dev"))
    assert not matches_filters(bookmark, SearchFilters(category_id="c-de"))


def test_tags_match_any():
    bookmark = make_bookmark("b1", "Doc", tags=["react", "hooks"])
    assert matches_filters(bookmark, SearchFilters(tags_any=("vue", "hooks")))
    assert not matches_filters(bookmark, SearchFilters(tags_any=("vue",)))


def test_domain_is_hostname_substring():
    bookmark = make_bookmark("b1", "Repo", url="https://github.com/org/repo")
    assert matches_filters(bookmark, SearchFilters(domain="github.com"))
    assert matches_filters(bookmark, SearchFilters(domain="github"))
    assert not matches_filters(bookmark, SearchFilters(domain="gitlab.com"))


def test_unparsable_url_never_matches_domain():
    bookmark = make_bookmark("b1", "Broken", url="http://[::1")
    assert not matches_filters(bookmark, SearchFilters(domain="example.com"))

    no_host = make_bookmark("b2", "Relative", url="/just/a/path")
    assert not matches_filters(no_host, SearchFilters(domain="path"))


def test_time_range_keeps_recent_bookmarks():
    recent = make_bookmark("b1", "New", days_ago=2)
    old = make_bookmark("b2", "Old", days_ago=9)
    filters = SearchFilters(time_range_days=7)

    assert matches_filters(recent, filters, now=NOW)
    assert not matches_filters(old, filters, now=NOW)


def test_unparsable_url_falls_back_to_raw_url():
    bookmark = make_bookmark("b1", "Broken", url="http://[::1")

    assert bookmark.domain == "http://[::1"
    assert "url: http://[::1" in bookmark.embedding_text()
    assert len(bookmark.content_checksum()) == 12


@pytest.mark.parametrize("days", [1_000_000, 10**9])
def test_time_range_beyond_calendar_is_unconstrained(days):
    ancient = make_bookmark("b1", "Ancient", days_ago=20_000)

    assert matches_filters(ancient, SearchFilters(time_range_days=days), now=NOW)


def test_time_decay_stays_within_ten_percent():
    strategy = TimeDecayStrategy(decay_rate=0.001, now=NOW)

    assert strategy.factor(NOW) == pytest.approx(1.0)
    assert strategy.factor(NOW - timedelta(days=500)) == pytest.approx(0.95)
    assert strategy.factor(NOW - timedelta(days=5000)) == pytest.approx(0.9)
    # Future timestamps are treated as brand new.
    assert strategy.factor(NOW + timedelta(days=3)) == pytest.approx(1.0)


def test_time_decay_prefers_newer_of_equal_scores():
    new = make_bookmark("new", "A", days_ago=1)
    old = make_bookmark("old", "A", days_ago=300)
    items = [SearchResultItem("old", 1.0), SearchResultItem("new", 1.0)]

    TimeDecayStrategy(now=NOW).apply(items, {"new": new, "old": old}, None)

    scores = {item.bookmark_id: item.score for item in items}
    assert scores["new"] > scores["old"]


def test_filter_boost_multiplies_per_hit_dimension():
    both = make_bookmark("both", "A", tags=["react"], category_id="c-fe")
    tag_only = make_bookmark("tag", "A", tags=["react"])
    items = [SearchResultItem("both", 1.0), SearchResultItem("tag", 1.0)]
    filters = SearchFilters(category_id="c-fe", tags_any=("react",))

    FilterBoostStrategy(boost=0.1).apply(items, {"both": both, "tag": tag_only}, filters)

    assert items[0].score == pytest.approx(1.21)
    assert items[1].score == pytest.approx(1.1)


def test_filter_boost_ignores_time_and_domain_filters():
    bookmark = make_bookmark("b1", "A", url="https://github.com")
    items = [SearchResultItem("b1", 0.5)]

    FilterBoostStrategy().apply(
        items, {"b1": bookmark}, SearchFilters(domain="github.com", time_range_days=7)
    )

    assert items[0].score == 0.5
