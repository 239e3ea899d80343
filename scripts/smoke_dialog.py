#!/usr/bin/env python3
"""
Smoke test of the conversational search flow, run in-process.

Usage:
  python scripts/smoke_dialog.py

Options:
  --print-answers    Print full answers
  --dialog           Also run the free-form dialogue and print every turn
  --llm              Use the configured AI provider (rules only by default)
"""

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone

from bookmark_search.config.settings import settings
from bookmark_search.container import Container, configure_container
from bookmark_search.core.models.bookmark import Bookmark, Category
from bookmark_search.core.protocols.bookmark_store import BookmarkStoreProtocol
from bookmark_search.core.protocols.llm import StructuredLLMProtocol
from bookmark_search.core.services.conversation_session import ConversationSession
from bookmark_search.infrastructure.storage.json_store import InMemoryBookmarkStore

NOW = datetime.now(timezone.utc)

CATEGORIES = [
    Category("c-dev", "Development"),
    Category("c-news", "News"),
]

DEMO_BOOKMARKS = [
    ("b1", "React Hooks tutorial", "https://react.dev/learn/hooks", ["react"], "c-dev", 2),
    ("b2", "React Router tutorial", "https://reactrouter.com/tutorial", ["react"], "c-dev", 40),
    ("b3", "Vue.js tutorial", "https://vuejs.org/tutorial", ["vue"], "c-dev", 3),
    ("b4", "Python asyncio docs", "https://docs.python.org/3/library/asyncio.html", ["python"], "c-dev", 1),
    ("b5", "Tech news daily", "https://news.ycombinator.com", ["news"], "c-news", 0),
]

TESTS = [
    {
        "q": "React tutorials from last week",
        "expect_any": ["React Hooks tutorial"],
        "expect_none": ["React Router tutorial", "Vue.js tutorial"],
    },
    {
        "q": "yesterday's bookmarks",
        "expect_any": ["Python asyncio docs", "Tech news daily"],
        "expect_none": ["React Router tutorial"],
    },
    {
        "q": "how many bookmarks did I add this week",
        "expect_any": ["bookmark"],
    },
    {
        "q": "what are the shortcuts",
        "expect_any": ["shortcut", "Ctrl", "settings"],
    },
    {
        "q": "kubernetes operators",
        "expect_any": ["No matching bookmarks", "no matching"],
    },
]

DIALOGUE = [
    "React tutorials",
    "find more",
    "only from last week",
    "python asyncio",
    "help",
]


def build_container(use_llm: bool) -> Container:
    target = configure_container(settings, Container())
    store = InMemoryBookmarkStore(categories=CATEGORIES)
    for bookmark_id, title, url, tags, category_id, age in DEMO_BOOKMARKS:
        created = NOW - timedelta(days=age, hours=1)
        store.add(Bookmark(bookmark_id, url, title, created, created, "", tags, category_id))
    target.register(BookmarkStoreProtocol, lambda: store, singleton=True)
    if not use_llm:
        target.register(StructuredLLMProtocol, lambda: None, singleton=True)
    return target


def normalize(text: str) -> str:
    return (text or "").lower()


def check_expectations(answer: str, test: dict) -> list[str]:
    errors = []
    ans = normalize(answer)

    expect_any = test.get("expect_any") or []
    expect_none = test.get("expect_none") or []

    if expect_any:
        if not any(normalize(x) in ans for x in expect_any):
            errors.append(f"missing any of: {expect_any}")

    for token in expect_none:
        if normalize(token) in ans:
            errors.append(f"should not contain: {token}")

    return errors


def render(outcome) -> str:
    lines = [outcome.response.answer]
    lines.extend(f"[{i}] {b.title}" for i, b in enumerate(outcome.bookmarks, 1))
    return "\n".join(lines)


async def run(args) -> int:
    target = build_container(args.llm)

    failures = 0
    for idx, test in enumerate(TESTS, start=1):
        q = test["q"]
        print(f"\nQ{idx}: {q}")
        session = target.resolve(ConversationSession)
        answer = render(await session.send(q))
        if args.print_answers:
            print("A:", answer)

        errors = check_expectations(answer, test)
        if errors:
            failures += 1
            print("FAIL:", "; ".join(errors))
        else:
            print("OK")

    if failures:
        print(f"\nFAILED: {failures} test(s) failed")
        return 1
    print("\nALL OK")

    if args.dialog:
        session = target.resolve(ConversationSession)
        print("\nDIALOGUE:\n")
        for idx, q in enumerate(DIALOGUE, start=1):
            print(f"U{idx}: {q}")
            answer = render(await session.send(q))
            print(f"A{idx}: {answer}\n")
    return 0


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--print-answers", action="store_true")
    parser.add_argument("--dialog", action="store_true")
    parser.add_argument("--llm", action="store_true")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
