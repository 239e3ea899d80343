import asyncio
import logging
import sys

import httpx

from ..config.providers import requires_api_key, resolve_base_url
from ..config.settings import settings
from ..container import configure_container, container
from ..core.models.chat import ChatSearchOutcome
from ..core.services.conversation_session import ConversationSession
from ..core.services.hybrid_retriever import HybridRetriever
from ..core.protocols.bookmark_store import BookmarkStoreProtocol

logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")
logger = logging.getLogger(__name__)

EXIT_WORDS = {"exit", "quit", ":q"}
MORE_WORDS = {"more", ":more", "更多"}


def check_provider() -> bool:
    """Check the chat provider answers on its models endpoint.

    Returns:
        True if reachable, False otherwise.
    """
    base_url = resolve_base_url(settings.ai_provider, settings.ai_base_url)
    if not base_url:
        logger.error(f"Provider '{settings.ai_provider}' has no chat endpoint")
        return False
    if requires_api_key(settings.ai_provider) and not settings.ai_api_key:
        logger.error(f"Provider '{settings.ai_provider}' needs AI_API_KEY")
        return False

    headers = {}
    if settings.ai_api_key:
        headers["Authorization"] = f"Bearer {settings.ai_api_key}"

    logger.info(f"Checking {settings.ai_provider} at {base_url}")
    try:
        resp = httpx.get(f"{base_url.rstrip('/')}/models", headers=headers, timeout=10)
    except httpx.HTTPError as e:
        logger.error(f"Provider not reachable: {e}")
        return False

    if resp.status_code != 200:
        logger.error(f"Provider answered {resp.status_code}: {resp.text[:200]}")
        return False

    models = [m.get("id", "") for m in resp.json().get("data", [])]
    logger.info(f"Provider ready, {len(models)} models available")
    return True


def print_outcome(outcome: ChatSearchOutcome) -> None:
    print(outcome.response.answer)
    for index, bookmark in enumerate(outcome.bookmarks, 1):
        print(f"  [{index}] {bookmark.title} - {bookmark.url}")
    if outcome.response.next_suggestions:
        labels = " | ".join(s.label for s in outcome.response.next_suggestions)
        print(f"  > {labels}")


async def run_chat() -> None:
    session = container.resolve(ConversationSession)
    print("Type a question, 'more' for further results, 'exit' to leave.")
    while True:
        try:
            text = (await asyncio.to_thread(input, "you> ")).strip()
        except EOFError:
            break
        if not text:
            continue
        if text.lower() in EXIT_WORDS:
            break
        if text.lower() in MORE_WORDS and session.state.query:
            outcome = await session.more()
        else:
            outcome = await session.send(text)
        print_outcome(outcome)


async def run_ask(question: str) -> None:
    session = container.resolve(ConversationSession)
    print_outcome(await session.send(question))


async def run_stats() -> None:
    retriever = container.resolve(HybridRetriever)
    stats = await retriever.get_search_stats()
    coverage = stats.embedding_coverage
    print(f"Semantic search available: {stats.semantic_available}")
    print(
        f"Embedding coverage: {coverage.with_embedding}/{coverage.total} "
        f"({coverage.coverage}%)"
    )


async def run_similar(bookmark_id: str) -> None:
    retriever = container.resolve(HybridRetriever)
    store = container.resolve(BookmarkStoreProtocol)
    result = await retriever.find_similar(bookmark_id)
    bookmarks = {
        b.id: b for b in await store.get_bookmarks(ids=result.bookmark_ids)
    }
    if not result.items:
        print("No similar bookmarks found")
    for item in result.items:
        bookmark = bookmarks.get(item.bookmark_id)
        title = bookmark.title if bookmark else item.bookmark_id
        print(f"  {item.score:.2f}  {title}")


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: bookmark-search <command> [args]")
        print("Commands: chat, ask <question>, stats, similar <bookmark_id>, check")
        sys.exit(1)

    command = sys.argv[1]

    if command == "check":
        sys.exit(0 if check_provider() else 1)

    configure_container(settings)

    if command == "chat":
        asyncio.run(run_chat())
    elif command == "ask" and len(sys.argv) > 2:
        asyncio.run(run_ask(" ".join(sys.argv[2:])))
    elif command == "stats":
        asyncio.run(run_stats())
    elif command == "similar" and len(sys.argv) > 2:
        asyncio.run(run_similar(sys.argv[2]))
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
