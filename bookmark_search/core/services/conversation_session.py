"""Conversation session - holds the latest state and drops superseded results."""

import itertools
import logging
from dataclasses import replace
from typing import Optional

from ..models.chat import ChatSearchOutcome, ConversationState
from ..models.search import SearchFilters
from .chat_search_agent import ChatSearchAgent

logger = logging.getLogger(__name__)


class ConversationSession:
    """Caller-side holder of one conversation.

    Every call takes a request token. When a newer call has started before
    an older one resolves, the older outcome is returned with ``stale=True``
    and its state is not applied.
    """

    def __init__(
        self, agent: ChatSearchAgent, state: Optional[ConversationState] = None
    ):
        self._agent = agent
        self._state = state or ConversationState()
        self._tokens = itertools.count(1)
        self._latest = 0

    @property
    def state(self) -> ConversationState:
        return self._state

    def reset(self) -> None:
        """Start a fresh conversation; in-flight results become stale."""
        self._latest = next(self._tokens)
        self._state = ConversationState()

    async def send(self, text: str) -> ChatSearchOutcome:
        token = self._next_token()
        outcome = await self._agent.search(text, self._state)
        return self._apply(token, outcome)

    async def more(self) -> ChatSearchOutcome:
        token = self._next_token()
        outcome = await self._agent.continue_search(self._state)
        return self._apply(token, outcome)

    async def apply_filter(self, filter_update: SearchFilters) -> ChatSearchOutcome:
        token = self._next_token()
        outcome = await self._agent.apply_filter(filter_update, self._state)
        return self._apply(token, outcome)

    def _next_token(self) -> int:
        self._latest = next(self._tokens)
        return self._latest

    def _apply(self, token: int, outcome: ChatSearchOutcome) -> ChatSearchOutcome:
        if token != self._latest:
            logger.info(f"Dropping stale result (token {token}, latest {self._latest})")
            return replace(outcome, stale=True)
        self._state = outcome.new_state
        return outcome
