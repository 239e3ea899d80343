"""LLM protocol for dependency injection."""
from typing import Optional, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


@runtime_checkable
class StructuredLLMProtocol(Protocol):
    """Protocol for a structured-output LLM client."""

    def is_configured(self) -> bool:
        """Provider and credential are usable."""
        ...

    async def generate_object(
        self,
        system: str,
        prompt: str,
        schema: type[T],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> T:
        """Ask the model for a value conforming to ``schema``.

        Args:
            system: System prompt.
            prompt: User prompt.
            schema: Pydantic model describing the expected shape.
            temperature: Override sampling temperature.
            max_tokens: Override max response tokens.

        Returns:
            Validated schema instance.

        Raises:
            LLMError: Call failed, timed out or returned a malformed value.
        """
        ...
