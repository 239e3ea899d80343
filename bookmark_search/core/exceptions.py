"""Core exception types for bookmark search."""
from typing import Optional


class BookmarkSearchError(Exception):
    """Base error for bookmark search failures."""


class LLMError(BookmarkSearchError):
    """Structured-output model call failed."""


class LLMNotConfiguredError(LLMError):
    """No usable chat provider or credential is configured."""


class StructuredOutputError(LLMError):
    """Model replied, but not with the requested shape."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class EmbeddingError(BookmarkSearchError):
    """Embedding provider could not embed the text."""


class EmbeddingRateLimitError(EmbeddingError):
    """Provider rejected the call with a rate limit."""

    def __init__(self, message: str, retry_after: Optional[int] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after
