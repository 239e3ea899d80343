"""Protocol interfaces for dependency injection."""
from .bookmark_store import BookmarkStoreProtocol
from .embedder import EmbedderProtocol
from .vector_store import VectorStoreProtocol
from .llm import StructuredLLMProtocol

__all__ = [
    "BookmarkStoreProtocol",
    "EmbedderProtocol",
    "VectorStoreProtocol",
    "StructuredLLMProtocol",
]
