"""Vector store protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.bookmark import Embedding


@runtime_checkable
class VectorStoreProtocol(Protocol):
    """Protocol for stored bookmark embeddings.

    Embeddings are keyed by (bookmark id, model key); several models may coexist.
    """

    async def get_embeddings_by_model(self, model_key: str) -> list[Embedding]:
        """Get every embedding produced by a model.

        Args:
            model_key: Model identifier.

        Returns:
            Embeddings for that model.
        """
        ...

    async def get_embedding(
        self, bookmark_id: str, model_key: Optional[str] = None
    ) -> Optional[Embedding]:
        """Get a bookmark's embedding.

        Args:
            bookmark_id: Bookmark id.
            model_key: Restrict to this model; any model when omitted.

        Returns:
            Embedding, or None if missing.
        """
        ...
