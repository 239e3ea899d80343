"""Embedder protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding service."""

    provider: str

    @property
    def model_key(self) -> str:
        """Identifier of the model producing query vectors."""
        ...

    def is_enabled(self) -> bool:
        """Embedding feature switched on in configuration."""
        ...

    def is_provider_supported(self) -> bool:
        """Configured provider can produce embeddings."""
        ...

    def has_credentials(self) -> bool:
        """Credential present, or not needed for this provider."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Encode text to an embedding.

        Args:
            text: Text to encode.

        Returns:
            Embedding vector.

        Raises:
            EmbeddingError: Provider call failed.
        """
        ...
