import asyncio
import logging
from functools import cached_property

import numpy as np
from sentence_transformers import SentenceTransformer

from ...config.providers import embedding_model_key, resolve_embedding_model

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """In-process embedder for the ``local`` provider.

    E5 models expect a ``query:`` prefix on search text.
    """

    provider = "local"

    def __init__(
        self,
        model_name: str = "",
        enabled: bool = False,
        dimensions: int | None = None,
        query_prefix: str = "query: ",
    ):
        self._model_name = resolve_embedding_model(self.provider, model_name)
        self._enabled = enabled
        self._dimensions = dimensions
        self._query_prefix = query_prefix

    @property
    def model_key(self) -> str:
        return embedding_model_key(self.provider, self._model_name, self._dimensions)

    @cached_property
    def model(self) -> SentenceTransformer:
        logger.info(f"Loading embedding model: {self._model_name}")
        return SentenceTransformer(self._model_name)

    def warmup(self) -> None:
        _ = self.model
        logger.info("Embedding model warmed up")

    def is_enabled(self) -> bool:
        return self._enabled

    def is_provider_supported(self) -> bool:
        return True

    def has_credentials(self) -> bool:
        return True

    def encode(self, texts: str | list[str]) -> np.ndarray:
        return self.model.encode(texts, convert_to_numpy=True)

    async def embed(self, text: str) -> list[float]:
        vector = await asyncio.to_thread(self.encode, f"{self._query_prefix}{text}")
        return vector.tolist()
