import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from ...config.providers import (
    embedding_model_key,
    is_embedding_supported,
    requires_api_key,
    resolve_base_url,
    resolve_embedding_model,
)
from ...core.exceptions import EmbeddingError, EmbeddingRateLimitError

logger = logging.getLogger(__name__)


def _retry_after(error: openai.RateLimitError) -> Optional[int]:
    response = error.response
    value = response.headers.get("retry-after") if response is not None else None
    try:
        return int(float(value)) if value else None
    except ValueError:
        return None


class OpenAIEmbedder:
    """Query embedder for OpenAI-compatible embedding APIs."""

    def __init__(
        self,
        provider: str = "openai",
        enabled: bool = False,
        api_key: str = "",
        base_url: str = "",
        model: str = "",
        dimensions: Optional[int] = None,
        timeout: float = 30.0,
    ):
        self.provider = (provider or "").lower()
        self._enabled = enabled
        self._api_key = api_key
        self._base_url = resolve_base_url(self.provider, base_url)
        self._model = resolve_embedding_model(self.provider, model)
        self._dimensions = dimensions
        self._timeout = timeout
        self._client: AsyncOpenAI | None = None

    @property
    def model_key(self) -> str:
        return embedding_model_key(self.provider, self._model, self._dimensions)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=self._base_url,
                api_key=self._api_key or self.provider,
                timeout=self._timeout,
            )
        return self._client

    def is_enabled(self) -> bool:
        return self._enabled

    def is_provider_supported(self) -> bool:
        return is_embedding_supported(self.provider) and bool(self._base_url)

    def has_credentials(self) -> bool:
        return bool(self._api_key) or not requires_api_key(self.provider)

    async def embed(self, text: str) -> list[float]:
        options = {"dimensions": self._dimensions} if self._dimensions else {}
        try:
            response = await self.client.embeddings.create(
                model=self._model, input=text, **options
            )
        except openai.RateLimitError as e:
            retry_after = _retry_after(e)
            logger.warning(f"Embedding rate limited (retry after {retry_after}s)")
            raise EmbeddingRateLimitError(str(e), retry_after=retry_after) from e
        except openai.OpenAIError as e:
            raise EmbeddingError(f"Embedding call failed: {e}") from e

        if not response.data:
            raise EmbeddingError("Embedding provider returned no vectors")
        return list(response.data[0].embedding)
