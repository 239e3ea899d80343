import asyncio
import json
import logging
from typing import Optional, TypeVar

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from ...config.providers import (
    get_provider,
    requires_api_key,
    resolve_base_url,
    resolve_chat_model,
)
from ...core.exceptions import LLMError, LLMNotConfiguredError, StructuredOutputError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

SCHEMA_INSTRUCTION = """Reply with a single JSON object and nothing else.
It must conform to this JSON schema:
{schema}"""


def extract_json(content: str) -> str:
    """Cut the JSON object out of a reply that may be fenced or padded."""
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        text = text[start : end + 1]
    return text.strip()


def parse_structured(content: str, schema: type[T]) -> T:
    """Validate a model reply against a pydantic schema.

    Raises:
        StructuredOutputError: Reply is not valid JSON of the schema's shape.
    """
    try:
        return schema.model_validate_json(extract_json(content))
    except ValidationError as e:
        raise StructuredOutputError(
            f"Reply does not match {schema.__name__}: {e.error_count()} error(s)",
            raw=content,
        ) from e


class OpenAICompatibleClient:
    """Structured-output client for any OpenAI-compatible chat API."""

    def __init__(
        self,
        provider: str = "openai",
        api_key: str = "",
        base_url: str = "",
        model: str = "",
        max_tokens: int = 600,
        temperature: float = 0.1,
        timeout: float = 30.0,
    ):
        """Initialize client.

        Args:
            provider: Provider name from the provider table.
            api_key: API key; may be empty for local providers.
            base_url: Override the provider's default endpoint.
            model: Override the provider's default chat model.
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
            timeout: Seconds before a call is abandoned.
        """
        self._provider = (provider or "").lower()
        self._api_key = api_key
        self._base_url = resolve_base_url(self._provider, base_url)
        self._model = resolve_chat_model(self._provider, model)
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout
        self._client: AsyncOpenAI | None = None

    @property
    def model(self) -> str:
        return self._model

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            # Local servers ignore the key but the SDK requires one.
            self._client = AsyncOpenAI(
                base_url=self._base_url, api_key=self._api_key or self._provider
            )
        return self._client

    def is_configured(self) -> bool:
        spec = get_provider(self._provider)
        if spec is not None and not spec.supports_chat:
            return False
        if not self._base_url or not self._model:
            return False
        return bool(self._api_key) or not requires_api_key(self._provider)

    async def generate_object(
        self,
        system: str,
        prompt: str,
        schema: type[T],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> T:
        if not self.is_configured():
            raise LLMNotConfiguredError(
                f"Provider '{self._provider}' is not configured for chat"
            )

        schema_json = json.dumps(schema.model_json_schema(), ensure_ascii=False)
        messages = [
            {
                "role": "system",
                "content": f"{system}\n\n{SCHEMA_INSTRUCTION.format(schema=schema_json)}",
            },
            {"role": "user", "content": prompt},
        ]

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    max_tokens=max_tokens or self._max_tokens,
                    temperature=(
                        self._temperature if temperature is None else temperature
                    ),
                    response_format={"type": "json_object"},
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise LLMError(f"LLM call timed out after {self._timeout}s") from e
        except openai.OpenAIError as e:
            raise LLMError(f"LLM call failed: {e}") from e

        if not response.choices:
            raise StructuredOutputError("LLM returned no choices")

        content = response.choices[0].message.content or ""
        logger.debug(f"[llm] {self._model} replied {len(content)} chars")
        return parse_structured(content, schema)
