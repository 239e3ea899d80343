"""AI provider defaults.

Adding a provider is a table edit: every lookup goes through ``PROVIDERS``.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProviderSpec:
    """Static defaults for an OpenAI-compatible provider."""
    name: str
    base_url: str
    chat_model: str
    embedding_model: str = ""
    supports_embedding: bool = False
    requires_api_key: bool = True
    supports_chat: bool = True


PROVIDERS: dict[str, ProviderSpec] = {
    spec.name: spec
    for spec in (
        ProviderSpec(
            "openai",
            "https://api.openai.com/v1",
            "gpt-4o-mini",
            "text-embedding-3-small",
            supports_embedding=True,
        ),
        ProviderSpec(
            "anthropic",
            "https://api.anthropic.com/v1/",
            "claude-3-5-haiku-latest",
        ),
        ProviderSpec(
            "google",
            "https://generativelanguage.googleapis.com/v1beta/openai/",
            "gemini-1.5-flash",
            "text-embedding-004",
            supports_embedding=True,
        ),
        ProviderSpec("deepseek", "https://api.deepseek.com/v1", "deepseek-chat"),
        ProviderSpec("groq", "https://api.groq.com/openai/v1", "llama-3.1-8b-instant"),
        ProviderSpec(
            "mistral",
            "https://api.mistral.ai/v1",
            "mistral-small-latest",
            "mistral-embed",
            supports_embedding=True,
        ),
        ProviderSpec("moonshot", "https://api.moonshot.cn/v1", "moonshot-v1-8k"),
        ProviderSpec(
            "zhipu",
            "https://open.bigmodel.cn/api/paas/v4",
            "glm-4-flash",
            "embedding-3",
            supports_embedding=True,
        ),
        ProviderSpec(
            "siliconflow",
            "https://api.siliconflow.cn/v1",
            "Qwen/Qwen2.5-7B-Instruct",
            "BAAI/bge-m3",
            supports_embedding=True,
        ),
        ProviderSpec(
            "ollama",
            "http://localhost:11434/v1",
            "qwen2.5:7b",
            "nomic-embed-text",
            supports_embedding=True,
            requires_api_key=False,
        ),
        ProviderSpec(
            "local",
            "",
            "",
            "intfloat/multilingual-e5-base",
            supports_embedding=True,
            requires_api_key=False,
            supports_chat=False,
        ),
        ProviderSpec(
            "custom",
            "",
            "gpt-4o-mini",
            "text-embedding-3-small",
            supports_embedding=True,
        ),
    )
}


def get_provider(name: str) -> Optional[ProviderSpec]:
    return PROVIDERS.get((name or "").lower())


def is_embedding_supported(name: str) -> bool:
    spec = get_provider(name)
    return spec is not None and spec.supports_embedding


def requires_api_key(name: str) -> bool:
    """Unknown providers are treated as remote and need a key."""
    spec = get_provider(name)
    return spec.requires_api_key if spec else True


def resolve_base_url(name: str, override: str = "") -> str:
    if override:
        return override
    spec = get_provider(name)
    return spec.base_url if spec else ""


def resolve_chat_model(name: str, override: str = "") -> str:
    if override:
        return override
    spec = get_provider(name)
    return spec.chat_model if spec else ""


def resolve_embedding_model(name: str, override: str = "") -> str:
    if override:
        return override
    spec = get_provider(name)
    return spec.embedding_model if spec else ""


def embedding_model_key(
    name: str, model: str = "", dimensions: Optional[int] = None
) -> str:
    """Identifier tying stored vectors to the model that produced them.

    Format: ``provider:model:dimensions:v1``.
    """
    actual_model = resolve_embedding_model(name, model) or "unknown"
    dim = dimensions if dimensions else "auto"
    return f"{name}:{actual_model}:{dim}:v1"
