
from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    # Chat / structured-output model
    ai_provider: str = "openai"
    ai_api_key: str = ""
    ai_base_url: str = ""
    ai_model: str = ""
    llm_temperature: float = 0.1
    answer_temperature: float = 0.3
    llm_max_tokens: int = 600
    llm_timeout: float = 30.0

    # Embeddings
    embedding_enabled: bool = False
    embedding_provider: str = "openai"
    embedding_api_key: str = ""
    embedding_base_url: str = ""
    embedding_model: str = ""
    embedding_dimensions: int | None = None

    # "zh" | "en"
    language: str = "en"

    bookmarks_path: str = "./bookmarks.json"
    embeddings_path: str = "./embeddings.json"

    search_top_k: int = 20
    keyword_title_weight: float = 3.0
    keyword_description_weight: float = 1.5
    keyword_tags_weight: float = 2.0
    keyword_url_weight: float = 0.5

    hybrid_keyword_weight: float = 0.4
    hybrid_semantic_weight: float = 0.6
    hybrid_time_decay: float = 0.001
    hybrid_filter_boost: float = 0.1

    semantic_min_score: float = 0.3
    similar_min_score: float = 0.5

    max_short_memory_turns: int = 6

    planner_patterns_path: str = "planner_patterns.json"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
