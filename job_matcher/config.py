from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # AI scoring
    ai_temperature: float = 0.2  # low for consistent matching
    ai_max_output_tokens: int = 1000
    ai_timeout_seconds: float = 30.0

    # Score cache
    cache_ttl_seconds: float = 12 * 60 * 60
    heuristic_cache_ttl_seconds: float = 15 * 60
    cache_max_entries: int = 2000
    cache_evict_batch: int = 400
    estimated_tokens_per_call: int = 1000

    # Batch matching
    batch_size: int = 8
    max_retries: int = 3
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 30.0
    retry_jitter_seconds: float = 1.0
    inter_batch_delay_seconds: float = 0.5

    # Personalization
    behavior_list_cap: int = 1000
    search_history_cap: int = 100
    interest_cap: int = 50
    max_personalization_boost: int = 20

    # Ranking & search
    min_match_score: int = 20
    match_job_cap: int = 50
    search_job_cap: int = 30
    semantic_window: int = 50
    semantic_min_results: int = 5
    suggestion_ttl_seconds: float = 5 * 60
    suggestion_limit: int = 10

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
