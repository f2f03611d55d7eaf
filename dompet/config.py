from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    telegram_bot_token: str = ""
    db_path: str = "dompet.json"
    kv_path: str = "dompet_kv.json"
    redis_url: str = ""
    llm_model: str = "meta-llama/llama-4-scout"
    nlu_model: str = "qwen/qwen3-30b-a3b"
    log_level: str = "INFO"

    confirm_ttl_seconds: int = 60
    dedup_ttl_seconds: int = 300
    rate_limit_max: int = 30
    rate_limit_window_seconds: int = 60
    daily_ai_limit: int = 200
    history_size: int = 6
    max_input_length: int = 500


@lru_cache
def get_settings() -> Settings:
    return Settings()
