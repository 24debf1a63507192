"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis (rule store)
    redis_url: str = "redis://localhost:6379/0"
    rules_key: str = "freight:rules"
    redis_timeout_s: float = 2.0

    # Local fallback when Redis is unreachable
    rules_fallback_path: str = "data/rules.json"

    # Batch uploads
    max_upload_mb: int = 10

    # App
    log_level: str = "INFO"
    environment: str = "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
