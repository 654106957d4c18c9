from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    log_level: str = "INFO"
    default_timezone: str = "UTC"
    dashboard_completed_lookback_days: int = 7

    plan_generator_url: str | None = None
    plan_generator_api_key: str | None = None
    plan_generator_timeout: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
