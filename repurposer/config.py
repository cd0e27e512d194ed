from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./repurposer.db"

    # JWT (bearer tokens are issued by the identity service, verified here)
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Anthropic Messages API (proxied by /api/ai/messages)
    anthropic_api_key: str = ""
    anthropic_api_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_version: str = "2023-06-01"
    anthropic_model: str = "claude-sonnet-4-20250514"
    provider_timeout_seconds: float = 120.0

    # Generation defaults
    generation_max_tokens: int = 4000
    default_brand_voice: str = "Write in a professional, engaging tone."

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def missing_server_settings(settings: Settings) -> list[str]:
    """Names of required server credentials that are not configured."""
    missing = []
    if not settings.database_url:
        missing.append("DATABASE_URL")
    if not settings.anthropic_api_key:
        missing.append("ANTHROPIC_API_KEY")
    return missing
