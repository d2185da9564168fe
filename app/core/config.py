import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global configuration for environment variables."""

    APP_NAME: str = "Wingman"
    ENV: str = os.getenv("ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server config
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8080))

    # LLM (any pydantic-ai model string, e.g. "openai:gpt-4o-mini")
    LLM_MODEL: str = "groq:llama-3.3-70b-versatile"
    LLM_MAX_TOKENS: int = 2048
    MAX_TOOL_ROUND_TRIPS: int = 8

    # Maps
    GOOGLE_MAPS_API_KEY: str | None = None
    MAPS_TIMEOUT_SECONDS: float = 10.0
    MAPS_SEARCH_RADIUS_METERS: int = 5000

    # Guest sessions
    GUEST_TOKEN_SECRET: str = "dev-guest-secret"
    GUEST_MAX_MESSAGES: int = 5
    GUEST_SESSION_DURATION_SECONDS: int = 24 * 60 * 60
    GUEST_COOKIE_NAME: str = "guest_token"

    # Auth
    JWT_SUPER_SECRET: str = "dev-secret"
    JWT_REFRESH_SECRET: str = "dev-refresh-secret"

    # Postgres
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


settings = Settings()
