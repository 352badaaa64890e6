"""Client configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = "https://api.example.com"

    # Transcription Settings
    assembly_ai_api_key: str = ""
    transcription_base_url: str = "https://api.assemblyai.com/v2"
    transcription_poll_interval_seconds: float = 1.0
    transcription_timeout_seconds: float = 120.0

    # HTTP Settings
    request_timeout_seconds: float = 10.0
    upload_timeout_seconds: float = 30.0
    max_upload_size_mb: int = 10

    # Storage Settings
    token_store_path: str = "~/.gradeedu/credentials.json"

    # Environment Settings
    log_level: str = "INFO"
    environment: str = "development"
    debug: bool = False

    @property
    def max_upload_size_bytes(self) -> int:
        """Return max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
