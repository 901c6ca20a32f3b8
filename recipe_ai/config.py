"""Application configuration using pydantic-settings."""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Model provider
    model_provider: Literal["gemini", "local"] = "gemini"
    model_temperature: float = 0.7

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # Local OpenAI-compatible server (LM Studio, Ollama, vLLM...)
    local_model_base_url: str = "http://localhost:1234/v1"
    local_model_name: str = "google/gemma-3-4b"
    local_model_api_key: str = "sk-no-key-required"

    # Server
    port: int = 8080
    host: str = "0.0.0.0"

    # Logging
    log_level: str = "INFO"

    # HTTP Settings
    http_timeout: int = 120  # seconds, per model call
    max_request_size: int = 10 * 1024 * 1024  # 10MB

    # Retry / backoff for overloaded model backends
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 2.0
    retry_backoff_multiplier: float = 2.0

    # Generation pipeline
    history_sample_size: int = 3
    generation_timeout_seconds: float = 300.0
    image_analysis_timeout_seconds: float = 110.0
    recipe_cache_ttl_seconds: int = 24 * 60 * 60
    meal_rules_path: Optional[str] = None

    # Rate Limiting
    rate_limit_per_hour: int = 100

    # CORS
    cors_origins: str = "*"  # Comma-separated origins or "*" for all

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get list of CORS origins."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Global settings instance
settings = Settings()
