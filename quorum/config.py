"""Configuration settings for the orchestration pipeline."""

from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _key(name: str) -> Any:
    """Accept both QUORUM_<NAME> and the provider's conventional <NAME>."""
    return Field(default=None, validation_alias=AliasChoices(f"QUORUM_{name}", name))


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUORUM_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Dispatch
    max_parallel: int = 3
    provider_timeout: float = 60.0  # seconds
    slow_provider_timeout: float = 90.0  # polling-based providers
    video_provider_timeout: float = 330.0  # long-running video jobs

    # Consensus thresholds
    similarity_threshold: float = 0.3
    cluster_majority_cutoff: float = 0.5
    hybrid_min_results: int = 3

    # Result cache
    cache_enabled: bool = False
    cache_backend: str = "memory"  # memory | redis
    cache_ttl_seconds: int = 600
    redis_url: str = "redis://localhost:6379/0"

    # Generation defaults
    default_temperature: float = 0.2
    default_max_tokens: int = 2000
    generation_temperature: float = 0.3
    generation_max_tokens: int = 16000

    log_level: str = "INFO"

    # Provider credentials and endpoints
    openai_api_key: str | None = _key("OPENAI_API_KEY")
    anthropic_api_key: str | None = _key("ANTHROPIC_API_KEY")
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("QUORUM_GEMINI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    xai_api_key: str | None = _key("XAI_API_KEY")
    deepseek_api_key: str | None = _key("DEEPSEEK_API_KEY")
    huggingface_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "QUORUM_HUGGINGFACE_API_KEY", "HUGGINGFACE_API_KEY", "HF_API_KEY"
        ),
    )
    replicate_api_token: str | None = _key("REPLICATE_API_TOKEN")
    runway_api_key: str | None = _key("RUNWAY_API_KEY")
    ollama_url: str = "http://localhost:11434"
    replicate_version: str | None = None
    huggingface_model: str = "meta-llama/Meta-Llama-3-8B-Instruct"

    def credential_for(self, provider: str) -> str | None:
        """Return the configured credential for a provider, if any."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
            "xai": self.xai_api_key,
            "deepseek": self.deepseek_api_key,
            "huggingface": self.huggingface_api_key,
            "replicate": self.replicate_api_token,
            "runway": self.runway_api_key,
        }.get(provider)


# Global settings instance
settings = Settings()
