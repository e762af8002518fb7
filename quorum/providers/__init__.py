from __future__ import annotations

from ..config import Settings
from .anthropic import AnthropicAdapter
from .base import Generation, HTTPProviderAdapter, ProviderAdapter
from .gemini import GeminiAdapter
from .huggingface import HuggingFaceAdapter
from .ollama import OllamaAdapter
from .openai_compat import DeepSeekAdapter, OpenAIAdapter, XAIAdapter
from .polling import PollingAdapter, ReplicateAdapter, RunwayAdapter


def build_adapters(config: Settings) -> dict[str, ProviderAdapter]:
    """One adapter per provider, credentials taken from settings."""
    return {
        "openai": OpenAIAdapter(api_key=config.openai_api_key),
        "anthropic": AnthropicAdapter(api_key=config.anthropic_api_key),
        "gemini": GeminiAdapter(api_key=config.gemini_api_key),
        "xai": XAIAdapter(api_key=config.xai_api_key),
        "deepseek": DeepSeekAdapter(api_key=config.deepseek_api_key),
        "huggingface": HuggingFaceAdapter(
            api_key=config.huggingface_api_key, default_model=config.huggingface_model
        ),
        "ollama": OllamaAdapter(base_url=config.ollama_url),
        "replicate": ReplicateAdapter(
            api_key=config.replicate_api_token, default_version=config.replicate_version
        ),
        "runway": RunwayAdapter(api_key=config.runway_api_key),
    }


__all__ = [
    "AnthropicAdapter",
    "DeepSeekAdapter",
    "GeminiAdapter",
    "Generation",
    "HTTPProviderAdapter",
    "HuggingFaceAdapter",
    "OllamaAdapter",
    "OpenAIAdapter",
    "PollingAdapter",
    "ProviderAdapter",
    "ReplicateAdapter",
    "RunwayAdapter",
    "XAIAdapter",
    "build_adapters",
]
