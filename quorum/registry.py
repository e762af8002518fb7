"""Static catalogue of providers, models and their capabilities."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

from .config import Settings, settings
from .models import OutputKind

if TYPE_CHECKING:
    from .providers.base import ProviderAdapter


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    XAI = "xai"
    DEEPSEEK = "deepseek"
    HUGGINGFACE = "huggingface"
    OLLAMA = "ollama"
    REPLICATE = "replicate"
    RUNWAY = "runway"


@dataclass(frozen=True)
class ModelCapabilities:
    """Relative cost/speed (0-14 scale) and feature flags of one model."""

    cost: float = 1
    speed: float = 3
    json: bool = False
    code: bool = False
    vision: bool = False
    kind: OutputKind = OutputKind.TEXT
    async_job: bool = False
    local: bool = False
    dynamic_model_id: bool = False
    alias_of: str | None = None


@dataclass(frozen=True)
class ModelInfo:
    provider: Provider
    model: str
    capabilities: ModelCapabilities


_caps = ModelCapabilities

_CATALOGUE: dict[Provider, dict[str, ModelCapabilities]] = {
    Provider.OPENAI: {
        "gpt-4o": _caps(cost=5, speed=3, json=True, code=True, vision=True),
        "gpt-4o-mini": _caps(cost=2, speed=5, json=True, code=True, vision=True),
        "o1-preview": _caps(cost=8, speed=2, json=True, code=True),
        "o1-mini": _caps(cost=4, speed=3, json=True, code=True),
        "gpt5": _caps(alias_of="gpt-4o"),
    },
    Provider.ANTHROPIC: {
        "claude-3-5-sonnet-20241022": _caps(cost=5, speed=4, json=True, code=True, vision=True),
        "claude-3-5-sonnet-20240620": _caps(cost=4, speed=3, json=True, code=True, vision=True),
        "claude-3-opus-20240229": _caps(cost=6, speed=2, json=True, code=True, vision=True),
        "claude-3-haiku-20240307": _caps(cost=1, speed=5, json=True, code=True, vision=True),
    },
    Provider.GEMINI: {
        "gemini-2.5-pro": _caps(cost=4, speed=2, json=True, code=True, vision=True),
        "gemini-1.5-flash": _caps(cost=2, speed=5, json=True, code=True, vision=True),
        "gemini-2.0-flash-exp": _caps(cost=2, speed=5, json=True, code=True, vision=True),
    },
    Provider.XAI: {
        "grok-2-1212": _caps(cost=3, speed=4, json=True, code=True, vision=True),
        "grok-2-vision-1212": _caps(cost=3, speed=4, json=True, code=True, vision=True),
        "grok-beta": _caps(cost=2, speed=5, json=True, code=True),
    },
    Provider.DEEPSEEK: {
        "deepseek-chat": _caps(cost=1, speed=5, json=True, code=True),
        "deepseek-coder": _caps(cost=1, speed=5, json=True, code=True),
    },
    Provider.HUGGINGFACE: {
        "text-generation": _caps(cost=1, speed=3, code=True, dynamic_model_id=True),
        "image-generation": _caps(cost=1, speed=2, kind=OutputKind.IMAGE, dynamic_model_id=True),
    },
    Provider.OLLAMA: {
        "llama3.2": _caps(cost=0, speed=3, local=True, code=True),
        "llama3.1": _caps(cost=0, speed=2, local=True, code=True),
        "codellama": _caps(cost=0, speed=2, local=True, code=True),
        "mistral": _caps(cost=0, speed=3, local=True, code=True),
        "qwen2.5-coder": _caps(cost=0, speed=3, local=True, code=True),
    },
    Provider.REPLICATE: {
        "prediction": _caps(cost=2, speed=2, async_job=True, dynamic_model_id=True),
    },
    Provider.RUNWAY: {
        "gen-3-alpha": _caps(cost=12, speed=1, vision=True, kind=OutputKind.VIDEO, async_job=True),
        "gen-3.5": _caps(cost=14, speed=1, vision=True, kind=OutputKind.VIDEO, async_job=True),
    },
}

# Read-only view; safe for unlimited concurrent readers.
REGISTRY: Mapping[Provider, Mapping[str, ModelCapabilities]] = MappingProxyType(
    {provider: MappingProxyType(models) for provider, models in _CATALOGUE.items()}
)

_DYNAMIC_HF = ModelCapabilities(cost=1, speed=3, code=True, dynamic_model_id=True)
_DYNAMIC_RUNWAY = ModelCapabilities(cost=10, speed=1, kind=OutputKind.VIDEO, async_job=True)
_DYNAMIC_REPLICATE = ModelCapabilities(cost=2, speed=2, async_job=True, dynamic_model_id=True)


def get_model_info(model: str) -> ModelInfo | None:
    """Resolve a model id (or alias) to its provider and capabilities."""
    for provider, models in REGISTRY.items():
        capabilities = models.get(model)
        if capabilities is None:
            continue
        if capabilities.alias_of:
            target = capabilities.alias_of
            return ModelInfo(provider=provider, model=target, capabilities=models[target])
        return ModelInfo(provider=provider, model=model, capabilities=capabilities)

    if model.startswith("replicate:"):
        return ModelInfo(Provider.REPLICATE, model.split(":", 1)[1], _DYNAMIC_REPLICATE)
    if "/" in model:
        return ModelInfo(Provider.HUGGINGFACE, model, _DYNAMIC_HF)
    if model.startswith("gen-"):
        return ModelInfo(Provider.RUNWAY, model, _DYNAMIC_RUNWAY)
    return None


def iter_models() -> Iterator[ModelInfo]:
    """Yield every catalogued (non-alias) model."""
    for provider, models in REGISTRY.items():
        for model, capabilities in models.items():
            if capabilities.alias_of:
                continue
            yield ModelInfo(provider=provider, model=model, capabilities=capabilities)


def timeout_for(model: str, config: Settings | None = None) -> float:
    """Per-call timeout: polling providers get the longer ceilings."""
    config = config or settings
    info = get_model_info(model)
    if info is None or not info.capabilities.async_job:
        return config.provider_timeout
    if info.capabilities.kind == OutputKind.VIDEO:
        return config.video_provider_timeout
    return config.slow_provider_timeout


def is_configured(provider: Provider | str, config: Settings | None = None) -> bool:
    config = config or settings
    if provider == Provider.OLLAMA:
        return True
    return bool(config.credential_for(str(provider)))


def configured_providers(config: Settings | None = None) -> list[Provider]:
    return [p for p in Provider if is_configured(p, config)]


class AdapterRegistry:
    """Maps provider identifiers to adapter instances."""

    def __init__(self, adapters: Mapping[str, ProviderAdapter] | None = None) -> None:
        self._adapters: dict[str, ProviderAdapter] = dict(adapters or {})

    def register(self, provider: Provider | str, adapter: ProviderAdapter) -> None:
        self._adapters[str(provider)] = adapter

    def get(self, provider: Provider | str) -> ProviderAdapter | None:
        return self._adapters.get(str(provider))

    def providers(self) -> list[str]:
        return list(self._adapters)

    def resolve(self, model: str) -> tuple[ModelInfo, ProviderAdapter] | None:
        """Find the model's provider and the adapter serving it."""
        info = get_model_info(model)
        if info is None:
            return None
        adapter = self.get(info.provider)
        if adapter is None:
            return None
        return info, adapter

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()


def default_adapter_registry(config: Settings | None = None) -> AdapterRegistry:
    """Registry wired with one adapter per known provider."""
    from .providers import build_adapters

    return AdapterRegistry(build_adapters(config or settings))
