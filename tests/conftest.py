"""Shared test fixtures and fakes for pytest."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from quorum.config import Settings
from quorum.dispatch import Dispatcher
from quorum.providers.base import Generation, ProviderAdapter
from quorum.registry import AdapterRegistry


class FakeAdapter(ProviderAdapter):
    """Scripted adapter: per-model responses, delays and failures."""

    requires_credentials = False

    def __init__(
        self,
        provider: str = "openai",
        responses: dict[str, str | BaseException] | None = None,
        *,
        delays: dict[str, float] | None = None,
        tokens: int = 500,
    ) -> None:
        super().__init__()
        self.provider = provider
        self.responses = responses or {}
        self.delays = delays or {}
        self.tokens = tokens
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    async def _generate(
        self,
        model: str,
        prompt: str,
        *,
        system: str | None,
        images: Sequence[str],
        temperature: float,
        max_tokens: int | None,
    ) -> Generation:
        self.calls.append(model)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            delay = self.delays.get(model, 0.0)
            if delay:
                await asyncio.sleep(delay)
            response = self.responses.get(model, f"answer from {model}")
            if isinstance(response, BaseException):
                raise response
            return Generation(text=response, tokens_used=self.tokens)
        finally:
            self.active -= 1


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        max_parallel=3,
        provider_timeout=1.0,
        slow_provider_timeout=2.0,
        video_provider_timeout=3.0,
        cache_enabled=False,
        openai_api_key=None,
        anthropic_api_key=None,
        gemini_api_key=None,
        xai_api_key=None,
        deepseek_api_key=None,
        huggingface_api_key=None,
        replicate_api_token=None,
        runway_api_key=None,
    )


@pytest.fixture
def make_adapter() -> type[FakeAdapter]:
    return FakeAdapter


@pytest.fixture
def openai_fake() -> FakeAdapter:
    return FakeAdapter("openai")


@pytest.fixture
def anthropic_fake() -> FakeAdapter:
    return FakeAdapter("anthropic")


@pytest.fixture
def adapter_registry(openai_fake: FakeAdapter, anthropic_fake: FakeAdapter) -> AdapterRegistry:
    return AdapterRegistry({"openai": openai_fake, "anthropic": anthropic_fake})


@pytest.fixture
def dispatcher(adapter_registry: AdapterRegistry, test_settings: Settings) -> Dispatcher:
    return Dispatcher(adapter_registry, config=test_settings)
