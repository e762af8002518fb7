"""Concurrent fan-out of one request to several models."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace

from .cache import ResultCache
from .config import Settings, settings
from .errors import error_chain_message
from .models import GenerationRequest, RawResult, ResultStatus
from .registry import AdapterRegistry, default_adapter_registry, get_model_info, timeout_for

logger = logging.getLogger(__name__)


def batched(models: tuple[str, ...], size: int) -> list[tuple[str, ...]]:
    return [models[i : i + size] for i in range(0, len(models), size)]


class Dispatcher:
    """Runs one GenerationRequest against every requested model.

    Models run in sequential batches of ``max_parallel``; calls inside a batch
    run concurrently, each under its own timeout. One slow or failing model
    never affects the others: every model yields exactly one RawResult.
    """

    def __init__(
        self,
        adapters: AdapterRegistry | None = None,
        *,
        cache: ResultCache | None = None,
        config: Settings | None = None,
    ) -> None:
        self._config = config or settings
        if adapters is None:
            adapters = default_adapter_registry(self._config)
        self._adapters = adapters
        self._cache = cache

    @property
    def adapters(self) -> AdapterRegistry:
        return self._adapters

    async def dispatch(self, request: GenerationRequest) -> list[RawResult]:
        key = request.cache_key()
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.info("Cache hit for %d model(s)", len(cached))
                return cached

        size = request.max_parallel or self._config.max_parallel
        results: list[RawResult] = []
        for batch in batched(request.models, size):
            outcomes = await asyncio.gather(
                *[self._call(model, request) for model in batch],
                return_exceptions=True,
            )
            for model, outcome in zip(batch, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    if isinstance(outcome, asyncio.CancelledError):
                        raise outcome
                    outcome = RawResult.failure(
                        _provider_name(model), model, error_chain_message(outcome)
                    )
                results.append(outcome)

        # Failures stay uncached so a recovered provider is retried.
        if self._cache is not None and all(r.ok for r in results):
            await self._cache.set(key, results)
        return results

    async def _call(self, model: str, request: GenerationRequest) -> RawResult:
        resolved = self._adapters.resolve(model)
        if resolved is None:
            info = get_model_info(model)
            if info is None:
                error = f"Unknown model: {model}"
            else:
                error = f"No adapter registered for provider {info.provider}"
            logger.warning("%s", error)
            return RawResult.failure(_provider_name(model), model, error)

        info, adapter = resolved
        timeout = timeout_for(model, self._config)
        started = time.monotonic()
        try:
            result = await asyncio.wait_for(
                adapter.call(
                    info.model,
                    request.prompt,
                    system=request.system,
                    images=request.images,
                    temperature=request.temperature,
                    max_tokens=request.max_tokens,
                ),
                timeout=timeout,
            )
        except TimeoutError:
            logger.warning("%s timed out after %.0fs", model, timeout)
            return RawResult.failure(
                str(info.provider),
                model,
                f"Timed out after {timeout:g}s",
                status=ResultStatus.TIMEOUT,
                kind=info.capabilities.kind,
                response_time_ms=int((time.monotonic() - started) * 1000),
            )
        except Exception as e:
            logger.warning("%s failed: %s", model, e)
            return RawResult.failure(
                str(info.provider),
                model,
                error_chain_message(e),
                kind=info.capabilities.kind,
                response_time_ms=int((time.monotonic() - started) * 1000),
            )

        if result.model != model:
            result = replace(result, model=model)
        if result.ok:
            logger.info("%s completed in %sms", model, result.response_time_ms)
        else:
            logger.warning("%s returned %s: %s", model, result.status, result.error)
        return result


def _provider_name(model: str) -> str:
    info = get_model_info(model)
    return str(info.provider) if info else "unknown"
