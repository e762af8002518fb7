"""Adapter contract shared by every provider."""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..errors import ProviderError, ProviderTimeoutError, error_chain_message
from ..models import OutputKind, RawResult, ResultStatus

logger = logging.getLogger(__name__)


@dataclass
class Generation:
    """What a concrete adapter extracts from a successful provider response."""

    text: str
    tokens_used: int | None = None
    url: str | None = None
    model: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


def estimate_tokens(*texts: str | None) -> int:
    """Rough token count (4 chars per token) for providers that do not report usage."""
    return math.ceil(sum(len(t or "") for t in texts) / 4)


class ProviderAdapter(ABC):
    """One adapter wraps exactly one external model endpoint.

    ``call`` never raises for provider-side failures; it returns a RawResult
    whose status is ``error`` or ``timeout``.
    """

    provider: str = ""
    kind: OutputKind = OutputKind.TEXT
    requires_credentials: bool = True
    credential_name: str = "API key"

    def __init__(self, *, api_key: str | None = None) -> None:
        self._api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self._api_key) or not self.requires_credentials

    async def call(
        self,
        model: str,
        prompt: str,
        *,
        system: str | None = None,
        images: Sequence[str] = (),
        temperature: float = 0.2,
        max_tokens: int | None = None,
    ) -> RawResult:
        if not self.configured:
            return RawResult.failure(
                self.provider, model, f"{self.credential_name} not configured", kind=self.kind
            )

        started = time.monotonic()
        try:
            generation = await self._generate(
                model,
                prompt,
                system=system,
                images=images,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except ProviderTimeoutError as e:
            return RawResult.failure(
                self.provider,
                model,
                str(e),
                status=ResultStatus.TIMEOUT,
                kind=self.kind,
                response_time_ms=_elapsed_ms(started),
            )
        except Exception as e:
            logger.debug("%s call for %s failed", self.provider, model, exc_info=True)
            return RawResult.failure(
                self.provider,
                model,
                error_chain_message(e),
                kind=self.kind,
                response_time_ms=_elapsed_ms(started),
            )

        metadata = dict(generation.metadata)
        if generation.model and generation.model != model:
            metadata["model_used"] = generation.model

        return RawResult(
            provider=self.provider,
            model=model,
            status=ResultStatus.OK,
            kind=self.kind,
            text=generation.text,
            url=generation.url,
            response_time_ms=_elapsed_ms(started),
            tokens_used=generation.tokens_used
            if generation.tokens_used is not None
            else estimate_tokens(prompt, generation.text),
            metadata=metadata,
        )

    @abstractmethod
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
        """Perform the provider call; raise on failure."""

    async def aclose(self) -> None:
        return None


class HTTPProviderAdapter(ProviderAdapter):
    """Adapter talking to a JSON HTTP API through a shared httpx client."""

    base_url: str = ""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(api_key=api_key)
        self._base_url = (base_url or self.base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: Any | None = None,
    ) -> Any:
        try:
            resp = await self._client.request(
                method, path, params=params, json=body, headers=self._headers()
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            text = e.response.text[:500]
            raise ProviderError(f"{self.provider} API error {status}: {text}") from e
        except httpx.RequestError as e:
            raise ProviderError(f"{self.provider} request failed ({method} {path}): {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(
                f"Invalid JSON response from {self.provider}: {resp.text[:200]}"
            ) from e


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
