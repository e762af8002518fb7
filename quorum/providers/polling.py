"""Adapters for asynchronous job APIs: submit, then poll until a terminal state."""

from __future__ import annotations

import asyncio
import json
import logging
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ..errors import ProviderError, ProviderTimeoutError
from ..models import OutputKind
from .base import Generation, HTTPProviderAdapter

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({"starting", "queued", "processing", "running"})

Sleep = Callable[[float], Awaitable[Any]]


class PollingAdapter(HTTPProviderAdapter):
    """Bounded poll loop shared by job-style providers.

    Raises ProviderTimeoutError once ``max_attempts`` polls have been spent
    without the job reaching a terminal status.
    """

    poll_interval: float = 1.5
    max_attempts: int = 60

    def __init__(
        self,
        *,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        sleep: Sleep = asyncio.sleep,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._poll_interval = self.poll_interval if poll_interval is None else poll_interval
        self._max_attempts = self.max_attempts if max_attempts is None else max_attempts
        self._sleep = sleep

    async def _submit(self, model: str, prompt: str, *, system: str | None) -> dict[str, Any]:
        raise NotImplementedError

    def _job_path(self, job_id: str) -> str:
        raise NotImplementedError

    def _finish(self, model: str, prompt: str, job: dict[str, Any]) -> Generation:
        raise NotImplementedError

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
        job = await self._submit(model, prompt, system=system)
        job_id = job.get("id")
        if not job_id:
            raise ProviderError(f"{self.provider} returned no job id: {str(job)[:200]}")

        attempts = 0
        while job.get("status") in PENDING_STATUSES:
            if attempts >= self._max_attempts:
                waited = math.ceil(self._max_attempts * self._poll_interval)
                raise ProviderTimeoutError(f"{self.provider} job timeout after {waited}s")
            await self._sleep(self._poll_interval)
            job = await self._request("GET", self._job_path(job_id))
            attempts += 1
            logger.debug("%s job %s status=%s", self.provider, job_id, job.get("status"))

        status = job.get("status")
        if status != "succeeded":
            detail = job.get("error") or "Unknown error"
            raise ProviderError(f"{self.provider} job {status}: {detail}")
        return self._finish(model, prompt, job)


class ReplicateAdapter(PollingAdapter):
    provider = "replicate"
    base_url = "https://api.replicate.com/v1"
    credential_name = "REPLICATE_API_TOKEN"
    poll_interval = 1.5
    max_attempts = 60

    def __init__(self, *, default_version: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._default_version = default_version

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Token {self._api_key}"
        return headers

    def _version(self, model: str) -> str:
        if model != "prediction":
            return model
        if not self._default_version:
            raise ProviderError("REPLICATE_VERSION not configured")
        return self._default_version

    async def _submit(self, model: str, prompt: str, *, system: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {"prompt": prompt}
        if system:
            payload["system_prompt"] = system
        return await self._request(
            "POST", "/predictions", body={"version": self._version(model), "input": payload}
        )

    def _job_path(self, job_id: str) -> str:
        return f"/predictions/{job_id}"

    def _finish(self, model: str, prompt: str, job: dict[str, Any]) -> Generation:
        output = job.get("output")
        if isinstance(output, str):
            text = output
        elif isinstance(output, list) and all(isinstance(o, str) for o in output):
            # Language models stream their output as a list of tokens.
            text = "".join(output)
        else:
            text = json.dumps(output)
        return Generation(text=text, metadata={"prediction_id": job.get("id")})


class RunwayAdapter(PollingAdapter):
    provider = "runway"
    kind = OutputKind.VIDEO
    base_url = "https://api.runwayml.com/v1"
    credential_name = "RUNWAY_API_KEY"
    poll_interval = 3.0
    max_attempts = 100
    resolution = "720p"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _submit(self, model: str, prompt: str, *, system: str | None) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/animations",
            body={"model": model, "prompt": prompt, "resolution": self.resolution},
        )

    def _job_path(self, job_id: str) -> str:
        return f"/animations/{job_id}"

    def _finish(self, model: str, prompt: str, job: dict[str, Any]) -> Generation:
        output = job.get("output") or []
        url = ""
        if isinstance(output, list) and output and isinstance(output[0], dict):
            url = output[0].get("url") or ""
        return Generation(
            text=f"VIDEO_URL: {url}",
            url=url or None,
            tokens_used=math.ceil(len(prompt) / 4),
        )
