"""Anthropic Messages API adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..errors import ProviderError
from .base import Generation, HTTPProviderAdapter

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(HTTPProviderAdapter):
    provider = "anthropic"
    base_url = "https://api.anthropic.com/v1"
    credential_name = "ANTHROPIC_API_KEY"
    default_max_tokens = 4096

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["x-api-key"] = self._api_key or ""
        headers["anthropic-version"] = ANTHROPIC_VERSION
        return headers

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
        content: list[dict[str, Any]] = [
            {"type": "image", "source": {"type": "url", "url": url}} for url in images
        ]
        content.append({"type": "text", "text": prompt})

        body: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens or self.default_max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": content}],
        }
        if system:
            body["system"] = system

        data = await self._request("POST", "/messages", body=body)
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise ProviderError(f"Unexpected anthropic response: {str(data)[:200]}")

        text = "".join(
            b["text"] for b in blocks if b.get("type") == "text" and isinstance(b.get("text"), str)
        )
        usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
        input_tokens = usage.get("input_tokens")
        output_tokens = usage.get("output_tokens")
        tokens = None
        if isinstance(input_tokens, int) and isinstance(output_tokens, int):
            tokens = input_tokens + output_tokens
        return Generation(text=text, tokens_used=tokens, model=data.get("model"))
