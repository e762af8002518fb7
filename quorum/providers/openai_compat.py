"""Adapters for providers exposing the OpenAI chat-completions API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..errors import ProviderError
from .base import Generation, HTTPProviderAdapter


def build_messages(prompt: str, system: str | None, images: Sequence[str]) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    if system:
        messages.append({"role": "system", "content": system})

    if images:
        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        content.extend({"type": "image_url", "image_url": {"url": url}} for url in images)
        messages.append({"role": "user", "content": content})
    else:
        messages.append({"role": "user", "content": prompt})
    return messages


class OpenAICompatibleAdapter(HTTPProviderAdapter):
    """Chat-completions adapter; subclasses only differ by endpoint and name."""

    provider = "openai"
    base_url = "https://api.openai.com/v1"
    credential_name = "OPENAI_API_KEY"
    default_max_tokens = 2000

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self._api_key}"
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
        data = await self._request(
            "POST",
            "/chat/completions",
            body={
                "model": model,
                "messages": build_messages(prompt, system, images),
                "temperature": temperature,
                "max_tokens": max_tokens or self.default_max_tokens,
            },
        )
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise ProviderError(f"Unexpected {self.provider} response: {str(data)[:200]}")

        message = choices[0].get("message") or {}
        text = message.get("content") or ""
        usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
        total = usage.get("total_tokens")
        return Generation(
            text=text,
            tokens_used=int(total) if isinstance(total, (int, float)) else None,
            model=data.get("model") if isinstance(data.get("model"), str) else None,
        )


class OpenAIAdapter(OpenAICompatibleAdapter):
    pass


class XAIAdapter(OpenAICompatibleAdapter):
    provider = "xai"
    base_url = "https://api.x.ai/v1"
    credential_name = "XAI_API_KEY"


class DeepSeekAdapter(OpenAICompatibleAdapter):
    provider = "deepseek"
    base_url = "https://api.deepseek.com/v1"
    credential_name = "DEEPSEEK_API_KEY"
