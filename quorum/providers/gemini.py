"""Google Gemini generateContent adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..errors import ProviderError
from .base import Generation, HTTPProviderAdapter


class GeminiAdapter(HTTPProviderAdapter):
    provider = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    credential_name = "GEMINI_API_KEY"
    default_max_tokens = 8192

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["x-goog-api-key"] = self._api_key or ""
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
        parts: list[dict[str, Any]] = [{"text": prompt}]
        parts.extend({"fileData": {"fileUri": url}} for url in images)

        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens or self.default_max_tokens,
            },
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        data = await self._request("POST", f"/models/{model}:generateContent", body=body)
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback") if isinstance(data, dict) else None
            raise ProviderError(f"Gemini returned no candidates: {feedback or str(data)[:200]}")

        content = candidates[0].get("content") or {}
        text = "".join(
            p["text"] for p in content.get("parts") or [] if isinstance(p.get("text"), str)
        )
        usage = data.get("usageMetadata") if isinstance(data.get("usageMetadata"), dict) else {}
        total = usage.get("totalTokenCount")
        return Generation(text=text, tokens_used=total if isinstance(total, int) else None)
