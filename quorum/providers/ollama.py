"""Local Ollama server adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .base import Generation, HTTPProviderAdapter, estimate_tokens


class OllamaAdapter(HTTPProviderAdapter):
    provider = "ollama"
    base_url = "http://localhost:11434"
    requires_credentials = False

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
        del images
        options: dict[str, Any] = {"temperature": temperature}
        if max_tokens:
            options["num_predict"] = max_tokens

        body: dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": options,
        }
        if system:
            body["system"] = system

        data = await self._request("POST", "/api/generate", body=body)
        if not isinstance(data, dict):
            data = {}
        text = data.get("response") or ""

        prompt_tokens = data.get("prompt_eval_count")
        output_tokens = data.get("eval_count")
        if isinstance(prompt_tokens, int) and isinstance(output_tokens, int):
            tokens = prompt_tokens + output_tokens
        else:
            tokens = estimate_tokens(prompt, text)
        return Generation(text=text, tokens_used=tokens)
