"""Hugging Face Inference API adapter."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from .base import Generation, HTTPProviderAdapter

# Registry placeholders that mean "use the configured default model".
_GENERIC_IDS = {"text-generation", "image-generation"}


class HuggingFaceAdapter(HTTPProviderAdapter):
    provider = "huggingface"
    base_url = "https://api-inference.huggingface.co"
    credential_name = "HUGGINGFACE_API_KEY"
    default_max_tokens = 800

    def __init__(
        self, *, default_model: str = "meta-llama/Meta-Llama-3-8B-Instruct", **kwargs: Any
    ) -> None:
        super().__init__(**kwargs)
        self._default_model = default_model

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
        del images
        model_id = self._default_model if model in _GENERIC_IDS else model
        inputs = f"{system}\n\n{prompt}" if system else prompt

        data = await self._request(
            "POST",
            f"/models/{model_id}",
            body={
                "inputs": inputs,
                "parameters": {
                    "max_new_tokens": max_tokens or self.default_max_tokens,
                    "temperature": temperature,
                    "return_full_text": False,
                },
            },
        )

        if isinstance(data, list) and data and isinstance(data[0], dict):
            text = data[0].get("generated_text") or ""
        elif isinstance(data, dict) and "generated_text" in data:
            text = data.get("generated_text") or ""
        else:
            text = json.dumps(data)
        return Generation(text=text, model=model_id)
