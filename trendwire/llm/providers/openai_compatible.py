"""OpenAI chat-completions provider.

Also serves any backend exposing the same API under a different base URL
(DeepSeek, Sarvam and self-hosted gateways).
"""

from __future__ import annotations

from typing import Any

import httpx

from ...exceptions import ProviderError
from .base import CompletionRequest, LLMProvider


DEFAULT_BASE_URL = "https://api.openai.com/v1"

_KNOWN_BASE_URLS = {
    "deepseek": "https://api.deepseek.com/v1",
    "sarvam": "https://api.sarvam.ai/v1",
}


class OpenAICompatibleProvider(LLMProvider):
    """Chat-completions backend addressed by ``base_url``."""

    name = "openai"
    key_label = "OpenAI API"

    def complete(self, request: CompletionRequest) -> str:
        payload = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        try:
            data = self._post(payload, timeout=request.timeout_seconds)
        except (httpx.HTTPError, ValueError) as exc:
            self._log_llm_response(request, "llm_completion", "provider_error", str(exc))
            raise ProviderError(f"{self.name} request failed: {exc}") from exc
        content = _extract_text(data)
        self._log_llm_response(request, "llm_completion", "ok", content)
        return content

    def _post(self, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
        base_url = self.cfg.base_url or _KNOWN_BASE_URLS.get(self.cfg.name.lower().strip(), DEFAULT_BASE_URL)
        base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {self.api_key}"}
        with httpx.Client(timeout=timeout, trust_env=self.cfg.trust_env) as client:
            resp = client.post(f"{base_url}/chat/completions", headers=headers, json=payload)
            resp.raise_for_status()
            return resp.json()


def _extract_text(data: dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except Exception:  # noqa: BLE001
        return ""
    return str(content or "")
