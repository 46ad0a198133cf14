"""Anthropic Messages API provider."""

from __future__ import annotations

from typing import Any

import httpx

from ...exceptions import ProviderError
from .base import CompletionRequest, LLMProvider


DEFAULT_BASE_URL = "https://api.anthropic.com"
API_VERSION = "2023-06-01"


class AnthropicProvider(LLMProvider):
    name = "anthropic"
    key_label = "Anthropic API"

    def complete(self, request: CompletionRequest) -> str:
        payload = {
            "model": request.model,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": request.user_prompt}],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        try:
            data = self._post(payload, timeout=request.timeout_seconds)
        except (httpx.HTTPError, ValueError) as exc:
            self._log_llm_response(request, "llm_completion", "provider_error", str(exc))
            raise ProviderError(f"anthropic request failed: {exc}") from exc
        content = _extract_text(data)
        self._log_llm_response(request, "llm_completion", "ok", content)
        return content

    def _post(self, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
        base_url = (self.cfg.base_url or DEFAULT_BASE_URL).rstrip("/")
        headers = {"x-api-key": self.api_key, "anthropic-version": API_VERSION}
        with httpx.Client(timeout=timeout, trust_env=self.cfg.trust_env) as client:
            resp = client.post(f"{base_url}/v1/messages", headers=headers, json=payload)
            resp.raise_for_status()
            return resp.json()


def _extract_text(data: dict[str, Any]) -> str:
    blocks = data.get("content") if isinstance(data, dict) else None
    if not isinstance(blocks, list):
        return ""
    return "".join(
        str(block.get("text") or "")
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text"
    )
