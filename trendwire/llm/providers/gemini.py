"""Google Gemini provider."""

from __future__ import annotations

from typing import Any

import httpx

from ...exceptions import ProviderError
from .base import CompletionRequest, LLMProvider


DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"


class GeminiProvider(LLMProvider):
    """Gemini-backed provider using the generateContent endpoint."""

    name = "gemini"
    key_label = "Google API"

    def complete(self, request: CompletionRequest) -> str:
        payload = {
            "systemInstruction": {"parts": [{"text": request.system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": request.user_prompt}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
                "responseMimeType": "application/json",
            },
        }
        try:
            data = self._post(payload, request.model, timeout=request.timeout_seconds)
        except (httpx.HTTPError, ValueError) as exc:
            self._log_llm_response(request, "llm_completion", "provider_error", str(exc))
            raise ProviderError(f"gemini request failed: {exc}") from exc
        content = _extract_text(data)
        self._log_llm_response(request, "llm_completion", "ok", content)
        return content

    def _post(self, payload: dict[str, Any], model: str, timeout: float = 30.0) -> dict[str, Any]:
        base_url = (self.cfg.base_url or DEFAULT_BASE_URL).rstrip("/")
        url = f"{base_url}/v1beta/models/{model}:generateContent"
        params = {"key": self.api_key}
        with httpx.Client(timeout=timeout, trust_env=self.cfg.trust_env) as client:
            resp = client.post(url, params=params, json=payload)
            resp.raise_for_status()
            return resp.json()


def _extract_text(data: dict[str, Any]) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except Exception:  # noqa: BLE001
        return ""

    if not isinstance(parts, list):
        return ""

    non_thought_chunks: list[str] = []
    all_chunks: list[str] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        text = part.get("text")
        if text is None:
            continue
        chunk = str(text)
        if not chunk:
            continue
        all_chunks.append(chunk)
        if not bool(part.get("thought")):
            non_thought_chunks.append(chunk)

    if non_thought_chunks:
        return "".join(non_thought_chunks)
    return "".join(all_chunks)
