"""Abstract interfaces for chat-completion LLM backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

from ...config import LoggingConfig, ProviderConfig
from ...utils.logging import log_event, redact_text, truncate_text


@dataclass(frozen=True)
class CompletionRequest:
    """A single system + user prompt exchange."""

    system_prompt: str
    user_prompt: str
    model: str
    temperature: float = 0.3
    max_tokens: int = 1000
    timeout_seconds: float = 45.0


class LLMProvider(ABC):
    """Provider interface: one prompt in, raw completion text out.

    Implementations raise ``ProviderError`` for transport or HTTP failures.
    """

    name = "base"
    key_label = "API"

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        log_cfg: LoggingConfig,
        llm_logger,
    ):
        if not api_key:
            raise ValueError(f"Missing {self.key_label} key")
        self.cfg = cfg
        self.api_key = api_key
        self.log_cfg = log_cfg
        self.llm_logger = llm_logger

    @abstractmethod
    def complete(self, request: CompletionRequest) -> str:
        """Return the completion text for ``request``."""
        raise NotImplementedError

    def request_for(self, system_prompt: str, user_prompt: str) -> CompletionRequest:
        """Build a request carrying this provider's configured sampling settings."""
        return CompletionRequest(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            model=self.cfg.model,
            temperature=self.cfg.temperature,
            max_tokens=self.cfg.max_tokens,
            timeout_seconds=self.cfg.timeout_seconds,
        )

    def _log_llm_response(
        self,
        request: CompletionRequest,
        event: str,
        status: str,
        content: str,
        logger: logging.Logger | None = None,
    ) -> None:
        active_logger = logger or self.llm_logger
        if active_logger is None:
            return
        detail = self.log_cfg.llm_log_detail
        redaction = self.log_cfg.llm_log_redaction
        payload = {
            "event": event,
            "status": status,
            "provider": self.name,
            "model": request.model,
        }
        if detail == "summary_only":
            payload["response_chars"] = len(content)
        else:
            if detail == "prompt_response":
                payload["raw_prompt"] = truncate_text(
                    redact_text(f"{request.system_prompt}\n\n{request.user_prompt}", redaction)
                )
            payload["raw_response"] = truncate_text(redact_text(content, redaction))
        log_event(active_logger, "LLM response", **payload)
