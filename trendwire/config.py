"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: RSS feed HTTP fetching settings
- ProviderConfig: LLM provider settings
- DedupConfig: Article deduplication settings
- TrendingConfig: Trending ranking settings
- StoreConfig: Article store settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container

All sections are frozen. Callers that need a variation (for example a CLI
override) build a new value with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import os
from typing import Any

import yaml


@dataclass(frozen=True)
class FetchConfig:
    """Configuration for RSS feed fetching.

    Attributes:
        timeout_seconds: Per-feed HTTP request timeout
        user_agent: HTTP User-Agent header string
        accept: HTTP Accept header sent with feed requests
        trust_env: Whether to respect system proxy settings
        max_concurrency: Upper bound on simultaneous feed requests
    """

    timeout_seconds: float = 20.0
    user_agent: str = "trendwire/1.0 RSS Reader"
    accept: str = "application/rss+xml, application/xml, text/xml"
    trust_env: bool = True
    max_concurrency: int = 16


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration for the LLM provider.

    Attributes:
        name: Provider name ("openai", "openai_compatible", "gemini", "anthropic")
        model: Model identifier (e.g., "gpt-4o-mini")
        api_key_env: Environment variable holding the API key; when empty the
            provider's conventional variable is used
        api_key: Optional inline API key (overrides env var)
        base_url: Base URL for the provider API; empty means provider default
        temperature: Sampling temperature
        max_tokens: Maximum tokens in the response
        timeout_seconds: Request timeout for a single completion
        trust_env: Whether to respect system proxy settings for API requests
    """

    name: str = "openai"
    model: str = "gpt-4o-mini"
    api_key_env: str = ""
    api_key: str | None = None
    base_url: str = ""
    temperature: float = 0.3
    max_tokens: int = 1000
    timeout_seconds: float = 45.0
    trust_env: bool = True


@dataclass(frozen=True)
class DedupConfig:
    """Configuration for article deduplication.

    Exact ``source_url`` and exact title matches are always duplicates.

    Attributes:
        fuzzy_titles: Also treat near-identical titles in the same category as duplicates
        title_similarity_threshold: Fuzzy match threshold (0-100) for title similarity
        fuzzy_window: How many recent titles of the category to compare against
    """

    fuzzy_titles: bool = False
    title_similarity_threshold: int = 92
    fuzzy_window: int = 200


@dataclass(frozen=True)
class TrendingConfig:
    """Configuration for trending ranking.

    Attributes:
        target_count: Number of trending articles to select per category
        candidate_limit: Maximum number of recent articles sent to the LLM
        expiry_hours: Lifetime of a trending batch
        excerpt_chars: Excerpt length included per candidate in the prompt
        include_all_when_few: Skip the LLM and rank by recency when there are
            no more candidates than ``target_count``
    """

    target_count: int = 7
    candidate_limit: int = 50
    expiry_hours: int = 4
    excerpt_chars: int = 120
    include_all_when_few: bool = True


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for the article store.

    Attributes:
        url: SQLAlchemy database URL, or "memory" for the in-process store
        echo: Whether SQLAlchemy should log emitted SQL
    """

    url: str = "sqlite:///trendwire.db"
    echo: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        log_dir: Directory for log files
        filename: Name of the main log file
        llm_log_enabled: Whether to enable separate LLM interaction logging
        llm_log_detail: LLM log detail level ("summary_only", "response_only", "prompt_response")
        llm_log_redaction: Redaction mode for LLM logs ("none", "redact_content", "redact_urls")
        llm_log_file: Name of the LLM log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    log_dir: str = "logs"
    filename: str = "run.jsonl"
    llm_log_enabled: bool = True
    llm_log_detail: str = "response_only"
    llm_log_redaction: str = "none"
    llm_log_file: str = "llm.jsonl"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration container aggregating all config sections."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    trending: TrendingConfig = field(default_factory=TrendingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()

# Conventional API key variables per provider name.
_DEFAULT_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "openai_compatible": "OPENAI_API_KEY",
    "openai-compatible": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "sarvam": "SARVAM_API_KEY",
    "gemini": "GOOGLE_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return DEFAULT_CONFIG

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(DEFAULT_CONFIG, raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig.

    Unknown sections and unknown keys inside a section are ignored.
    """
    updates: dict[str, Any] = {}
    for section in fields(base):
        value = raw.get(section.name)
        if not isinstance(value, dict):
            continue
        current = getattr(base, section.name)
        known = {f.name for f in fields(current)}
        overrides = {k: v for k, v in value.items() if k in known}
        updates[section.name] = replace(current, **overrides)
    return replace(base, **updates)


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    env_name = cfg.api_key_env or _DEFAULT_KEY_ENV.get(cfg.name.lower().strip(), "")
    if not env_name:
        return None
    value = os.getenv(env_name)
    return value.strip() if value and value.strip() else None
