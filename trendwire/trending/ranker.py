"""LLM-driven trending ranking with per-category atomic replacement."""

from __future__ import annotations

from datetime import timedelta
import logging
import time
from typing import Callable

from ..config import TrendingConfig
from ..core.types import STATUS_PUBLISHED, Article, TrendingEntry, utcnow
from ..events import RunObserver, notify
from ..exceptions import ProviderError, RankingError
from ..llm.providers.base import LLMProvider
from ..store.base import ArticleStore
from ..utils.logging import log_event
from .parser import RankedArticle, parse_ranking_response
from .prompts import build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)

FEW_CANDIDATES_REASONING = "Included: fewer articles than requested trending count"


class TrendingRanker:
    """Ranks a category's recent articles and stores the result as one batch.

    A successful ranking replaces the category's trending set in a single
    store transaction. Any failure (provider error, unreadable response, no
    usable entries) raises RankingError and leaves the stored set untouched.
    """

    def __init__(
        self,
        store: ArticleStore,
        provider: LLMProvider | None,
        cfg: TrendingConfig,
        observer: RunObserver | None = None,
        clock: Callable = utcnow,
    ):
        self.store = store
        self.provider = provider
        self.cfg = cfg
        self.observer = observer
        self.clock = clock

    def candidates_for(self, category: str) -> list[Article]:
        """Most recent published articles of ``category``, newest first."""
        return self.store.recent_articles(category, self.cfg.candidate_limit, status=STATUS_PUBLISHED)

    def rank(
        self,
        category: str,
        candidates: list[Article] | None = None,
        target_count: int | None = None,
    ) -> list[TrendingEntry]:
        """Rank ``candidates`` and replace the stored trending set of ``category``.

        Args:
            category: Category being ranked
            candidates: Articles to choose from; loaded from the store when None
            target_count: Number of entries wanted; defaults to the configured count

        Returns:
            The stored entries, ordered by rank

        Raises:
            RankingError: If no ranking could be produced
        """
        if candidates is None:
            candidates = self.candidates_for(category)
        candidates = candidates[: self.cfg.candidate_limit]
        count = target_count if target_count is not None else self.cfg.target_count
        if count < 1:
            raise RankingError(f"target_count must be positive, got {count}")
        if not candidates:
            raise RankingError(f"No candidate articles for {category}")

        start = time.monotonic()
        notify(self.observer, "on_start", "trending", category=category, candidates=len(candidates))
        try:
            if self.cfg.include_all_when_few and len(candidates) <= count:
                ranked = _rank_by_recency(candidates)
            else:
                ranked = self._rank_with_llm(category, candidates, count)
            if not ranked:
                raise RankingError(f"Ranking for {category} produced no valid entries")
        except RankingError as exc:
            notify(self.observer, "on_error", "trending", str(exc), category=category)
            raise

        now = self.clock()
        batch_id = f"{category}-{int(now.timestamp() * 1000)}"
        expires_at = now + timedelta(hours=self.cfg.expiry_hours)
        entries = [
            TrendingEntry(
                article_id=item.article_id,
                category=category,
                rank=item.rank,
                score=item.score,
                reasoning=item.reasoning,
                batch_id=batch_id,
                expires_at=expires_at,
                created_at=now,
            )
            for item in ranked
        ]
        self.store.replace_trending(category, entries)

        duration_ms = int((time.monotonic() - start) * 1000)
        log_event(
            logger,
            "Trending batch stored",
            event="trending_stored",
            category=category,
            batch_id=batch_id,
            entry_count=len(entries),
            duration_ms=duration_ms,
        )
        notify(
            self.observer,
            "on_complete",
            "trending",
            category=category,
            batch_id=batch_id,
            trending=len(entries),
            duration_ms=duration_ms,
        )
        return entries

    def _rank_with_llm(self, category: str, candidates: list[Article], count: int) -> list[RankedArticle]:
        if self.provider is None:
            raise RankingError("No LLM provider configured")
        request = self.provider.request_for(
            build_system_prompt(category, count),
            build_user_prompt(
                candidates,
                category,
                count,
                excerpt_chars=self.cfg.excerpt_chars,
                limit=self.cfg.candidate_limit,
            ),
        )
        try:
            text = self.provider.complete(request)
        except ProviderError as exc:
            raise RankingError(f"Provider failed for {category}: {exc}") from exc
        return parse_ranking_response(text, [a.id for a in candidates if a.id is not None], count)


def _rank_by_recency(candidates: list[Article]) -> list[RankedArticle]:
    ordered = sorted(
        (a for a in candidates if a.id is not None),
        key=lambda a: (a.published_at, a.id),
        reverse=True,
    )
    return [
        RankedArticle(
            article_id=article.id,
            rank=index + 1,
            score=max(0, 100 - index * 10),
            reasoning=FEW_CANDIDATES_REASONING,
        )
        for index, article in enumerate(ordered)
    ]
