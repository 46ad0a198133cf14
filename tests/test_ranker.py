"""Tests for the trending ranker and its replace semantics."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json

import httpx
import pytest

from trendwire.config import LoggingConfig, ProviderConfig, TrendingConfig
from trendwire.core.types import Article
from trendwire.events import RunObserver
from trendwire.exceptions import ProviderError, RankingError, RankingParseError
from trendwire.llm.providers.base import LLMProvider
from trendwire.llm.providers.openai_compatible import OpenAICompatibleProvider
from trendwire.store.memory import MemoryStore
from trendwire.trending.ranker import FEW_CANDIDATES_REASONING, TrendingRanker


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class _StubProvider(LLMProvider):
    """Returns canned completions and records requests."""

    name = "stub"

    def __init__(self, response="", error: Exception | None = None):
        super().__init__(ProviderConfig(name="stub", model="stub-model"), "test-key", LoggingConfig(), None)
        self.response = response
        self.error = error
        self.requests = []

    def complete(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def _seed(store: MemoryStore, category: str, count: int) -> list[Article]:
    articles = []
    for i in range(count):
        articles.append(
            store.insert_article(
                Article(
                    id=None,
                    title=f"{category} story number {i}",
                    slug=f"{category}-story-{i}",
                    excerpt=f"Excerpt {i}",
                    content=f"Excerpt {i}",
                    category=category,
                    source_name="Example",
                    source_url=f"https://example.com/{category}/{i}",
                    published_at=NOW - timedelta(hours=i),
                )
            )
        )
    return articles


def _response(*pairs: tuple[int, int]) -> str:
    return json.dumps(
        [{"articleId": aid, "rank": rank, "score": 90 - rank, "reasoning": "hot"} for aid, rank in pairs]
    )


def test_rank_replaces_category_batch():
    store = MemoryStore()
    articles = _seed(store, "india", 10)
    provider = _StubProvider(_response((articles[3].id, 1), (articles[0].id, 2)))
    ranker = TrendingRanker(store, provider, TrendingConfig(target_count=7), clock=lambda: NOW)

    entries = ranker.rank("india")

    stored = store.get_trending("india")
    assert stored == entries
    assert [(e.article_id, e.rank) for e in stored] == [(articles[3].id, 1), (articles[0].id, 2)]
    batch_ids = {e.batch_id for e in stored}
    assert batch_ids == {f"india-{int(NOW.timestamp() * 1000)}"}
    assert all(e.expires_at == NOW + timedelta(hours=4) for e in stored)


def test_prompts_list_candidates_with_ids():
    store = MemoryStore()
    articles = _seed(store, "india", 10)
    provider = _StubProvider(_response((articles[0].id, 1)))
    TrendingRanker(store, provider, TrendingConfig(target_count=3)).rank("india")

    request = provider.requests[0]
    assert request.model == "stub-model"
    assert "top 3" in request.user_prompt
    assert f'[ID:{articles[0].id}] "india story number 0"' in request.user_prompt
    assert '"articleId"' in request.system_prompt


def test_second_run_fully_replaces_first():
    store = MemoryStore()
    articles = _seed(store, "india", 10)
    times = iter([NOW, NOW + timedelta(minutes=30)])
    ranker = TrendingRanker(store, None, TrendingConfig(), clock=lambda: next(times))

    ranker.provider = _StubProvider(_response((articles[0].id, 1), (articles[1].id, 2), (articles[2].id, 3)))
    ranker.rank("india")
    ranker.provider = _StubProvider(_response((articles[5].id, 1)))
    ranker.rank("india")

    stored = store.get_trending("india")
    assert [e.article_id for e in stored] == [articles[5].id]
    assert len({e.batch_id for e in stored}) == 1


@pytest.mark.parametrize(
    "provider",
    [
        _StubProvider(error=ProviderError("timeout")),
        _StubProvider("I cannot help with that"),
        _StubProvider('[{"articleId": 123456, "rank": 1}]'),
    ],
)
def test_failure_leaves_existing_batch_untouched(provider):
    store = MemoryStore()
    articles = _seed(store, "india", 10)
    ranker = TrendingRanker(store, _StubProvider(_response((articles[0].id, 1))), TrendingConfig())
    before = ranker.rank("india")

    ranker.provider = provider
    with pytest.raises(RankingError):
        ranker.rank("india")

    assert store.get_trending("india") == before


def test_parse_failure_is_a_ranking_error():
    store = MemoryStore()
    _seed(store, "india", 10)
    ranker = TrendingRanker(store, _StubProvider("```json\nnope\n```"), TrendingConfig())
    with pytest.raises(RankingParseError):
        ranker.rank("india")


def test_categories_are_isolated():
    store = MemoryStore()
    india = _seed(store, "india", 10)
    sports = _seed(store, "sports", 10)
    TrendingRanker(store, _StubProvider(_response((sports[0].id, 1))), TrendingConfig()).rank("sports")
    TrendingRanker(store, _StubProvider(_response((india[2].id, 1))), TrendingConfig()).rank("india")

    assert [e.article_id for e in store.get_trending("sports")] == [sports[0].id]
    assert [e.article_id for e in store.get_trending("india")] == [india[2].id]


def test_candidate_from_other_category_is_rejected():
    store = MemoryStore()
    _seed(store, "india", 10)
    sports = _seed(store, "sports", 10)
    ranker = TrendingRanker(store, _StubProvider(_response((sports[0].id, 1))), TrendingConfig())
    with pytest.raises(RankingError):
        ranker.rank("india")


def test_few_candidates_are_included_without_llm():
    store = MemoryStore()
    articles = _seed(store, "science", 3)
    provider = _StubProvider(error=AssertionError("LLM must not be called"))
    entries = TrendingRanker(store, provider, TrendingConfig(target_count=7)).rank("science")

    assert provider.requests == []
    assert [(e.article_id, e.rank, e.score) for e in entries] == [
        (articles[0].id, 1, 100),
        (articles[1].id, 2, 90),
        (articles[2].id, 3, 80),
    ]
    assert all(e.reasoning == FEW_CANDIDATES_REASONING for e in entries)


def test_few_candidates_use_llm_when_disabled():
    store = MemoryStore()
    articles = _seed(store, "science", 3)
    provider = _StubProvider(_response((articles[2].id, 1)))
    cfg = TrendingConfig(target_count=7, include_all_when_few=False)
    entries = TrendingRanker(store, provider, cfg).rank("science")
    assert len(provider.requests) == 1
    assert [e.article_id for e in entries] == [articles[2].id]


def test_candidates_are_capped():
    store = MemoryStore()
    _seed(store, "india", 60)
    ranker = TrendingRanker(store, None, TrendingConfig(candidate_limit=50))
    candidates = ranker.candidates_for("india")
    assert len(candidates) == 50
    assert candidates[0].published_at == NOW


def test_empty_category_raises_without_touching_store():
    store = MemoryStore()
    with pytest.raises(RankingError):
        TrendingRanker(store, _StubProvider("[]"), TrendingConfig()).rank("empty")
    assert store.get_trending("empty") == []


class _ErrorObserver(RunObserver):
    def __init__(self):
        self.errors = []

    def on_error(self, kind, message, **fields):
        self.errors.append(message)


def test_non_json_gateway_page_is_a_ranking_error(monkeypatch):
    store = MemoryStore()
    _seed(store, "india", 10)
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>"))
    real_client = httpx.Client
    monkeypatch.setattr(httpx, "Client", lambda **kwargs: real_client(transport=transport, **kwargs))

    provider = OpenAICompatibleProvider(ProviderConfig(), "k", LoggingConfig(), None)
    observer = _ErrorObserver()
    ranker = TrendingRanker(store, provider, TrendingConfig(), observer=observer)

    with pytest.raises(RankingError):
        ranker.rank("india")
    assert len(observer.errors) == 1
    assert store.get_trending("india") == []
