"""Parsing and validation of LLM ranking responses.

The model is asked for a bare JSON array, but responses wrapped in markdown
fences or in an object are accepted. Individual entries that break the
contract are dropped; only an unreadable response fails the whole ranking.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import re
from typing import Any, Iterable

from ..exceptions import RankingParseError

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)
_WRAPPER_KEYS = ("trendingArticles", "articles", "results", "trending")


@dataclass(frozen=True)
class RankedArticle:
    article_id: int
    rank: int
    score: int
    reasoning: str


def parse_ranking_response(
    text: str,
    candidate_ids: Iterable[int],
    target_count: int,
) -> list[RankedArticle]:
    """Turn a raw completion into a dense, validated ranking.

    Entries must carry an integer ``articleId`` from ``candidate_ids`` and an
    integer ``rank``. Repeated article ids and repeated ranks keep their first
    occurrence. Scores are clamped to 0-100. The result is sorted by rank,
    cut to ``target_count`` and renumbered 1..n.

    Raises:
        RankingParseError: If the text is not JSON or holds no entry list
    """
    entries = _load_entries(text)
    allowed = set(candidate_ids)

    seen_ids: set[int] = set()
    seen_ranks: set[int] = set()
    accepted: list[tuple[int, int, int, dict[str, Any]]] = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            continue
        article_id = _as_int(entry.get("articleId"))
        rank = _as_int(entry.get("rank"))
        if article_id is None or rank is None:
            continue
        if article_id not in allowed or article_id in seen_ids or rank in seen_ranks:
            continue
        seen_ids.add(article_id)
        seen_ranks.add(rank)
        accepted.append((rank, position, article_id, entry))

    accepted.sort(key=lambda row: (row[0], row[1]))
    ranked: list[RankedArticle] = []
    for new_rank, (_, _, article_id, entry) in enumerate(accepted[: max(0, target_count)], start=1):
        ranked.append(
            RankedArticle(
                article_id=article_id,
                rank=new_rank,
                score=_clamp_score(entry.get("score")),
                reasoning=str(entry.get("reasoning") or "").strip(),
            )
        )
    return ranked


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def _load_entries(text: str) -> list[Any]:
    cleaned = strip_fences(text)
    if not cleaned:
        raise RankingParseError("Empty ranking response")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise RankingParseError(f"Ranking response is not valid JSON: {exc}") from exc

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in _WRAPPER_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
        for value in data.values():
            if isinstance(value, list):
                return value
    raise RankingParseError(f"Ranking response has no entry list (got {type(data).__name__})")


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdecimal():
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return 0
    try:
        score = float(value)
    except ValueError:
        return 0
    if score != score:  # NaN
        return 0
    return int(round(min(100.0, max(0.0, score))))
