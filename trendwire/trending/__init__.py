"""Trending ranking: prompts, response validation and the ranker."""

from .parser import RankedArticle, parse_ranking_response, strip_fences
from .prompts import build_system_prompt, build_user_prompt
from .ranker import TrendingRanker

__all__ = [
    "RankedArticle",
    "TrendingRanker",
    "build_system_prompt",
    "build_user_prompt",
    "parse_ranking_response",
    "strip_fences",
]
