"""
trendwire - RSS news ingestion with AI trending ranking.

This package fetches configured RSS feeds concurrently, normalizes and
de-duplicates their items into an article store, and asks an LLM to pick
the trending articles of each category.

Main entry point is the CLI via the `trendwire fetch` and `trendwire rank`
commands.

Example:
    $ trendwire add-feed "The Hindu" https://www.thehindu.com/news/feeder/default.rss --category india
    $ trendwire fetch --rank
"""

__all__ = ["__version__", "run_fetch", "run_trending", "load_config"]
__version__ = "0.1.0"

from .config import load_config
from .runner import run_fetch, run_trending
