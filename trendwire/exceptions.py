class TrendwireError(Exception):
    """Base class for errors raised by trendwire."""


class FeedFetchError(TrendwireError):
    """Raised when an RSS feed cannot be fetched or read."""


class ProviderError(TrendwireError):
    """Raised when an LLM provider call fails (network, HTTP status, timeout)."""


class RankingError(TrendwireError):
    """Raised when a trending ranking cannot be produced for a category."""


class RankingParseError(RankingError):
    """Raised when an LLM ranking response is not usable JSON."""


class StoreError(TrendwireError):
    """Raised when the article store rejects an operation."""


class DuplicateArticleError(StoreError):
    """Raised when an insert would violate slug or source_url uniqueness."""
