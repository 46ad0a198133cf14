"""Article, feed and trending persistence."""

from ..config import StoreConfig
from .base import ArticleStore
from .memory import MemoryStore
from .sql import SqlStore


def open_store(cfg: StoreConfig) -> ArticleStore:
    """Create the store named by ``cfg.url`` ("memory" or a SQLAlchemy URL)."""
    if cfg.url == "memory":
        return MemoryStore()
    return SqlStore(cfg.url, echo=cfg.echo)


__all__ = ["ArticleStore", "MemoryStore", "SqlStore", "open_store"]
