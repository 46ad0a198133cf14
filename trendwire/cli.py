"""
Command-line interface for trendwire.

Uses Typer to provide the commands a scheduler or an operator runs:
ingest feeds, rank trending articles and manage the feed list. Loads a
.env file for API keys and an optional YAML config file.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv
import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .core.types import RUN_ERROR, FeedSource
from .events import LoggingObserver
from .runner import build_provider, run_fetch, run_trending
from .store import ArticleStore, open_store
from .utils.logging import setup_llm_logger, setup_logging

app = typer.Typer(add_completion=False, help="RSS ingestion and AI trending ranking.")
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", exists=True, help="YAML config file.")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level.")
StoreOption = typer.Option(None, "--store", help="Store URL (SQLAlchemy URL or 'memory').")


def _prepare(
    config: Path | None,
    log_level: str | None,
    store_url: str | None,
) -> tuple[AppConfig, ArticleStore]:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg = replace(cfg, logging=replace(cfg.logging, level=log_level))
    if store_url:
        cfg = replace(cfg, store=replace(cfg.store, url=store_url))
    setup_logging(cfg.logging)
    return cfg, open_store(cfg.store)


def _rank(cfg: AppConfig, store: ArticleStore, categories: list[str] | None) -> int:
    llm_logger = setup_llm_logger(cfg.logging)
    try:
        provider = build_provider(cfg, llm_logger)
    except ValueError as exc:
        console.print(f"[yellow]LLM provider unavailable:[/yellow] {exc}")
        provider = None

    summary = run_trending(store, provider, cfg, categories=categories, observer=LoggingObserver())
    if not summary.results:
        console.print(summary.message)
        return 0

    table = Table(title="Trending")
    table.add_column("Category")
    table.add_column("Entries", justify="right")
    table.add_column("Batch")
    table.add_column("Error")
    for result in summary.results:
        table.add_row(
            result.category,
            str(result.trending),
            result.batch_id or "",
            result.error or "",
        )
    console.print(table)
    console.print(summary.message)
    return 1 if summary.success_count == 0 else 0


@app.command()
def fetch(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
    store_url: str | None = StoreOption,
    rank: bool = typer.Option(False, "--rank/--no-rank", help="Rank trending articles afterwards."),
    trigger_type: str = typer.Option("manual", "--trigger", help="Trigger type recorded on the run."),
    triggered_by: str | None = typer.Option(None, "--triggered-by", help="Who started the run."),
):
    """Fetch every active feed and store new articles."""
    cfg, store = _prepare(config, log_level, store_url)
    summary = run_fetch(
        store,
        cfg,
        observer=LoggingObserver(),
        trigger_type=trigger_type,
        triggered_by=triggered_by,
    )
    console.print(summary.message)
    if summary.run is None:
        return

    console.print(
        f"Run {summary.run_id}: status={summary.run.overall_status} "
        f"processed={summary.processed} new={summary.new} skipped={summary.skipped} "
        f"errors={len(summary.errors)}"
    )
    for error in summary.errors:
        console.print(f"  [red]-[/red] {error}")

    exit_code = 1 if summary.run.overall_status == RUN_ERROR else 0
    if rank:
        categories = sorted({log.category for log in summary.feed_logs})
        exit_code = max(exit_code, _rank(cfg, store, categories or None))
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("rank")
def rank_command(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
    store_url: str | None = StoreOption,
    category: list[str] | None = typer.Option(None, "--category", help="Category to rank (repeatable)."),
    count: int | None = typer.Option(None, "--count", min=1, help="Number of trending entries."),
):
    """Rank trending articles per category with the configured LLM."""
    cfg, store = _prepare(config, log_level, store_url)
    if count is not None:
        cfg = replace(cfg, trending=replace(cfg.trending, target_count=count))
    exit_code = _rank(cfg, store, category or None)
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.command("add-feed")
def add_feed(
    name: str = typer.Argument(..., help="Display name of the feed."),
    url: str = typer.Argument(..., help="RSS feed URL."),
    category: str = typer.Option(..., "--category", help="Category tag for the feed's articles."),
    interval: int = typer.Option(60, "--interval", min=1, help="Fetch interval in minutes."),
    active: bool = typer.Option(True, "--active/--inactive"),
    config: Path | None = ConfigOption,
    store_url: str | None = StoreOption,
):
    """Register a new RSS feed."""
    _, store = _prepare(config, None, store_url)
    feed = store.add_feed(
        FeedSource(
            id=None,
            name=name,
            url=url,
            category=category,
            is_active=active,
            fetch_interval_minutes=interval,
        )
    )
    console.print(f"Added feed {feed.id}: {feed.name} ({feed.category})")


@app.command()
def feeds(
    config: Path | None = ConfigOption,
    store_url: str | None = StoreOption,
    active_only: bool = typer.Option(False, "--active-only"),
):
    """List configured feeds."""
    _, store = _prepare(config, None, store_url)
    table = Table(title="Feeds")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Active")
    table.add_column("Last fetched")
    table.add_column("URL")
    for feed in store.list_feeds(active_only=active_only):
        table.add_row(
            str(feed.id),
            feed.name,
            feed.category,
            "yes" if feed.is_active else "no",
            feed.last_fetched_at.isoformat(timespec="seconds") if feed.last_fetched_at else "-",
            feed.url,
        )
    console.print(table)


if __name__ == "__main__":
    app()
