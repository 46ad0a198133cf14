"""SQLAlchemy-backed ArticleStore (SQLite by default)."""

from __future__ import annotations

from datetime import datetime, timezone
import os

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.types import (
    Article,
    FeedSource,
    FetchItemLog,
    FetchLog,
    FetchRun,
    TrendingEntry,
)
from ..exceptions import DuplicateArticleError
from .base import ArticleStore


Base = declarative_base()


class FeedModel(Base):
    """SQLAlchemy model for RSS feed configuration."""

    __tablename__ = "rss_feed_config"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    feed_url = Column(String(1000), nullable=False)
    category = Column(String(50), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_fetched_at = Column(DateTime, nullable=True)
    fetch_interval_minutes = Column(Integer, nullable=False, default=60)


class ArticleModel(Base):
    """SQLAlchemy model for articles."""

    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False, index=True)
    slug = Column(String(600), nullable=False, unique=True)
    excerpt = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    featured_image = Column(String(1000), nullable=True)
    category = Column(String(50), nullable=False, index=True)
    source_name = Column(String(200), nullable=False)
    source_url = Column(String(1000), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="published", index=True)
    featured = Column(Boolean, nullable=False, default=False)
    ai_generated = Column(Boolean, nullable=False, default=False)
    ai_confidence = Column(Float, nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    reading_time = Column(Integer, nullable=False, default=1)
    published_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)


class FetchLogModel(Base):
    """SQLAlchemy model for per-feed fetch logs."""

    __tablename__ = "rss_fetch_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(50), nullable=False, index=True)
    feed_id = Column(Integer, nullable=True)
    feed_name = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)
    items_fetched = Column(Integer, default=0)
    new_articles = Column(Integer, default=0)
    skipped = Column(Integer, default=0)
    errors_count = Column(Integer, default=0)
    error_details = Column(JSON, default=list)
    duration_ms = Column(Integer, default=0)
    status = Column(String(20), nullable=False)
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)


class FetchRunModel(Base):
    """SQLAlchemy model for ingestion runs."""

    __tablename__ = "rss_fetch_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(50), nullable=False, unique=True)
    trigger_type = Column(String(20), nullable=False, default="manual")
    triggered_by = Column(String(100), nullable=True)
    total_feeds = Column(Integer, default=0)
    total_items_fetched = Column(Integer, default=0)
    total_new_articles = Column(Integer, default=0)
    total_skipped = Column(Integer, default=0)
    total_errors = Column(Integer, default=0)
    overall_status = Column(String(20), nullable=False)
    duration_ms = Column(Integer, default=0)
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)


class FetchItemModel(Base):
    """SQLAlchemy model for per-item fetch decisions."""

    __tablename__ = "rss_fetch_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(50), nullable=False, index=True)
    feed_id = Column(Integer, nullable=True)
    feed_name = Column(String(100), nullable=False)
    item_title = Column(String(500), nullable=False)
    item_url = Column(String(1000), nullable=True)
    item_pub_date = Column(DateTime, nullable=True)
    action = Column(String(10), nullable=False)
    skip_reason = Column(String(200), nullable=True)
    error_message = Column(Text, nullable=True)
    article_id = Column(Integer, nullable=True)


class TrendingModel(Base):
    """SQLAlchemy model for trending entries."""

    __tablename__ = "trending_articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    rank_position = Column(Integer, nullable=False)
    ai_score = Column(Integer, nullable=False)
    ai_reasoning = Column(Text, nullable=False, default="")
    batch_id = Column(String(100), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False)


class SqlStore(ArticleStore):
    """ArticleStore on top of a SQLAlchemy engine.

    Tables are created on construction. Datetimes are stored as naive UTC
    and returned timezone-aware.
    """

    def __init__(self, url: str = "sqlite:///trendwire.db", echo: bool = False):
        database = make_url(url).database
        if url.startswith("sqlite") and database and database != ":memory:":
            directory = os.path.dirname(database)
            if directory:
                os.makedirs(directory, exist_ok=True)
        self.engine = create_engine(url, echo=echo)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(self.engine, expire_on_commit=False)

    def _session(self):
        return self._session_factory()

    def add_feed(self, feed: FeedSource) -> FeedSource:
        with self._session() as session, session.begin():
            row = FeedModel(
                name=feed.name,
                feed_url=feed.url,
                category=feed.category,
                is_active=feed.is_active,
                last_fetched_at=_to_db(feed.last_fetched_at),
                fetch_interval_minutes=feed.fetch_interval_minutes,
            )
            session.add(row)
            session.flush()
            return _feed_from_row(row)

    def get_feed(self, feed_id: int) -> FeedSource | None:
        with self._session() as session:
            row = session.get(FeedModel, feed_id)
            return _feed_from_row(row) if row else None

    def list_feeds(self, active_only: bool = False) -> list[FeedSource]:
        stmt = select(FeedModel).order_by(FeedModel.id)
        if active_only:
            stmt = stmt.where(FeedModel.is_active.is_(True))
        with self._session() as session:
            return [_feed_from_row(row) for row in session.execute(stmt).scalars()]

    def touch_feed(self, feed_id: int, fetched_at: datetime) -> None:
        with self._session() as session, session.begin():
            session.execute(
                update(FeedModel)
                .where(FeedModel.id == feed_id)
                .values(last_fetched_at=_to_db(fetched_at))
            )

    def find_duplicate(self, source_url: str, title: str) -> Article | None:
        stmt = (
            select(ArticleModel)
            .where(or_(ArticleModel.source_url == source_url, ArticleModel.title == title))
            .limit(1)
        )
        with self._session() as session:
            row = session.execute(stmt).scalar_one_or_none()
            return _article_from_row(row) if row else None

    def slug_exists(self, slug: str) -> bool:
        stmt = select(ArticleModel.id).where(ArticleModel.slug == slug).limit(1)
        with self._session() as session:
            return session.execute(stmt).first() is not None

    def insert_article(self, article: Article) -> Article:
        row = ArticleModel(
            title=article.title,
            slug=article.slug,
            excerpt=article.excerpt,
            content=article.content,
            featured_image=article.featured_image,
            category=article.category,
            source_name=article.source_name,
            source_url=article.source_url,
            status=article.status,
            featured=article.featured,
            ai_generated=article.ai_generated,
            ai_confidence=article.ai_confidence,
            view_count=article.view_count,
            reading_time=article.reading_time,
            published_at=_to_db(article.published_at),
            created_at=_to_db(article.created_at),
            updated_at=_to_db(article.updated_at),
        )
        try:
            with self._session() as session, session.begin():
                session.add(row)
                session.flush()
                return _article_from_row(row)
        except IntegrityError as exc:
            raise DuplicateArticleError(f"Article conflicts with an existing row: {exc.orig}") from exc

    def recent_titles(self, category: str, limit: int) -> list[str]:
        stmt = (
            select(ArticleModel.title)
            .where(ArticleModel.category == category)
            .order_by(ArticleModel.published_at.desc(), ArticleModel.id.desc())
            .limit(limit)
        )
        with self._session() as session:
            return list(session.execute(stmt).scalars())

    def recent_articles(self, category: str, limit: int, status: str = "published") -> list[Article]:
        stmt = (
            select(ArticleModel)
            .where(ArticleModel.category == category, ArticleModel.status == status)
            .order_by(ArticleModel.published_at.desc(), ArticleModel.id.desc())
            .limit(limit)
        )
        with self._session() as session:
            return [_article_from_row(row) for row in session.execute(stmt).scalars()]

    def categories_with_articles(self, status: str = "published") -> list[str]:
        stmt = (
            select(ArticleModel.category)
            .where(ArticleModel.status == status)
            .group_by(ArticleModel.category)
            .having(func.count(ArticleModel.id) > 0)
            .order_by(ArticleModel.category)
        )
        with self._session() as session:
            return list(session.execute(stmt).scalars())

    def add_fetch_log(self, log: FetchLog) -> None:
        with self._session() as session, session.begin():
            session.add(
                FetchLogModel(
                    run_id=log.run_id,
                    feed_id=log.feed_id,
                    feed_name=log.feed_name,
                    category=log.category,
                    items_fetched=log.items_fetched,
                    new_articles=log.new_articles,
                    skipped=log.skipped,
                    errors_count=log.errors_count,
                    error_details=list(log.error_details),
                    duration_ms=log.duration_ms,
                    status=log.status,
                    started_at=_to_db(log.started_at),
                    completed_at=_to_db(log.completed_at),
                )
            )

    def add_fetch_run(self, run: FetchRun) -> None:
        with self._session() as session, session.begin():
            session.add(
                FetchRunModel(
                    run_id=run.run_id,
                    trigger_type=run.trigger_type,
                    triggered_by=run.triggered_by,
                    total_feeds=run.total_feeds,
                    total_items_fetched=run.total_items_fetched,
                    total_new_articles=run.total_new_articles,
                    total_skipped=run.total_skipped,
                    total_errors=run.total_errors,
                    overall_status=run.overall_status,
                    duration_ms=run.duration_ms,
                    started_at=_to_db(run.started_at),
                    completed_at=_to_db(run.completed_at),
                )
            )

    def add_fetch_item(self, item: FetchItemLog) -> None:
        with self._session() as session, session.begin():
            session.add(
                FetchItemModel(
                    run_id=item.run_id,
                    feed_id=item.feed_id,
                    feed_name=item.feed_name,
                    item_title=item.item_title[:500],
                    item_url=item.item_url,
                    item_pub_date=_to_db(item.item_pub_date),
                    action=item.action,
                    skip_reason=item.skip_reason,
                    error_message=item.error_message,
                    article_id=item.article_id,
                )
            )

    def list_fetch_runs(self) -> list[FetchRun]:
        with self._session() as session:
            rows = session.execute(select(FetchRunModel).order_by(FetchRunModel.id)).scalars()
            return [
                FetchRun(
                    run_id=row.run_id,
                    trigger_type=row.trigger_type,
                    triggered_by=row.triggered_by,
                    total_feeds=row.total_feeds,
                    total_items_fetched=row.total_items_fetched,
                    total_new_articles=row.total_new_articles,
                    total_skipped=row.total_skipped,
                    total_errors=row.total_errors,
                    overall_status=row.overall_status,
                    duration_ms=row.duration_ms,
                    started_at=_from_db(row.started_at),
                    completed_at=_from_db(row.completed_at),
                )
                for row in rows
            ]

    def replace_trending(self, category: str, entries: list[TrendingEntry]) -> None:
        for entry in entries:
            if entry.category != category:
                raise ValueError(f"Entry for {entry.category!r} passed to replace {category!r}")
        with self._session() as session, session.begin():
            session.execute(delete(TrendingModel).where(TrendingModel.category == category))
            session.add_all(
                TrendingModel(
                    article_id=entry.article_id,
                    category=category,
                    rank_position=entry.rank,
                    ai_score=entry.score,
                    ai_reasoning=entry.reasoning,
                    batch_id=entry.batch_id,
                    expires_at=_to_db(entry.expires_at),
                    created_at=_to_db(entry.created_at),
                )
                for entry in entries
            )

    def get_trending(self, category: str) -> list[TrendingEntry]:
        stmt = (
            select(TrendingModel)
            .where(TrendingModel.category == category)
            .order_by(TrendingModel.rank_position)
        )
        with self._session() as session:
            return [
                TrendingEntry(
                    article_id=row.article_id,
                    category=row.category,
                    rank=row.rank_position,
                    score=row.ai_score,
                    reasoning=row.ai_reasoning,
                    batch_id=row.batch_id,
                    expires_at=_from_db(row.expires_at),
                    created_at=_from_db(row.created_at),
                )
                for row in session.execute(stmt).scalars()
            ]


def _to_db(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _feed_from_row(row: FeedModel) -> FeedSource:
    return FeedSource(
        id=row.id,
        name=row.name,
        url=row.feed_url,
        category=row.category,
        is_active=bool(row.is_active),
        last_fetched_at=_from_db(row.last_fetched_at),
        fetch_interval_minutes=row.fetch_interval_minutes,
    )


def _article_from_row(row: ArticleModel) -> Article:
    return Article(
        id=row.id,
        title=row.title,
        slug=row.slug,
        excerpt=row.excerpt,
        content=row.content,
        category=row.category,
        source_name=row.source_name,
        source_url=row.source_url,
        featured_image=row.featured_image,
        status=row.status,
        featured=bool(row.featured),
        ai_generated=bool(row.ai_generated),
        ai_confidence=row.ai_confidence,
        view_count=row.view_count,
        reading_time=row.reading_time,
        published_at=_from_db(row.published_at),
        created_at=_from_db(row.created_at),
        updated_at=_from_db(row.updated_at),
    )
