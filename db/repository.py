"""Maps article and image values to database rows."""

import json
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from articles.models import Article, ArticleStatus, ImageReference
from db.database import get_session
from db.models import ArticleRecord, CounterRecord, ImageRecord

logger = logging.getLogger(__name__)

LAST_ARTICLE_ID = "last_article_id"


def _parse_json_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_article(record: ArticleRecord) -> Article:
    images = tuple(
        ImageReference(filename=str(i["filename"]), original_name=str(i.get("original_name", "")))
        for i in _parse_json_list(record.images)
        if isinstance(i, dict) and "filename" in i
    )
    created_at = _as_utc(record.created_at)
    return Article(
        id=record.id,
        slug=record.slug,
        status=ArticleStatus(record.status),
        created_at=created_at,
        updated_at=_as_utc(record.updated_at) or created_at,
        topic=record.topic or "",
        title=record.title or "",
        description=record.description or "",
        content=record.content or "",
        is_published=bool(record.is_published),
        tags=tuple(str(t) for t in _parse_json_list(record.tags)),
        additional_context_url=record.additional_context_url,
        images=images,
        error_message=record.error_message,
    )


class ArticleRepository:
    """Durable storage for the article store and image tracker."""

    def __init__(self, session_factory: Callable[[], Session] = get_session) -> None:
        self._session_factory = session_factory

    def load_articles(self) -> list[Article]:
        session = self._session_factory()
        try:
            records = (
                session.query(ArticleRecord)
                .order_by(ArticleRecord.created_at.desc(), ArticleRecord.id.desc())
                .all()
            )
            return [_to_article(r) for r in records]
        finally:
            session.close()

    def last_article_id(self) -> int:
        """Highest article id ever saved, including ids since deleted."""
        session = self._session_factory()
        try:
            counter = session.get(CounterRecord, LAST_ARTICLE_ID)
            return counter.value if counter is not None else 0
        finally:
            session.close()

    def save_article(self, article: Article) -> None:
        """Insert or update the row for ``article``."""
        session = self._session_factory()
        try:
            session.merge(ArticleRecord(
                id=article.id,
                slug=article.slug,
                topic=article.topic,
                title=article.title,
                description=article.description,
                content=article.content,
                status=article.status.value,
                is_published=article.is_published,
                tags=json.dumps(list(article.tags), ensure_ascii=False),
                additional_context_url=article.additional_context_url,
                images=json.dumps(
                    [{"filename": i.filename, "original_name": i.original_name} for i in article.images],
                    ensure_ascii=False,
                ),
                error_message=article.error_message,
                created_at=_naive_utc(article.created_at),
                updated_at=_naive_utc(article.updated_at),
            ))
            counter = session.get(CounterRecord, LAST_ARTICLE_ID)
            if counter is None:
                session.add(CounterRecord(name=LAST_ARTICLE_ID, value=article.id))
            elif counter.value < article.id:
                counter.value = article.id
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("Error saving article %d", article.id)
            raise
        finally:
            session.close()

    def delete_article(self, article_id: int) -> None:
        session = self._session_factory()
        try:
            session.query(ArticleRecord).filter(ArticleRecord.id == article_id).delete()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load_images(self) -> list[ImageReference]:
        session = self._session_factory()
        try:
            records = (
                session.query(ImageRecord)
                .order_by(ImageRecord.id)
                .all()
            )
            return [ImageReference(filename=r.filename, original_name=r.original_name) for r in records]
        finally:
            session.close()

    def save_images(self, images: Iterable[ImageReference]) -> None:
        session = self._session_factory()
        try:
            now = datetime.utcnow()
            for ref in images:
                session.add(ImageRecord(
                    filename=ref.filename,
                    original_name=ref.original_name,
                    registered_at=now,
                ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
