"""Article store: the single owner of the article collection.

All reads and writes go through :class:`ArticleStore`. Records are immutable
snapshots swapped under one lock, so a reader never observes a partially
applied mutation. When a repository is attached, each new record is
persisted before it replaces the in-memory one.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from articles.errors import ArticleNotFound, EmptyTopic, InvalidTransition
from articles.models import (
    Article,
    ArticleEdit,
    ArticleStatus,
    GenerationFailurePatch,
    GenerationRequest,
    GenerationSuccessPatch,
    ImageReference,
)
from articles.slugs import derive_slug, next_id, temporary_slug

if TYPE_CHECKING:
    from db.repository import ArticleRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArticleStore:
    """Ordered, lock-guarded collection of articles (most recent first)."""

    def __init__(
        self,
        repository: "ArticleRepository | None" = None,
        lock: AbstractContextManager | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._lock = lock if lock is not None else threading.RLock()
        self._clock = clock or _utcnow
        self._articles: dict[int, Article] = {}
        # ids, newest first
        self._order: list[int] = []
        self._last_id = 0

        if repository is not None:
            self._load(repository.load_articles(), repository.last_article_id())

    def _load(self, articles: Iterable[Article], last_issued: int = 0) -> None:
        ordered = sorted(articles, key=lambda a: (a.created_at, a.id), reverse=True)
        for article in ordered:
            self._articles[article.id] = article
            self._order.append(article.id)
        self._last_id = max(max(self._articles, default=0), last_issued)
        logger.info("Loaded %d articles from storage", len(ordered))

    def _require(self, article_id: int) -> Article:
        try:
            return self._articles[article_id]
        except KeyError:
            raise ArticleNotFound(article_id) from None

    def _commit(self, article: Article) -> Article:
        """Persist then publish the new snapshot. Caller holds the lock."""
        if self._repository is not None:
            self._repository.save_article(article)
        self._articles[article.id] = article
        return article

    # -- reads ---------------------------------------------------------------

    def get(self, article_id: int) -> Article:
        with self._lock:
            return self._require(article_id)

    def list(
        self,
        status: ArticleStatus | None = None,
        published: bool | None = None,
    ) -> list[Article]:
        """Return all articles, most recently created first."""
        with self._lock:
            articles = [self._articles[i] for i in self._order]
        if status is not None:
            articles = [a for a in articles if a.status == status]
        if published is not None:
            articles = [a for a in articles if a.is_published == published]
        return articles

    def slugs(self, exclude: int | None = None) -> set[str]:
        with self._lock:
            return {a.slug for a in self._articles.values() if a.id != exclude}

    def __len__(self) -> int:
        with self._lock:
            return len(self._articles)

    # -- creation ------------------------------------------------------------

    def create(
        self,
        topic: str,
        additional_context_url: str | None = None,
        images: Iterable[ImageReference] = (),
    ) -> Article:
        """Insert a PROCESSING article at the front and return it."""
        topic = (topic or "").strip()
        if not topic:
            raise EmptyTopic()

        with self._lock:
            article_id = next_id(self._articles, self._last_id)
            taken = {a.slug for a in self._articles.values()}
            slug = temporary_slug()
            while slug in taken:
                slug = temporary_slug()

            now = self._clock()
            article = Article(
                id=article_id,
                slug=slug,
                status=ArticleStatus.PROCESSING,
                created_at=now,
                updated_at=now,
                topic=topic,
                additional_context_url=additional_context_url,
                images=tuple(images),
            )
            self._commit(article)
            self._order.insert(0, article_id)
            self._last_id = article_id

        logger.debug("Created article %d (%s) for topic %r", article.id, article.slug, topic)
        return article

    # -- generation transitions ----------------------------------------------

    def apply_success(self, article_id: int, patch: GenerationSuccessPatch) -> Article:
        """PROCESSING -> DONE with the generated fields."""
        with self._lock:
            current = self._require(article_id)
            if current.status != ArticleStatus.PROCESSING:
                raise InvalidTransition(article_id, current.status.value, "complete")

            others = {a.slug for a in self._articles.values() if a.id != article_id}
            slug = patch.slug
            if slug in others:
                slug = derive_slug(slug, others, article_id)
                logger.info("Slug %r taken, using %r for article %d", patch.slug, slug, article_id)

            article = self._commit(replace(
                current,
                title=patch.title,
                description=patch.description,
                content=patch.content,
                slug=slug,
                tags=tuple(patch.tags),
                status=ArticleStatus.DONE,
                error_message=None,
                updated_at=self._clock(),
            ))

        logger.debug("Article %d is DONE (%s)", article_id, article.slug)
        return article

    def apply_failure(self, article_id: int, patch: GenerationFailurePatch) -> Article:
        """PROCESSING -> ERROR. Content fields are left as they are."""
        with self._lock:
            current = self._require(article_id)
            if current.status != ArticleStatus.PROCESSING:
                raise InvalidTransition(article_id, current.status.value, "fail")
            article = self._commit(replace(
                current,
                status=ArticleStatus.ERROR,
                error_message=patch.reason,
                updated_at=self._clock(),
            ))

        logger.debug("Article %d is ERROR: %s", article_id, patch.reason)
        return article

    def begin_regeneration(
        self,
        article_id: int,
        request: GenerationRequest | None = None,
    ) -> Article:
        """DONE/ERROR -> PROCESSING for an explicit re-generation.

        When ``request`` is given it replaces the topic, context URL and
        images the article is generated from.
        """
        changes: dict = {}
        if request is not None:
            changes = {
                "topic": request.topic,
                "additional_context_url": request.additional_context_url,
                "images": tuple(request.images),
            }

        with self._lock:
            current = self._require(article_id)
            if current.status == ArticleStatus.PROCESSING:
                raise InvalidTransition(article_id, current.status.value, "regenerate")
            article = self._commit(replace(
                current,
                status=ArticleStatus.PROCESSING,
                error_message=None,
                updated_at=self._clock(),
                **changes,
            ))

        logger.debug("Article %d returned to PROCESSING", article_id)
        return article

    def recover_interrupted(self, reason: str = "generation interrupted by restart") -> int:
        """Fail articles left in PROCESSING by a previous process."""
        with self._lock:
            stale = [a.id for a in self._articles.values() if a.status == ArticleStatus.PROCESSING]
        for article_id in stale:
            self.apply_failure(article_id, GenerationFailurePatch(reason=reason))
        if stale:
            logger.warning("Marked %d interrupted articles as ERROR", len(stale))
        return len(stale)

    # -- operator actions ----------------------------------------------------

    def update(self, article_id: int, edit: ArticleEdit) -> Article:
        """Apply a manual edit. Status, slug and publication are untouched."""
        changes: dict = {}
        if edit.title is not None:
            changes["title"] = edit.title
        if edit.description is not None:
            changes["description"] = edit.description
        if edit.content is not None:
            changes["content"] = edit.content
        if edit.tags is not None:
            changes["tags"] = tuple(edit.tags)

        with self._lock:
            current = self._require(article_id)
            if not changes:
                return current
            article = self._commit(replace(current, updated_at=self._clock(), **changes))

        logger.debug("Article %d edited: %s", article_id, ", ".join(sorted(changes)))
        return article

    def toggle_publish(self, article_id: int) -> Article:
        """Flip ``is_published``. Allowed in any status."""
        with self._lock:
            current = self._require(article_id)
            article = self._commit(replace(
                current,
                is_published=not current.is_published,
                updated_at=self._clock(),
            ))

        logger.debug("Article %d published=%s", article_id, article.is_published)
        return article

    def delete(self, article_id: int) -> Article:
        with self._lock:
            current = self._require(article_id)
            if self._repository is not None:
                self._repository.delete_article(article_id)
            del self._articles[article_id]
            self._order.remove(article_id)

        logger.debug("Deleted article %d", article_id)
        return current
