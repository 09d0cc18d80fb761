"""Runs generation for articles off the caller's thread.

``submit`` creates the PROCESSING article synchronously and schedules one
unit of work on a bounded thread pool. The unit calls the generator on its
own daemon thread and waits for it at most ``timeout`` seconds, so a hung
generator is abandoned rather than holding a pool slot. An abandoned call is
not counted against ``max_workers``. Every outcome of the unit is turned into
article state; nothing is raised across the pool.
"""

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING

from articles.errors import ArticleNotFound, InvalidTransition
from articles.models import (
    Article,
    GeneratedContent,
    GenerationFailurePatch,
    GenerationRequest,
    GenerationSuccessPatch,
)
from articles.slugs import derive_slug
from articles.store import ArticleStore
from config import GENERATION_MAX_WORKERS, GENERATION_TIMEOUT

if TYPE_CHECKING:
    from generation.base import Generator

logger = logging.getLogger(__name__)

SHUTDOWN_REASON = "generation cancelled on shutdown"


class GenerationTaskManager:
    """Bridges generation requests to the external generator."""

    def __init__(
        self,
        store: ArticleStore,
        generator: "Generator",
        timeout: float = GENERATION_TIMEOUT,
        max_workers: int = GENERATION_MAX_WORKERS,
    ) -> None:
        self.store = store
        self.generator = generator
        self.timeout = timeout
        self.max_workers = max_workers
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="generation")
        self._lock = threading.RLock()
        self._active: dict[int, Future] = {}
        self._closed = False

    # -- public API ------------------------------------------------------------

    def submit(self, request: GenerationRequest) -> Article:
        """Create a PROCESSING article and start generating it."""
        with self._lock:
            if self._closed:
                raise RuntimeError("GenerationTaskManager is shut down")
            article = self.store.create(
                request.topic,
                additional_context_url=request.additional_context_url,
                images=request.images,
            )
            self._schedule(article.id, request)
        logger.info("Submitted article %d for topic %r", article.id, request.topic)
        return article

    def regenerate(self, article_id: int, request: GenerationRequest | None = None) -> Article:
        """Start a fresh generation run for an existing DONE/ERROR article."""
        with self._lock:
            if self._closed:
                raise RuntimeError("GenerationTaskManager is shut down")
            # done callbacks may lag behind waiters woken by the result
            future = self._active.get(article_id)
            if future is not None and not future.done():
                current = self.store.get(article_id)
                raise InvalidTransition(article_id, current.status.value, "regenerate")
            article = self.store.begin_regeneration(article_id, request)
            if request is None:
                request = GenerationRequest.for_article(article)
            self._schedule(article_id, request)
        logger.info("Regenerating article %d for topic %r", article_id, request.topic)
        return article

    def active_ids(self) -> set[int]:
        with self._lock:
            return {article_id for article_id, future in self._active.items() if not future.done()}

    def wait(self, article_id: int, timeout: float | None = None) -> Article | None:
        """Block until the article's current unit of work has finished."""
        with self._lock:
            future = self._active.get(article_id)
        if future is not None:
            try:
                future.result(timeout=timeout)
            except CancelledError:
                pass
        try:
            return self.store.get(article_id)
        except ArticleNotFound:
            return None

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and cancel units that have not started."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pending = list(self._active.items())

        cancelled = [article_id for article_id, future in pending if future.cancel()]
        for article_id in cancelled:
            self._fail(article_id, SHUTDOWN_REASON)
        self._pool.shutdown(wait=wait, cancel_futures=True)
        logger.info(
            "Generation manager stopped (%d cancelled, %d in flight)",
            len(cancelled),
            len(pending) - len(cancelled),
        )

    # -- unit of work ------------------------------------------------------------

    def _schedule(self, article_id: int, request: GenerationRequest) -> None:
        """Queue a unit for ``article_id``. Caller holds ``self._lock``."""
        future = self._pool.submit(self._run, article_id, request)
        self._active[article_id] = future
        future.add_done_callback(lambda f, article_id=article_id: self._release(article_id, f))

    def _release(self, article_id: int, future: Future) -> None:
        with self._lock:
            if self._active.get(article_id) is future:
                del self._active[article_id]

    def _call_generator(self, article_id: int, request: GenerationRequest) -> Future:
        """Run the generator on a daemon thread so a timeout can abandon it."""
        call: Future = Future()

        def target() -> None:
            if not call.set_running_or_notify_cancel():
                return
            try:
                call.set_result(self.generator.generate(
                    request.topic,
                    additional_context_url=request.additional_context_url,
                    images=request.images,
                ))
            except BaseException as e:
                call.set_exception(e)

        threading.Thread(target=target, name=f"generate-{article_id}", daemon=True).start()
        return call

    def _run(self, article_id: int, request: GenerationRequest) -> None:
        logger.info("Generating article %d", article_id)
        try:
            call = self._call_generator(article_id, request)
            try:
                content = call.result(timeout=self.timeout)
            except FutureTimeoutError:
                logger.warning("Generation for article %d timed out after %ss", article_id, self.timeout)
                self._fail(article_id, f"generation timed out after {self.timeout:g}s")
                return
            except Exception as e:
                logger.warning("Generation for article %d failed: %s", article_id, e)
                self._fail(article_id, str(e) or e.__class__.__name__)
                return
            self._succeed(article_id, request, content)
        except Exception:
            logger.exception("Unexpected error in generation unit for article %d", article_id)
            self._fail(article_id, "internal error during generation")

    def _succeed(self, article_id: int, request: GenerationRequest, content: GeneratedContent) -> None:
        slug = derive_slug(request.topic, self.store.slugs(exclude=article_id), article_id)
        patch = GenerationSuccessPatch(
            title=content.title,
            description=content.description,
            content=content.content,
            slug=slug,
            tags=tuple(content.tags),
        )
        try:
            article = self.store.apply_success(article_id, patch)
        except ArticleNotFound:
            logger.info("Article %d was deleted before generation finished", article_id)
            return
        except InvalidTransition as e:
            logger.error("Dropping generated content: %s", e)
            return
        logger.info("Article %d generated as %r", article_id, article.slug)

    def _fail(self, article_id: int, reason: str) -> None:
        try:
            self.store.apply_failure(article_id, GenerationFailurePatch(reason=reason))
        except ArticleNotFound:
            logger.info("Article %d was deleted before generation failed", article_id)
        except InvalidTransition as e:
            logger.error("Dropping generation failure: %s", e)
