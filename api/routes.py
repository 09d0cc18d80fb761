"""API routes for draftdesk."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from pydantic import BaseModel, Field

from articles.errors import (
    ArticleNotFound,
    EmptyTopic,
    ImageNotFound,
    InvalidImage,
    InvalidTransition,
)
from articles.files import LocalImageStorage
from articles.images import ImageTracker
from articles.models import Article, ArticleEdit, ArticleStatus, GenerationRequest, ImageReference
from articles.store import ArticleStore
from articles.tasks import GenerationTaskManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Dependencies (objects are built once per process in main.lifespan) ---

def get_store(request: Request) -> ArticleStore:
    return request.app.state.store


def get_manager(request: Request) -> GenerationTaskManager:
    return request.app.state.manager


def get_images(request: Request) -> ImageTracker:
    return request.app.state.images


def get_file_storage(request: Request) -> LocalImageStorage:
    return request.app.state.file_storage


# --- Request bodies ---

class CreateArticleBody(BaseModel):
    topic: str
    additional_context_url: str | None = None
    images: list[str] = Field(default_factory=list)  # filenames returned by POST /api/images


class UpdateArticleBody(BaseModel):
    title: str | None = None
    description: str | None = None
    content: str | None = None
    tags: list[str] | None = None


class RegenerateBody(BaseModel):
    topic: str | None = None
    additional_context_url: str | None = None
    images: list[str] | None = None


# --- Serialization ---

def _serialize_image(image: ImageReference) -> dict[str, str]:
    return {"filename": image.filename, "original_name": image.original_name}


def _serialize(article: Article) -> dict[str, Any]:
    """Serialize an Article to a dict."""
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "description": article.description,
        "content": article.content,
        "status": article.status.value,
        "is_published": article.is_published,
        "created_at": article.created_at.isoformat(),
        "updated_at": article.updated_at.isoformat(),
        "tags": list(article.tags),
        "topic": article.topic,
        "additional_context_url": article.additional_context_url,
        "images": [_serialize_image(i) for i in article.images],
        "error_message": article.error_message,
    }


def _not_found(e: ArticleNotFound | ImageNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=e.message)


# --- Routes ---

@router.get("/health")
def health(manager: GenerationTaskManager = Depends(get_manager)) -> dict[str, Any]:
    """Healthcheck endpoint."""
    return {
        "status": "ok",
        "service": "draftdesk",
        "generator": getattr(manager.generator, "name", type(manager.generator).__name__),
        "active_generations": len(manager.active_ids()),
    }


@router.get("/articles")
def list_articles(
    status: ArticleStatus | None = Query(default=None),
    published: bool | None = Query(default=None),
    store: ArticleStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """List articles, most recently created first."""
    return [_serialize(a) for a in store.list(status=status, published=published)]


@router.get("/articles/{article_id}")
def get_article(article_id: int, store: ArticleStore = Depends(get_store)) -> dict[str, Any]:
    try:
        return _serialize(store.get(article_id))
    except ArticleNotFound as e:
        raise _not_found(e)


@router.post("/articles", status_code=202)
def create_article(
    body: CreateArticleBody,
    manager: GenerationTaskManager = Depends(get_manager),
    images: ImageTracker = Depends(get_images),
) -> dict[str, Any]:
    """Create a PROCESSING article and start generating it in the background."""
    try:
        request = GenerationRequest(
            topic=body.topic,
            additional_context_url=body.additional_context_url,
            images=images.resolve(body.images),
        )
    except EmptyTopic as e:
        raise HTTPException(status_code=422, detail=e.message)
    except ImageNotFound as e:
        raise _not_found(e)

    return _serialize(manager.submit(request))


@router.put("/articles/{article_id}")
def update_article(
    article_id: int,
    body: UpdateArticleBody,
    store: ArticleStore = Depends(get_store),
) -> dict[str, Any]:
    """Manual edit of title, description, content or tags."""
    edit = ArticleEdit(
        title=body.title,
        description=body.description,
        content=body.content,
        tags=tuple(body.tags) if body.tags is not None else None,
    )
    try:
        return _serialize(store.update(article_id, edit))
    except ArticleNotFound as e:
        raise _not_found(e)


@router.post("/articles/{article_id}/publish")
def toggle_publish(article_id: int, store: ArticleStore = Depends(get_store)) -> dict[str, Any]:
    """Flip the article's publication flag."""
    try:
        return _serialize(store.toggle_publish(article_id))
    except ArticleNotFound as e:
        raise _not_found(e)


@router.post("/articles/{article_id}/regenerate", status_code=202)
def regenerate_article(
    article_id: int,
    body: RegenerateBody | None = None,
    store: ArticleStore = Depends(get_store),
    manager: GenerationTaskManager = Depends(get_manager),
    images: ImageTracker = Depends(get_images),
) -> dict[str, Any]:
    """Send a DONE or ERROR article back through generation.

    Fields present in the body replace the article's stored request; absent
    ones are kept. An explicit ``null`` context URL clears it.
    """
    try:
        request = None
        if body is not None and body.model_fields_set:
            current = store.get(article_id)
            sent = body.model_fields_set
            request = GenerationRequest(
                topic=body.topic if body.topic is not None else current.topic,
                additional_context_url=(
                    body.additional_context_url
                    if "additional_context_url" in sent
                    else current.additional_context_url
                ),
                images=images.resolve(body.images) if body.images is not None else current.images,
            )
        return _serialize(manager.regenerate(article_id, request))
    except EmptyTopic as e:
        raise HTTPException(status_code=422, detail=e.message)
    except (ArticleNotFound, ImageNotFound) as e:
        raise _not_found(e)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=e.message)


@router.delete("/articles/{article_id}", status_code=204)
def delete_article(article_id: int, store: ArticleStore = Depends(get_store)) -> Response:
    try:
        store.delete(article_id)
    except ArticleNotFound as e:
        raise _not_found(e)
    return Response(status_code=204)


@router.post("/images")
def upload_images(
    files: list[UploadFile] = File(...),
    images: ImageTracker = Depends(get_images),
    file_storage: LocalImageStorage = Depends(get_file_storage),
) -> list[dict[str, str]]:
    """Store uploaded image bytes, then register their references.

    A batch whose bytes cannot all be written registers nothing.
    """
    written: list[str] = []

    def save(index: int, ref: ImageReference) -> None:
        file_storage.save(ref.filename, files[index].file.read())
        written.append(ref.filename)

    try:
        refs = images.register(((f.filename or "", f.content_type) for f in files), store=save)
    except InvalidImage as e:
        raise HTTPException(status_code=415, detail=e.message)
    except OSError as e:
        logger.error("Failed to store uploaded images: %s", e)
        for filename in written:
            file_storage.delete(filename)
        raise HTTPException(status_code=500, detail="Failed to store uploaded images")

    return [_serialize_image(r) for r in refs]


@router.get("/images")
def list_images(images: ImageTracker = Depends(get_images)) -> list[dict[str, str]]:
    return [_serialize_image(r) for r in images.list()]
