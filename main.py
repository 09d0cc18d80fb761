"""draftdesk — FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from api.routes import router
from articles.files import LocalImageStorage
from articles.images import ImageTracker
from articles.store import ArticleStore
from articles.tasks import GenerationTaskManager
from db.database import init_db
from db.repository import ArticleRepository
from generation import build_generator

logger = logging.getLogger(__name__)


def build_services(app: FastAPI) -> None:
    """Construct the store, image tracker and task manager for this process."""
    repository = None
    if config.STORAGE_BACKEND == "sqlite":
        init_db()
        repository = ArticleRepository()
    elif config.STORAGE_BACKEND != "memory":
        raise ValueError(f"Unknown STORAGE_BACKEND {config.STORAGE_BACKEND!r}")

    store = ArticleStore(repository=repository)
    store.recover_interrupted()

    app.state.store = store
    app.state.images = ImageTracker(repository=repository)
    app.state.file_storage = LocalImageStorage(config.UPLOAD_DIR)
    app.state.manager = GenerationTaskManager(
        store,
        build_generator(config.GENERATOR_BACKEND),
        timeout=config.GENERATION_TIMEOUT,
        max_workers=config.GENERATION_MAX_WORKERS,
    )
    logger.info(
        "draftdesk ready: storage=%s generator=%s workers=%d timeout=%gs",
        config.STORAGE_BACKEND,
        config.GENERATOR_BACKEND,
        config.GENERATION_MAX_WORKERS,
        config.GENERATION_TIMEOUT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build services on startup, stop generation on shutdown."""
    build_services(app)
    yield
    app.state.manager.shutdown(wait=False)


app = FastAPI(
    title="draftdesk",
    description="Blog admin — AI article generation, editing and publication",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)

if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run("main:app", host=config.API_HOST, port=config.API_PORT, reload=True)
