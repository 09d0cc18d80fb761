"""Shared fixtures: a controllable generator and fresh stores."""

import threading
from collections.abc import Sequence

import pytest

from articles.errors import GenerationFailure
from articles.models import GeneratedContent, ImageReference
from articles.store import ArticleStore
from articles.tasks import GenerationTaskManager
from generation.base import Generator


class FakeGenerator(Generator):
    """Generator whose output, failure and timing are set by the test."""

    name = "fake"

    def __init__(
        self,
        result: GeneratedContent | None = None,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.result = result or GeneratedContent(title="T", description="D", content="C", tags=("AI",))
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, str | None, tuple[ImageReference, ...]]] = []
        self.started = threading.Event()

    def generate(
        self,
        topic: str,
        additional_context_url: str | None = None,
        images: Sequence[ImageReference] = (),
    ) -> GeneratedContent:
        self.calls.append((topic, additional_context_url, tuple(images)))
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def store():
    return ArticleStore()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def gate():
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def manager(store, generator):
    mgr = GenerationTaskManager(store, generator, timeout=5, max_workers=2)
    yield mgr
    mgr.shutdown(wait=False)


@pytest.fixture
def failing_generator():
    return FakeGenerator(error=GenerationFailure("model overloaded"))
