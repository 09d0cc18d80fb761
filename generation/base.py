"""Base interface for content generators."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from articles.models import GeneratedContent, ImageReference


class Generator(ABC):
    """Turns a topic into article content.

    Implementations may be slow and are always called off the request
    thread. Any failure must be raised as ``GenerationFailure``.
    """

    name: str  # Must be set by subclasses

    @abstractmethod
    def generate(
        self,
        topic: str,
        additional_context_url: str | None = None,
        images: Sequence[ImageReference] = (),
    ) -> GeneratedContent:
        """Generate title, description, content and tags for ``topic``."""
        ...
