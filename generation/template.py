"""Offline generator that fills articles from fixed templates."""

import logging
import time
from collections.abc import Sequence

from articles.models import GeneratedContent, ImageReference
from config import TEMPLATE_GENERATOR_DELAY
from generation.base import Generator

logger = logging.getLogger(__name__)


class TemplateGenerator(Generator):
    """Deterministic stand-in for the LLM, used for local runs and demos."""

    name = "template"

    def __init__(self, delay: float = TEMPLATE_GENERATOR_DELAY) -> None:
        self.delay = delay

    def generate(
        self,
        topic: str,
        additional_context_url: str | None = None,
        images: Sequence[ImageReference] = (),
    ) -> GeneratedContent:
        if self.delay > 0:
            time.sleep(self.delay)

        content = f"Article content about {topic}..."
        if additional_context_url:
            content += f"\n\nSee also: {additional_context_url}"
        for image in images:
            content += f"\n\n![{image.original_name}]({image.filename})"

        logger.debug("Template content for %r (%d images)", topic, len(images))
        return GeneratedContent(
            title=f"Article on: {topic}",
            description=f"An automatically generated article about {topic.lower()}...",
            content=content,
            tags=(topic,),
        )
