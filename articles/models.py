"""Article domain values and the patches that move them between states."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from articles.errors import EmptyTopic


class ArticleStatus(str, Enum):
    """Generation lifecycle of an article."""

    PROCESSING = "PROCESSING"
    DONE = "DONE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ImageReference:
    """Metadata for an uploaded image. The bytes live in file storage."""

    filename: str
    original_name: str


@dataclass(frozen=True)
class Article:
    """Snapshot of an article record.

    Instances are immutable; the store replaces a record wholesale on every
    mutation, so a reader holding one never sees a half-applied change.

    Attributes:
        id: Store-assigned identifier, never reused within a process
        slug: URL slug, ``temp-...`` until generation succeeds
        title: Generated or edited title
        description: Short summary
        content: Article body
        status: Generation status
        is_published: Publication flag, independent of status
        created_at: Creation time (UTC)
        tags: Ordered tags
        topic: Trimmed topic the article was requested for
        additional_context_url: Optional reference URL passed to the generator
        images: Images attached to the generation request
        error_message: Reason of the last failed generation
        updated_at: Time of the last mutation (UTC)
    """

    id: int
    slug: str
    status: ArticleStatus
    created_at: datetime
    updated_at: datetime
    topic: str = ""
    title: str = ""
    description: str = ""
    content: str = ""
    is_published: bool = False
    tags: tuple[str, ...] = ()
    additional_context_url: str | None = None
    images: tuple[ImageReference, ...] = ()
    error_message: str | None = None


@dataclass(frozen=True)
class GenerationRequest:
    """Input bundle for one generation run."""

    topic: str
    additional_context_url: str | None = None
    images: tuple[ImageReference, ...] = ()

    def __post_init__(self) -> None:
        topic = (self.topic or "").strip()
        if not topic:
            raise EmptyTopic()
        url = (self.additional_context_url or "").strip() or None
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "topic", topic)
        object.__setattr__(self, "additional_context_url", url)
        object.__setattr__(self, "images", tuple(self.images))

    @classmethod
    def for_article(cls, article: Article) -> "GenerationRequest":
        """Rebuild the request an existing article was generated from."""
        return cls(
            topic=article.topic,
            additional_context_url=article.additional_context_url,
            images=article.images,
        )


@dataclass(frozen=True)
class GeneratedContent:
    """What a generator returns for a topic."""

    title: str
    description: str
    content: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationSuccessPatch:
    """Fields written when generation completes (PROCESSING -> DONE)."""

    title: str
    description: str
    content: str
    slug: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationFailurePatch:
    """Reason recorded when generation fails (PROCESSING -> ERROR)."""

    reason: str


@dataclass(frozen=True)
class ArticleEdit:
    """Manual edit from an operator. ``None`` leaves a field unchanged."""

    title: str | None = None
    description: str | None = None
    content: str | None = None
    tags: tuple[str, ...] | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.title, self.description, self.content, self.tags)
        )
