from articles.errors import (
    ArticleError,
    ArticleNotFound,
    EmptyTopic,
    GenerationFailure,
    ImageNotFound,
    InvalidImage,
    InvalidTransition,
)
from articles.images import ImageTracker
from articles.models import (
    Article,
    ArticleEdit,
    ArticleStatus,
    GeneratedContent,
    GenerationFailurePatch,
    GenerationRequest,
    GenerationSuccessPatch,
    ImageReference,
)
from articles.store import ArticleStore
from articles.tasks import GenerationTaskManager

__all__ = [
    "Article",
    "ArticleEdit",
    "ArticleError",
    "ArticleNotFound",
    "ArticleStatus",
    "ArticleStore",
    "EmptyTopic",
    "GeneratedContent",
    "GenerationFailure",
    "GenerationFailurePatch",
    "GenerationRequest",
    "GenerationSuccessPatch",
    "GenerationTaskManager",
    "ImageNotFound",
    "ImageReference",
    "ImageTracker",
    "InvalidImage",
    "InvalidTransition",
]
