"""Exceptions raised by the article lifecycle core."""


class ArticleError(Exception):
    """Base exception for all article lifecycle errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class EmptyTopic(ArticleError):
    """Raised when a generation request has no usable topic."""

    def __init__(self, message: str = "Topic must not be empty"):
        super().__init__(message)


class ArticleNotFound(ArticleError):
    """Raised when an operation references an id that is not in the store."""

    def __init__(self, article_id: int):
        self.article_id = article_id
        super().__init__(f"Article {article_id} not found")


class InvalidTransition(ArticleError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, article_id: int, status: str, action: str):
        self.article_id = article_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} article {article_id} in status {status}")


class GenerationFailure(ArticleError):
    """Raised by generator adapters when content could not be produced."""

    pass


class InvalidImage(ArticleError):
    """Raised when an uploaded file does not look like an image."""

    def __init__(self, message: str, original_name: str = ""):
        self.original_name = original_name
        super().__init__(message)


class ImageNotFound(ArticleError):
    """Raised when a filename was never registered with the image tracker."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Image {filename!r} not found")
