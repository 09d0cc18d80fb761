"""Tracks metadata of uploaded images so they can be attached to requests."""

import logging
import mimetypes
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING

from articles.errors import ImageNotFound, InvalidImage
from articles.models import ImageReference

if TYPE_CHECKING:
    from db.repository import ArticleRepository

logger = logging.getLogger(__name__)

ImageFile = str | tuple[str, str | None]


def _basename(name: str) -> str:
    """Strip any client-side directory components from an upload name."""
    return PurePosixPath(PureWindowsPath(name).name).name.strip()


def _is_image(name: str, content_type: str | None) -> bool:
    if content_type:
        return content_type.lower().startswith("image/")
    guessed, _ = mimetypes.guess_type(name)
    return bool(guessed and guessed.startswith("image/"))


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class ImageTracker:
    """Registry of uploaded image references, in upload order."""

    def __init__(
        self,
        repository: "ArticleRepository | None" = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or _now_ms
        self._lock = threading.Lock()
        self._images: dict[str, ImageReference] = {}
        if repository is not None:
            for ref in repository.load_images():
                self._images[ref.filename] = ref
            logger.info("Loaded %d image references", len(self._images))

    def register(
        self,
        files: Iterable[ImageFile],
        store: Callable[[int, ImageReference], None] | None = None,
    ) -> list[ImageReference]:
        """Register uploaded files and return their references in input order.

        Each item is an original file name or a ``(name, content_type)`` pair.
        The batch is rejected as a whole if any item is not an image.

        ``store(index, ref)`` is called for every item once its filename is
        assigned and before anything is recorded. If it raises, no reference
        from the batch is registered.
        """
        items: list[tuple[str, str | None]] = []
        for item in files:
            name, content_type = (item, None) if isinstance(item, str) else item
            original = _basename(name or "")
            if not original:
                raise InvalidImage("Uploaded file has no name")
            if not _is_image(original, content_type):
                raise InvalidImage(f"{original!r} is not an image", original_name=original)
            items.append((name, original))

        with self._lock:
            stamp = self._clock()
            refs: list[ImageReference] = []
            taken = set(self._images)
            for name, original in items:
                filename = f"{stamp}-{original}"
                n = 1
                while filename in taken:
                    filename = f"{stamp}-{n}-{original}"
                    n += 1
                taken.add(filename)
                refs.append(ImageReference(filename=filename, original_name=name))

            if store is not None:
                for index, ref in enumerate(refs):
                    store(index, ref)

            if self._repository is not None and refs:
                self._repository.save_images(refs)
            for ref in refs:
                self._images[ref.filename] = ref

        logger.info("Registered %d images", len(refs))
        return refs

    def list(self) -> list[ImageReference]:
        with self._lock:
            return list(self._images.values())

    def get(self, filename: str) -> ImageReference:
        with self._lock:
            try:
                return self._images[filename]
            except KeyError:
                raise ImageNotFound(filename) from None

    def resolve(self, filenames: Iterable[str]) -> tuple[ImageReference, ...]:
        """Look up previously registered images by generated filename."""
        return tuple(self.get(filename) for filename in filenames)
