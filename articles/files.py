"""Local file storage for uploaded image bytes."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalImageStorage:
    """Writes image bytes under ``upload_dir`` keyed by generated filename."""

    def __init__(self, upload_dir: Path) -> None:
        self.upload_dir = Path(upload_dir)

    def path_for(self, filename: str) -> Path:
        path = (self.upload_dir / filename).resolve()
        if path.parent != self.upload_dir.resolve():
            raise ValueError(f"Invalid image filename: {filename!r}")
        return path

    def save(self, filename: str, data: bytes) -> Path:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(filename)
        path.write_bytes(data)
        logger.debug("Stored %d bytes as %s", len(data), path)
        return path

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def delete(self, filename: str) -> None:
        self.path_for(filename).unlink(missing_ok=True)
