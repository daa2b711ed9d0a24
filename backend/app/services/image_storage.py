"""Local disk storage for product images"""
import logging
import random
import time
from pathlib import Path
from typing import Iterable, Optional

from fastapi import UploadFile

from app.core.config import settings

logger = logging.getLogger(__name__)


class ImageRejected(Exception):
    """Upload refused before it reaches the catalog."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ImageStorage:
    """
    Stores uploaded product images under a single directory.

    Files are renamed to ``product-<epoch-ms>-<random><ext>`` so concurrent
    uploads never overwrite each other. Nothing here is tied to the database
    write that follows: a stored file is kept even if that write fails.
    """

    def __init__(
        self,
        upload_dir: str | Path,
        allowed_extensions: Iterable[str] = ("jpg", "jpeg", "png", "gif"),
        max_bytes: int = 5 * 1024 * 1024,
    ):
        self.upload_dir = Path(upload_dir)
        self.allowed_extensions = {ext.lower().lstrip(".") for ext in allowed_extensions}
        self.max_bytes = max_bytes

    def validate(self, filename: Optional[str]) -> None:
        extension = Path(filename or "").suffix.lower().lstrip(".")
        if extension not in self.allowed_extensions:
            raise ImageRejected("Only image files are allowed!")

    @staticmethod
    def generate_filename(original: str) -> str:
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"product-{unique_suffix}{Path(original).suffix}"

    async def save(self, upload: UploadFile) -> str:
        """Validate and write an upload; returns the stored filename."""
        self.validate(upload.filename)

        image_bytes = await upload.read()
        if len(image_bytes) > self.max_bytes:
            raise ImageRejected(
                f"Image too large. Max size is {self.max_bytes} bytes.",
                status_code=413,
            )

        self.upload_dir.mkdir(parents=True, exist_ok=True)

        filename = self.generate_filename(upload.filename)
        with open(self.upload_dir / filename, "wb") as f:
            f.write(image_bytes)

        logger.info("Stored image %s (%d bytes)", filename, len(image_bytes))
        return filename

    def resolve(self, filename: str) -> Optional[Path]:
        """Path of a stored image, or None if it is not in the upload dir."""
        if not filename or filename != Path(filename).name or filename in (".", ".."):
            return None

        path = self.upload_dir / filename
        return path if path.is_file() else None


def get_image_storage() -> ImageStorage:
    return ImageStorage(
        upload_dir=settings.UPLOAD_DIR,
        allowed_extensions=settings.ALLOWED_IMAGE_EXTENSIONS,
        max_bytes=settings.MAX_IMAGE_BYTES,
    )
