"""Preparation of product label photos before analysis."""
import base64
import logging
import uuid
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from PIL import Image, ImageOps

from safecheck.config import settings


logger = logging.getLogger(__name__)

ALLOWED_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]


class PreparedImage:
    """A stored, downscaled photo and its inline data URI."""

    def __init__(self, path: str, data_uri: str):
        self.path = path
        self.data_uri = data_uri


def is_remote_url(reference: str) -> bool:
    return reference.startswith(("http://", "https://"))


def parse_data_uri(data_uri: str) -> tuple[str, str]:
    """
    Split a base64 data URI into (media_type, data).

    Raises:
        ValueError: If the string is not a base64 data URI
    """
    if not data_uri.startswith("data:") or ";base64," not in data_uri:
        raise ValueError("Not a base64 data URI")
    header, data = data_uri.split(",", 1)
    media_type = header[len("data:"):].split(";", 1)[0]
    return media_type, data


class ImageService:
    """Service for validating, downscaling and encoding label photos."""

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        max_dimension: Optional[int] = None,
    ):
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.max_dimension = max_dimension or settings.image_max_dimension

    async def prepare_upload(self, file: UploadFile) -> PreparedImage:
        """
        Validate, downscale and store an uploaded label photo.

        Raises:
            ValueError: If the file type is not an accepted image type or the
                content cannot be read as an image
        """
        if file.content_type not in ALLOWED_TYPES:
            raise ValueError(
                f"Invalid file type: {file.content_type}. Allowed: {ALLOWED_TYPES}"
            )
        contents = await file.read()
        return self.prepare_bytes(contents)

    def prepare_file(self, path: str) -> PreparedImage:
        return self.prepare_bytes(Path(path).read_bytes())

    def prepare_bytes(self, contents: bytes) -> PreparedImage:
        try:
            jpeg = self._downscale_to_jpeg(contents)
        except OSError as e:
            raise ValueError("Failed to process image. Try a different image.") from e

        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        unique_id = str(uuid.uuid4())[:8]
        file_path = self.upload_dir / f"{timestamp}_{unique_id}.jpg"
        file_path.write_bytes(jpeg)

        data_uri = "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")
        return PreparedImage(path=str(file_path), data_uri=data_uri)

    def _downscale_to_jpeg(self, contents: bytes) -> bytes:
        """Fit the image inside max_dimension x max_dimension, keeping aspect."""
        with Image.open(BytesIO(contents)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")

            original_size = img.size
            img.thumbnail(
                (self.max_dimension, self.max_dimension), Image.Resampling.LANCZOS
            )
            if img.size != original_size:
                logger.debug("Downscaled image %s -> %s", original_size, img.size)

            buffer = BytesIO()
            img.save(buffer, format="JPEG", optimize=True, quality=85)
            return buffer.getvalue()


# Singleton instance
image_service = ImageService()
