"""
Flock Backend — Image Hosting Service
======================================

What:  Stores post images, avatars and cover images, and deletes them again.
Why:   Posts and profiles only keep an image URL; the bytes live with an image
       host. Services talk to the abstract ImageHost so the host can be swapped
       (local disk today, a CDN-backed provider later) without touching them.
How:   The browser sends images as base64 data URLs. LocalImageHost decodes,
       validates (size, real content type via libmagic), writes them under
       STORAGE_ROOT/images with a UUID filename, and returns the URL that
       GET /api/files/... serves.
Who:   Called by PostService (post images) and UserService (profile/cover).

Public ids:
    Images are addressed by a public id, the last path segment of their URL
    without the extension:
        /api/files/images/3f2b...9c.png  →  3f2b...9c
    Destroy takes that id, so callers only need the URL they stored.

Security Model:
    1. Size check on the decoded bytes (prevents memory/disk exhaustion)
    2. MIME check via magic bytes; the data URL's declared type is not trusted
    3. UUID filenames (no user input reaches the filesystem path)
"""

import base64
import binascii
import logging
import re
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import aiofiles.os

from flock.config import settings
from flock.exceptions import ImageStorageError, ValidationError

logger = logging.getLogger(__name__)

# Content types accepted for uploads, mapped to the extension they are stored with
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

IMAGES_DIR = "images"
FILES_URL_PREFIX = "/api/files"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.*)$", re.DOTALL)


def public_id_from_url(url: str) -> str:
    """
    Derive an image's public id from its URL.

    "https://cdn/x/y/abc123.jpg" → "abc123"
    """
    return url.rstrip("/").split("/")[-1].split(".")[0]


class ImageHost(ABC):
    """
    Abstract interface for an image-hosting provider.

    Contract:
        - upload() accepts a base64 data URL and returns a URL for the stored image
        - destroy() removes an image by public id; it is best-effort and must
          not raise for images that are already gone
    """

    @abstractmethod
    async def upload(self, data_url: str) -> str:
        """
        Store an image and return its URL.

        Raises:
            ValidationError: The payload is not a valid, allowed image.
            ImageStorageError: The image could not be written.
        """
        ...

    @abstractmethod
    async def destroy(self, public_id: str) -> None:
        """Delete a stored image by public id. Never raises for missing images."""
        ...

    async def destroy_url(self, url: Optional[str]) -> None:
        """Convenience: destroy the image a stored URL points at (no-op for empty URLs)."""
        if url:
            await self.destroy(public_id_from_url(url))


class LocalImageHost(ImageHost):
    """
    Image host writing to the local storage volume.

    Directory Structure:
        storage/
        └── images/
            ├── 3f2b1c9e-....png
            └── a7d04e11-....jpg

    Flat layout: destroy() only receives the public id, so the file must be
    findable from the id alone.
    """

    def __init__(self, storage_root: Optional[str] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.images_dir = self.storage_root / IMAGES_DIR
        self.images_dir.mkdir(parents=True, exist_ok=True)
        logger.info("LocalImageHost initialized with images_dir=%s", self.images_dir)

    def decode_data_url(self, data_url: str) -> bytes:
        """
        Decode a `data:<mime>;base64,<payload>` string to raw bytes.

        Raises:
            ValidationError if the string is not a base64 data URL.
        """
        match = _DATA_URL_RE.match(data_url.strip())
        if match is None:
            raise ValidationError(
                message="Image must be a base64 data URL",
                field="img",
            )
        try:
            return base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(message="Image data is not valid base64", field="img")

    def validate_size(self, content: bytes) -> None:
        max_mb = settings.max_image_size / (1024 * 1024)
        if not content:
            raise ValidationError(message="Image is empty", field="img")
        if len(content) > settings.max_image_size:
            raise ValidationError(
                message=f"Image exceeds maximum size of {max_mb:.0f}MB",
                field="img",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    def detect_mime_type(self, content: bytes) -> str:
        """Content type from the file's magic bytes (libmagic)."""
        import magic

        return magic.from_buffer(content, mime=True)

    def validate_mime_type(self, content: bytes) -> str:
        """
        Returns the storage extension for the detected content type.

        Raises:
            ValidationError if the content is not an allowed image type.
        """
        mime_type = self.detect_mime_type(content)
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Image must be a PNG, JPEG, GIF or WebP file",
                field="img",
                context={"detected_mime": mime_type},
            )
        return ALLOWED_MIME_TYPES[mime_type]

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Returns (absolute_path, path relative to storage root)."""
        name = f"{uuid.uuid4()}{extension}"
        relative_path = f"{IMAGES_DIR}/{name}"
        return self.storage_root / relative_path, relative_path

    async def upload(self, data_url: str) -> str:
        content = self.decode_data_url(data_url)
        self.validate_size(content)
        extension = self.validate_mime_type(content)

        absolute_path, relative_path = self._generate_storage_path(extension)
        try:
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise ImageStorageError(context={"path": str(absolute_path), "os_error": str(e)})

        logger.info("Image stored: %s (%d bytes)", relative_path, len(content))
        return f"{FILES_URL_PREFIX}/{relative_path}"

    async def destroy(self, public_id: str) -> None:
        """
        Remove every stored file whose name is `<public_id>.<ext>`.

        Best-effort: failures are logged, never raised. The record that
        referenced the image is updated or deleted regardless.
        """
        if not public_id or "/" in public_id or public_id.startswith("."):
            logger.debug("Destroy: ignoring unusable public id %r", public_id)
            return

        matches = list(self.images_dir.glob(f"{public_id}.*"))
        if not matches:
            logger.debug("Destroy: image already gone: %s", public_id)
            return

        for path in matches:
            try:
                await aiofiles.os.remove(path)
                logger.info("Destroyed image: %s", path.name)
            except OSError as e:
                logger.warning("Failed to destroy image %s: %s", path.name, str(e))

    def resolve(self, relative_path: str) -> Optional[Path]:
        """
        Absolute path of a stored file, or None if it is missing or the path
        escapes the storage root (../ traversal).
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            return None
        if not full_path.is_file():
            return None
        return full_path


# ── Singleton Instance ────────────────────────────────────────────────────
image_host: ImageHost = LocalImageHost()
