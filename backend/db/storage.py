"""Firebase Storage service for profile and status images.

Images are stored at `image/{uuid}` in the default bucket and exposed
through Firebase download-token URLs.
"""

import asyncio
import logging
import uuid
from urllib.parse import quote

from firebase_admin import storage

from config import Settings, get_settings
from db.firestore import init_firebase_app

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "image"
DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}?alt=media&token={token}"


class StorageError(Exception):
    """Raised when a storage operation fails."""


class UnsupportedImageError(StorageError):
    """Raised when an upload is not an image."""


class ImageTooLargeError(StorageError):
    """Raised when an upload exceeds the configured size limit."""


def validate_image(
    filename: str | None,
    content_type: str | None,
    size: int,
    max_size_bytes: int,
) -> str:
    """Validate an image upload and return its content type.

    Raises:
        UnsupportedImageError: If the content type is not image/*
        ImageTooLargeError: If the payload is empty or too large
    """
    if not content_type or not content_type.startswith("image/"):
        raise UnsupportedImageError(
            f"{filename or 'upload'} is not an image ({content_type or 'unknown type'})"
        )
    if size <= 0:
        raise UnsupportedImageError(f"{filename or 'upload'} is empty")
    if size > max_size_bytes:
        raise ImageTooLargeError(
            f"{filename or 'upload'} is {size} bytes, limit is {max_size_bytes}"
        )
    return content_type


class StorageService:
    """Service for image blobs in Firebase Storage."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        creds = init_firebase_app()
        bucket_name = self.settings.firebase_storage_bucket or (
            f"{creds.get('project_id')}.appspot.com"
        )
        self.bucket = storage.bucket(bucket_name)

    def _upload(self, path: str, data: bytes, content_type: str) -> str:
        token = str(uuid.uuid4())
        blob = self.bucket.blob(path)
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        blob.upload_from_string(data, content_type=content_type)
        return DOWNLOAD_URL.format(
            bucket=self.bucket.name, path=quote(path, safe=""), token=token
        )

    async def upload_image(self, data: bytes, content_type: str) -> str:
        """Upload image bytes and return their download URL."""
        path = f"{IMAGE_PREFIX}/{uuid.uuid4()}"
        try:
            url = await asyncio.to_thread(self._upload, path, data, content_type)
        except Exception as e:
            logger.error("Failed to upload %s: %s", path, e)
            raise StorageError(f"Image upload failed: {e}") from e

        logger.info("Uploaded %s (%d bytes)", path, len(data))
        return url
