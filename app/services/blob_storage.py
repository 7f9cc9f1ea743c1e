"""Azure Blob Storage service for perk, category and blog images."""

import logging
import uuid
from pathlib import PurePath
from typing import Optional

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient
from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import AppError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
MAX_GALLERY_IMAGES = 5


def validate_image(file: UploadFile, content: bytes) -> None:
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Only image files are allowed",
            [{"field": file.filename or "file", "message": f"Unsupported type {file.content_type}"}],
            code="INVALID_FILE_TYPE",
        )
    if len(content) > settings.MAX_IMAGE_SIZE:
        raise ValidationError(
            "File too large",
            [{"field": file.filename or "file", "message": f"Maximum size is {settings.MAX_IMAGE_SIZE} bytes"}],
            code="FILE_TOO_LARGE",
        )


class BlobStorageService:
    """Uploads images to a public container and deletes them again."""

    def __init__(self):
        self.connection_string = settings.AZURE_BLOB_CONNECTION_STRING
        self.account_name = settings.AZURE_STORAGE_ACCOUNT
        self.container = settings.AZURE_IMAGE_CONTAINER

    @property
    def enabled(self) -> bool:
        return bool(self.connection_string)

    def _url(self, blob_name: str) -> str:
        return f"https://{self.account_name}.blob.core.windows.net/{self.container}/{blob_name}"

    async def upload_image(self, file: UploadFile, folder: str, alt: Optional[str] = None) -> dict:
        """Validate and upload one image; returns the stored image reference."""
        content = await file.read()
        validate_image(file, content)

        if not self.enabled:
            raise AppError("Image storage is not configured", 503, "UPLOAD_UNAVAILABLE")

        suffix = PurePath(file.filename or "").suffix.lower() or ".jpg"
        blob_name = f"{folder}/{uuid.uuid4().hex}{suffix}"

        try:
            async with BlobServiceClient.from_connection_string(self.connection_string) as blob_service:
                blob_client = blob_service.get_blob_client(container=self.container, blob=blob_name)
                await blob_client.upload_blob(
                    content,
                    overwrite=True,
                    content_settings=ContentSettings(content_type=file.content_type),
                )
        except Exception as e:
            logger.error("Failed to upload image %s: %s", file.filename, e)
            raise AppError("Failed to upload image", 502, "UPLOAD_FAILED") from e

        url = self._url(blob_name)
        logger.info("Image uploaded: %s", url)
        return {"url": url, "blob_name": blob_name, "filename": file.filename, "alt": alt}

    async def upload_images(self, files: list[UploadFile], folder: str) -> list[dict]:
        return [await self.upload_image(file, folder) for file in files]

    async def delete_image(self, blob_name: Optional[str]) -> bool:
        """Delete one blob. Returns False when nothing was deleted."""
        if not blob_name or not self.enabled:
            return False

        async with BlobServiceClient.from_connection_string(self.connection_string) as blob_service:
            blob_client = blob_service.get_blob_client(container=self.container, blob=blob_name)
            try:
                await blob_client.delete_blob()
            except ResourceNotFoundError:
                logger.info("Blob already gone: %s", blob_name)
                return False
        logger.info("Image deleted: %s", blob_name)
        return True


blob_service = BlobStorageService()
