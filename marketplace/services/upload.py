"""
Upload service for listing images.
Validates incoming files, stores them through the object storage adapter and
removes stored blobs on request.
"""

import asyncio
import io
import logging
import time
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from marketplace.config import settings
from marketplace.utils.exceptions import (
    FileSizeExceededError,
    FileUploadError,
    InternalServerError,
    StorageUnavailableError,
    UnsupportedFileTypeError
)
from marketplace.utils.storage import S3Storage

logger = logging.getLogger(__name__)


def safe_filename(filename: Optional[str]) -> str:
    """Base name of an uploaded file without any client supplied directories."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name.strip()
    return name or "image"


class UploadService:
    """Service for storing listing images in object storage."""

    def __init__(
        self,
        storage: S3Storage,
        max_file_size: int = settings.max_upload_size,
        max_files: int = settings.max_upload_files,
        key_prefix: str = settings.upload_key_prefix
    ):
        self.storage = storage
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.key_prefix = key_prefix

    def build_key(self, filename: str) -> str:
        """Storage key of the form <prefix>/<epoch millis>-<filename>."""
        return f"{self.key_prefix}/{int(time.time() * 1000)}-{filename}"

    async def read_image(self, file: UploadFile) -> Tuple[bytes, str]:
        """
        Read and validate an uploaded image.

        Args:
            file: Uploaded file object

        Returns:
            Tuple of (content, mime_type)

        Raises:
            UnsupportedFileTypeError: If the file is not an image
            FileSizeExceededError: If the file exceeds the size limit
        """
        content_type = (file.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise UnsupportedFileTypeError()

        content = await file.read(self.max_file_size + 1)
        if len(content) > self.max_file_size:
            raise FileSizeExceededError(self.max_file_size)

        if not content:
            raise FileUploadError("Uploaded file is empty")

        # Validate image using PIL
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            logger.debug(f"Rejected upload {file.filename}: {e}")
            raise UnsupportedFileTypeError()

        return content, content_type

    async def _store(self, key: str, filename: str, content: bytes, content_type: str) -> Dict[str, Any]:
        try:
            url = await self.storage.put(key, content, content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to store {key}: {e}")
            raise InternalServerError("Upload failed")

        return {
            "url": url,
            "key": key,
            "filename": filename,
            "size": len(content),
            "mimetype": content_type,
        }

    async def upload_image(self, file: Optional[UploadFile]) -> Dict[str, Any]:
        """
        Validate and store one image.

        Returns:
            Descriptor with url, key, filename, size and mimetype

        Raises:
            StorageUnavailableError: If storage is not configured
        """
        if file is None:
            raise FileUploadError("No file uploaded")

        if not self.storage.available:
            raise StorageUnavailableError()

        content, content_type = await self.read_image(file)
        filename = safe_filename(file.filename)
        uploaded = await self._store(self.build_key(filename), filename, content, content_type)

        logger.info(f"Uploaded image {uploaded['key']} ({uploaded['size']} bytes)")
        return uploaded

    async def upload_images(self, files: Optional[List[UploadFile]]) -> List[Dict[str, Any]]:
        """
        Validate every file, then store them concurrently.

        Nothing is stored unless every file passes validation. If any transfer
        fails, the blobs that did land are deleted again.

        Returns:
            Descriptors in request order
        """
        if not files:
            raise FileUploadError("No files uploaded")

        if len(files) > self.max_files:
            raise FileUploadError(f"Too many files. Maximum is {self.max_files} files.")

        if not self.storage.available:
            raise StorageUnavailableError()

        validated = []
        keys = set()
        for index, file in enumerate(files):
            content, content_type = await self.read_image(file)
            filename = safe_filename(file.filename)
            key = self.build_key(filename)
            # Same name within the same millisecond
            if key in keys:
                key = self.build_key(f"{index}-{filename}")
            keys.add(key)
            validated.append((key, filename, content, content_type))

        results = await asyncio.gather(
            *(self._store(*upload) for upload in validated),
            return_exceptions=True
        )

        failures = [result for result in results if isinstance(result, Exception)]
        if failures:
            stored_keys = [result["key"] for result in results if not isinstance(result, Exception)]
            await asyncio.gather(*(self.storage.delete(key) for key in stored_keys))
            logger.error(f"Multiple upload failed for {len(failures)} of {len(results)} files")
            raise InternalServerError("Upload failed")

        logger.info(f"Uploaded {len(results)} images")
        return list(results)

    async def delete_image(self, key: str) -> None:
        """
        Remove a stored image.

        Raises:
            InternalServerError: If storage reports a failure
        """
        if not await self.storage.delete(key):
            raise InternalServerError("Failed to delete image")
        logger.info(f"Deleted image {key}")
