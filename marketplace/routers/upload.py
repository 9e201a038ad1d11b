"""
Image upload API endpoints backed by object storage.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from typing import List, Optional

from marketplace.models.user import User
from marketplace.services.upload import UploadService
from marketplace.schemas.auth import MessageResponse
from marketplace.schemas.upload import ImageUploadResponse, MultipleImageUploadResponse
from marketplace.schemas.error import COMMON_ERROR_RESPONSES
from marketplace.utils.dependencies import get_current_user, get_upload_service


router = APIRouter(prefix="/upload", tags=["Uploads"])


@router.post(
    "/image",
    response_model=ImageUploadResponse,
    summary="Upload image",
    description="Upload one image (multipart field 'image'). Max 5MB, image types only.",
    responses=COMMON_ERROR_RESPONSES
)
async def upload_image(
    image: Optional[UploadFile] = File(None, description="Image file"),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service)
) -> ImageUploadResponse:
    """
    Upload a single image to object storage.

    Raises:
        FileUploadError: If no file was sent
        UnsupportedFileTypeError: If the file is not an image
        FileSizeExceededError: If the file is too large
        StorageUnavailableError: If storage is not configured
    """
    uploaded = await upload_service.upload_image(image)
    return ImageUploadResponse(
        message="Image uploaded successfully",
        image_url=uploaded["url"],
        image_key=uploaded["key"],
        filename=uploaded["filename"]
    )


@router.post(
    "/images",
    response_model=MultipleImageUploadResponse,
    summary="Upload multiple images",
    description="Upload up to 10 images (multipart field 'images'); transfers run concurrently.",
    responses=COMMON_ERROR_RESPONSES
)
async def upload_images(
    images: Optional[List[UploadFile]] = File(None, description="Image files"),
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service)
) -> MultipleImageUploadResponse:
    uploaded = await upload_service.upload_images(images)
    return MultipleImageUploadResponse(message="Images uploaded successfully", images=uploaded)


@router.delete(
    "/image/{key:path}",
    response_model=MessageResponse,
    summary="Delete image",
    description="Delete a stored image by its storage key",
    responses=COMMON_ERROR_RESPONSES
)
async def delete_image(
    key: str,
    current_user: User = Depends(get_current_user),
    upload_service: UploadService = Depends(get_upload_service)
) -> MessageResponse:
    await upload_service.delete_image(key)
    return MessageResponse(message="Image deleted successfully")
