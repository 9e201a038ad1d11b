"""
Pydantic schemas for image upload responses.
"""

from pydantic import BaseModel, Field
from typing import List


class ImageUploadResponse(BaseModel):
    """Result of a single image upload."""

    message: str = Field(..., examples=["Image uploaded successfully"])
    image_url: str = Field(..., description="Public URL of the stored image")
    image_key: str = Field(..., description="Object storage key", examples=["properties/1700000000000-front.jpg"])
    filename: str = Field(..., description="Original file name")


class UploadedImage(BaseModel):
    url: str
    key: str
    filename: str
    size: int = Field(..., description="File size in bytes")
    mimetype: str


class MultipleImageUploadResponse(BaseModel):
    """Result of a multi-image upload, in request order."""

    message: str = Field(..., examples=["Images uploaded successfully"])
    images: List[UploadedImage]
