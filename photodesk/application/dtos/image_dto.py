from __future__ import annotations

from datetime import datetime

from pydantic import Field

from photodesk.application.dtos.common_dto import ApiResponse, WireModel
from photodesk.domain.entities.image import Image


class ImageMetadata(WireModel):
    """Metadata of one image in the remote collection."""
    id: str = Field(..., description="Unique identifier of the image", examples=["img_123456"])
    name: str = Field(..., description="Display name (usually the original filename)", examples=["kitchen.jpg"])
    url: str = Field(..., description="Retrieval URL of the image")
    width: int = Field(0, description="Width of the image in pixels", ge=0)
    height: int = Field(0, description="Height of the image in pixels", ge=0)
    size: int = Field(0, description="Size of the image file in bytes", ge=0)
    created_at: datetime = Field(..., description="ISO timestamp when the image was uploaded")
    tags: list[str] = Field(default_factory=list, description="Ordered tag strings")
    is_processed: bool = Field(False, description="Whether the image is a processing result")
    download_count: int = Field(0, ge=0)
    share_count: int = Field(0, ge=0)
    project_id: str | None = Field(None, description="Listing/project the image belongs to")

    def to_entity(self) -> Image:
        # tags keep their order but drop duplicates
        return Image(
            id=self.id,
            name=self.name,
            url=self.url,
            width=self.width,
            height=self.height,
            size=self.size,
            created_at=self.created_at,
            tags=tuple(dict.fromkeys(self.tags)),
            is_processed=self.is_processed,
            download_count=self.download_count,
            share_count=self.share_count,
            project_id=self.project_id,
        )

    @classmethod
    def from_entity(cls, image: Image) -> ImageMetadata:
        return cls(
            id=image.id,
            name=image.name,
            url=image.url,
            width=image.width,
            height=image.height,
            size=image.size,
            created_at=image.created_at,
            tags=list(image.tags),
            is_processed=image.is_processed,
            download_count=image.download_count,
            share_count=image.share_count,
            project_id=image.project_id,
        )


class PaginationInfo(WireModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1)
    total: int = Field(0, description="Total number of images matching the query", ge=0)
    pages: int = Field(0, description="Total number of pages", ge=0)


class ListImagesResponse(ApiResponse):
    """Response model for a collection query."""
    images: list[ImageMetadata] = Field(default_factory=list)
    pagination: PaginationInfo = Field(default_factory=PaginationInfo)
    tags: list[str] = Field(default_factory=list, description="Tag universe of the user's collection")


class GetImageResponse(ApiResponse):
    image: ImageMetadata


class UploadImagesResponse(ApiResponse):
    """Response model for a multi-file upload."""
    uploaded_images: list[ImageMetadata] = Field(default_factory=list)


class DeleteImageResponse(ApiResponse):
    """Response model for image deletion."""


class DownloadBatchRequest(WireModel):
    image_ids: list[str] = Field(..., min_length=1)
    zip_name: str | None = Field(None, description="Suggested archive filename")
    format: str | None = Field(None, description="Re-encode every image to this format")
