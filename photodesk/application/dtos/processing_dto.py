from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import Field, model_validator

from photodesk.application.dtos.common_dto import ApiResponse, WireModel
from photodesk.application.dtos.image_dto import ImageMetadata

PRESETS: dict[str, str] = {
    "natural": "Natural",
    "bright": "Bright & Airy",
    "professional": "Professional",
    "hdr": "HDR Effect",
    "interior": "Interior Boost",
    "exterior": "Exterior Pro",
    "twilight": "Twilight/Evening",
}

ADJUSTMENT_FIELDS = (
    "brightness",
    "contrast",
    "saturation",
    "temperature",
    "sharpness",
    "shadows",
    "highlights",
)


class CropRegion(WireModel):
    """Crop rectangle in source pixel coordinates."""
    x: int = Field(0, ge=0)
    y: int = Field(0, ge=0)
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class OutputSettings(WireModel):
    format: Literal["jpeg", "png", "webp"] = Field("jpeg", description="Encoded output format")
    quality: int = Field(85, description="Encoder quality, in steps of 5", ge=10, le=100, multiple_of=5)


class AdjustmentVector(WireModel):
    """Manual per-image tuning parameters.

    Signed values are relative to the untouched image (0 = no change).
    """

    brightness: float = Field(0, ge=-100, le=100)
    contrast: float = Field(0, ge=-100, le=100)
    saturation: float = Field(0, ge=-100, le=100)
    temperature: float = Field(0, ge=-100, le=100)
    sharpness: float = Field(0, ge=0, le=100)
    shadows: float = Field(0, ge=-100, le=100)
    highlights: float = Field(0, ge=-100, le=100)
    crop_enabled: bool = False
    crop: Optional[CropRegion] = None
    output: OutputSettings = Field(default_factory=OutputSettings)

    @model_validator(mode="after")
    def _crop_requires_region(self) -> AdjustmentVector:
        if self.crop_enabled and self.crop is None:
            raise ValueError("crop region is required when cropping is enabled")
        return self

    def to_wire(self) -> dict:
        data = super().to_wire()
        if not self.crop_enabled:
            data.pop("crop", None)
        return data


class ProcessImageResponse(ApiResponse):
    """Response model for auto/manual processing (preview or commit)."""
    preview_url: Optional[str] = Field(None, description="Temporary URL of the preview rendering")
    processed_image: Optional[ImageMetadata] = Field(None, description="Newly created image on commit")


class BatchImageResult(WireModel):
    image_id: str
    success: bool
    message: Optional[str] = None
    processed_image_id: Optional[str] = None


class BatchProcessRequest(WireModel):
    image_ids: list[str] = Field(..., min_length=1)
    mode: Literal["auto", "manual"] = "auto"
    options: dict[str, Any] = Field(default_factory=dict)


class BatchProcessResponse(ApiResponse):
    """Response model for batch processing."""
    per_image_results: list[BatchImageResult] = Field(default_factory=list)


class AutoProcessRequest(WireModel):
    preset: str = Field("natural", description="Preset identifier")
    preview: bool = Field(False, description="Render a temporary preview instead of a new image")


class ManualProcessRequest(WireModel):
    adjustments: AdjustmentVector = Field(default_factory=AdjustmentVector)
    preview: bool = False
