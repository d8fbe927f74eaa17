from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from photodesk.application.dtos.common_dto import ApiResponse, WireModel

WatermarkPosition = Literal["topLeft", "topRight", "bottomLeft", "bottomRight", "center"]


class WatermarkSettings(WireModel):
    """Watermark compositing settings applied by the remote processing service."""
    position: WatermarkPosition = Field("bottomRight", description="Anchor of the watermark")
    opacity: float = Field(0.5, ge=0.1, le=1.0)
    size: int = Field(20, description="Watermark width as a percentage of the image", ge=5, le=50)
    padding: int = Field(20, description="Distance from the anchor edge in pixels", ge=0, le=100)
    auto_apply: bool = Field(False, description="Apply to every processed image")
    image_url: Optional[str] = Field(None, description="URL of the uploaded watermark image")


class WatermarkSettingsResponse(ApiResponse):
    settings: Optional[WatermarkSettings] = None
