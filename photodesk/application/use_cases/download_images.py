from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from photodesk.domain.entities.upload import DownloadedFile
from photodesk.domain.errors import ValidationError
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway


@dataclass
class DownloadImagesUseCase:
    """Fetch one image as-is, or several as a ZIP archive."""

    gateway: RemoteGateway

    async def execute(self, image_ids: list[str], options: dict[str, Any] | None = None) -> DownloadedFile:
        options = dict(options or {})
        if not image_ids:
            raise ValidationError("no-selection", "Select at least one image to download.")
        if len(image_ids) == 1:
            image_id = image_ids[0]
            requested = options.pop("filename", None)
            fallback = f"image-{image_id}.{options.get('format') or 'jpg'}"
            result = await self.gateway.download_image(image_id, options)
        else:
            requested = options.get("zipName")
            fallback = "images.zip"
            result = await self.gateway.download_images(list(image_ids), options)
        result.raise_for_failure("Download failed")
        # a name the caller asked for wins over the server's suggestion
        return DownloadedFile(
            filename=requested or result.filename or fallback,
            content=result.content or b"",
            content_type=result.data.get("contentType"),
        )
