from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from photodesk.application.dtos.watermark_dto import WatermarkSettings, WatermarkSettingsResponse
from photodesk.domain.entities.upload import UploadFile
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway, RemoteResult

logger = logging.getLogger(__name__)


class WatermarkSettingsStore:
    """The user's watermark image and how it is composited."""

    def __init__(self, gateway: RemoteGateway) -> None:
        self.gateway = gateway
        self.settings = WatermarkSettings()
        self.error: str | None = None
        self.is_saving = False

    @property
    def has_watermark(self) -> bool:
        return self.settings.image_url is not None

    def _validated(self, changes: dict[str, Any]) -> WatermarkSettings | None:
        data = self.settings.model_dump()
        data.update(changes)
        try:
            return WatermarkSettings.model_validate(data)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            self.error = f"Invalid {field}: {first['msg']}"
            return None

    def _apply(self, result: RemoteResult, default_message: str) -> bool:
        if not result.success:
            self.error = result.message or default_message
            return False
        try:
            payload = WatermarkSettingsResponse.model_validate(result.data)
        except PydanticValidationError as exc:
            logger.warning("Malformed watermark response: %s", exc)
            self.error = default_message
            return False
        self.settings = payload.settings or WatermarkSettings()
        self.error = None
        return True

    async def load(self) -> bool:
        result = await self.gateway.get_watermark_settings()
        return self._apply(result, "Failed to load watermark settings")

    async def update(self, **changes: Any) -> bool:
        """Validate ``changes`` against the current settings, then save them."""
        settings = self._validated(changes)
        if settings is None or self.is_saving:
            return False
        self.is_saving = True
        try:
            result = await self.gateway.update_watermark_settings(settings.to_wire())
        finally:
            self.is_saving = False
        return self._apply(result, "Failed to update watermark settings")

    async def upload(self, file: UploadFile, settings: WatermarkSettings | None = None) -> bool:
        settings = settings or self.settings
        if self.is_saving:
            return False
        self.is_saving = True
        try:
            result = await self.gateway.upload_watermark(file, settings.to_wire())
        finally:
            self.is_saving = False
        return self._apply(result, "Failed to upload watermark")

    async def remove(self) -> bool:
        result = await self.gateway.delete_watermark()
        if not result.success:
            self.error = result.message or "Failed to delete watermark"
            return False
        self.settings = self.settings.model_copy(update={"image_url": None})
        self.error = None
        return True

    async def preview(self, file: UploadFile, settings: WatermarkSettings | None = None) -> bytes | None:
        """Render ``file`` with the watermark applied; returns the image bytes."""
        result = await self.gateway.preview_watermark(file, (settings or self.settings).to_wire())
        if not result.success:
            self.error = result.message or "Watermark preview failed"
            return None
        self.error = None
        return result.content
