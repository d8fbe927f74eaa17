from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from photodesk.application.dtos.image_dto import GetImageResponse
from photodesk.application.dtos.processing_dto import (
    ADJUSTMENT_FIELDS,
    PRESETS,
    AdjustmentVector,
    CropRegion,
    ProcessImageResponse,
)
from photodesk.application.state.collection_store import CollectionStore
from photodesk.domain.entities.image import Image
from photodesk.domain.errors import ValidationError
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway, RemoteResult

logger = logging.getLogger(__name__)


class EditMode(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


class PreviewState(str, Enum):
    IDLE = "idle"
    PENDING = "preview_pending"
    READY = "preview_ready"
    FAILED = "preview_failed"


class CommitState(str, Enum):
    IDLE = "idle"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "commit_failed"


class EditSession:
    """
    Adjustment and preset state for one image being edited.

    Workflow:
    1. The user picks a preset, or drags sliders in manual mode
    2. Continuous input only updates the local vector; the "settled" signal
       (slider release) issues one preview request tagged with a new version
    3. A preview response is applied only if its version is still the latest
       issued one, so an old preset's preview can never overwrite the preview
       of a newer manual adjustment
    4. ``commit`` asks the remote side to produce the final image from the
       current preset or vector (no preview flag) and refreshes the collection

    Nothing is cancelled on the wire: superseded responses are dropped
    when they arrive.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        collection: CollectionStore,
        image_id: str,
        *,
        preset: str = "natural",
    ) -> None:
        self.gateway = gateway
        self.collection = collection
        self.image_id = image_id
        self.image: Image | None = None
        self.mode = EditMode.AUTO
        self.preset = preset
        self.adjustments = AdjustmentVector()
        self.preview_state = PreviewState.IDLE
        self.commit_state = CommitState.IDLE
        self.preview_url: str | None = None
        # bumped on every applied preview so the UI reloads the bitmap
        self.preview_key = 0
        self.processed_image_id: str | None = None
        self.error: str | None = None
        self._version = 0
        self._dirty = False

    @property
    def latest_version(self) -> int:
        return self._version

    @property
    def display_url(self) -> str | None:
        if self.preview_url:
            sep = "&" if "?" in self.preview_url else "?"
            return f"{self.preview_url}{sep}key={self.preview_key}"
        return self.image.url if self.image else None

    @property
    def is_closed(self) -> bool:
        return self.commit_state == CommitState.COMMITTED

    async def load(self) -> bool:
        """Resolve the image from the collection snapshot, else from the store."""
        image = self.collection.find(self.image_id)
        if image is None:
            result = await self.gateway.get_image(self.image_id)
            if not result.success:
                self.error = result.message or "Image not found"
                return False
            try:
                image = GetImageResponse.model_validate(result.data).image.to_entity()
            except PydanticValidationError as exc:
                logger.warning("Malformed image payload for %s: %s", self.image_id, exc)
                self.error = "Failed to load image"
                return False
        self.image = image
        return True

    def set_mode(self, mode: EditMode | str) -> None:
        self.mode = EditMode(mode)

    async def select_preset(self, preset: str) -> bool:
        if preset not in PRESETS:
            self.error = f"Unknown preset: {preset}"
            return False
        self.mode = EditMode.AUTO
        self.preset = preset
        return await self._request_preview()

    def change_adjustment(self, name: str, value: Any) -> bool:
        """Continuous input (slider drag): local update only, no request."""
        if name not in ADJUSTMENT_FIELDS:
            self.error = f"Unknown adjustment: {name}"
            return False
        return self._update_vector(**{name: value})

    async def release_adjustment(self) -> bool:
        """The input settled: preview the vector currently in effect."""
        if self.mode != EditMode.MANUAL:
            self.mode = EditMode.MANUAL
        return await self._request_preview()

    async def apply_adjustment(self, name: str, value: Any) -> bool:
        """Discrete input (typed value, reset button): change and preview."""
        if not self.change_adjustment(name, value):
            return False
        return await self.release_adjustment()

    def set_crop(self, region: CropRegion | dict | None) -> bool:
        if region is None:
            return self._update_vector(crop_enabled=False, crop=None)
        return self._update_vector(crop_enabled=True, crop=region)

    def set_output(self, format: str | None = None, quality: int | None = None) -> bool:
        output = self.adjustments.output.model_dump()
        if format is not None:
            output["format"] = format
        if quality is not None:
            output["quality"] = quality
        return self._update_vector(output=output)

    def reset_adjustments(self) -> None:
        self.adjustments = AdjustmentVector(output=self.adjustments.output)
        self._mark_changed()

    def _update_vector(self, **changes: Any) -> bool:
        try:
            self.adjustments = self._validated(**changes)
        except ValidationError as exc:
            self.error = exc.message
            return False
        self._mark_changed()
        return True

    def _validated(self, **changes: Any) -> AdjustmentVector:
        data = self.adjustments.model_dump()
        data.update(changes)
        try:
            return AdjustmentVector.model_validate(data)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            where = ".".join(str(part) for part in first["loc"]) or "adjustments"
            raise ValidationError("out-of-range", f"Invalid {where}: {first['msg']}") from exc

    def _mark_changed(self) -> None:
        self.mode = EditMode.MANUAL
        self._dirty = True
        if not self.is_closed:
            self.preview_state = PreviewState.PENDING

    async def _call_processing(self, preview: bool) -> RemoteResult:
        if self.mode == EditMode.AUTO:
            return await self.gateway.auto_process(self.image_id, self.preset, preview=preview)
        return await self.gateway.manual_process(self.image_id, self.adjustments.to_wire(), preview=preview)

    async def _request_preview(self) -> bool:
        if self.is_closed or self.commit_state == CommitState.COMMITTING:
            logger.debug("Preview ignored for %s: commit %s", self.image_id, self.commit_state.value)
            return False
        self._version += 1
        version = self._version
        self._dirty = False
        self.preview_state = PreviewState.PENDING
        logger.debug("preview v%d for %s (%s)", version, self.image_id, self.mode.value)

        result = await self._call_processing(preview=True)

        if version != self._version:
            logger.debug("Discarding preview v%d (latest v%d)", version, self._version)
            return False
        preview_url = result.data.get("previewUrl") if result.success else None
        if not preview_url:
            self.preview_state = PreviewState.FAILED
            self.error = result.message or "Failed to generate preview"
            return False

        self.preview_key += 1
        self.preview_url = preview_url
        self.error = None
        # edits made while this request was in flight still need a preview
        self.preview_state = PreviewState.PENDING if self._dirty else PreviewState.READY
        return True

    async def commit(self) -> bool:
        if self.commit_state in (CommitState.COMMITTING, CommitState.COMMITTED):
            logger.warning("Commit rejected for %s: %s", self.image_id, self.commit_state.value)
            return False
        if self.preview_state not in (PreviewState.IDLE, PreviewState.READY):
            self.error = "Wait for the preview to finish before saving."
            return False

        self.commit_state = CommitState.COMMITTING
        result = await self._call_processing(preview=False)
        if not result.success:
            self.commit_state = CommitState.FAILED
            self.error = result.message or "Failed to process image"
            return False

        try:
            payload = ProcessImageResponse.model_validate(result.data)
        except PydanticValidationError as exc:
            logger.warning("Malformed commit response for %s: %s", self.image_id, exc)
            payload = None
        if payload is not None and payload.processed_image is not None:
            self.processed_image_id = payload.processed_image.id
        self.commit_state = CommitState.COMMITTED
        self.error = None
        await self.collection.refresh()
        return True
