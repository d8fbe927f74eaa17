from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from photodesk.application.dtos.processing_dto import BatchProcessRequest, BatchProcessResponse
from photodesk.domain.errors import ValidationError
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway


@dataclass
class BatchProcessImagesUseCase:
    """
    Run one processing job over several images on the remote side.

    The remote service answers with one entry per image; the batch as a
    whole succeeds when the service reports success.
    """

    gateway: RemoteGateway

    async def execute(
        self, image_ids: list[str], mode: str = "auto", options: dict[str, Any] | None = None
    ) -> BatchProcessResponse:
        if not image_ids:
            raise ValidationError("no-selection", "Select at least one image to process.")
        if mode not in ("auto", "manual"):
            raise ValidationError("invalid-mode", f"Unsupported processing mode: {mode}")
        request = BatchProcessRequest(image_ids=list(image_ids), mode=mode, options=options or {})
        result = await self.gateway.batch_process(request.image_ids, request.mode, request.options)
        result.raise_for_failure("Processing failed")
        return BatchProcessResponse.model_validate(result.data)
