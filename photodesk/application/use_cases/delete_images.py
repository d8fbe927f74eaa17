from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from photodesk.domain.errors import PartialFailure, ValidationError
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway

logger = logging.getLogger(__name__)


@dataclass
class DeleteImagesUseCase:
    gateway: RemoteGateway

    async def execute(self, image_ids: list[str]) -> tuple[str, ...]:
        """
        Delete every id with one request each, all in flight together.

        Waits for every request to settle before deciding anything, so a
        batch is never applied halfway.

        Returns:
            The deleted ids, when every delete succeeded

        Raises:
            PartialFailure: at least one delete failed; carries the failure count
        """
        if not image_ids:
            raise ValidationError("no-selection", "Select at least one image to delete.")
        ids = tuple(dict.fromkeys(image_ids))
        results = await asyncio.gather(*(self.gateway.delete_image(image_id) for image_id in ids))
        failed = [image_id for image_id, r in zip(ids, results) if not r.success]
        if failed:
            logger.info("Batch delete: %d of %d failed (%s)", len(failed), len(ids), ", ".join(failed))
            raise PartialFailure(failed=len(failed), total=len(ids))
        return ids
