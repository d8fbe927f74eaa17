from __future__ import annotations

from dataclasses import dataclass

from photodesk.application.dtos.image_dto import UploadImagesResponse
from photodesk.domain.entities.image import Image
from photodesk.domain.entities.upload import UploadFile
from photodesk.infrastructure.gateway.remote_gateway import RemoteGateway


@dataclass
class UploadImagesUseCase:
    gateway: RemoteGateway

    async def execute(
        self,
        files: list[UploadFile],
        *,
        project_id: str | None = None,
        tags: list[str] | None = None,
    ) -> list[Image]:
        """
        Upload already-screened files in a single multipart request.

        Returns the images the remote store created.

        Raises:
            RemoteFailure: the store rejected the upload
            TransportError: the request never completed
        """
        result = await self.gateway.upload_images(files, project_id=project_id, tags=tags)
        result.raise_for_failure("Upload failed")
        payload = UploadImagesResponse.model_validate(result.data)
        return [item.to_entity() for item in payload.uploaded_images]
