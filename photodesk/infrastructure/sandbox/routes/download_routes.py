from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from photodesk.application.dtos.image_dto import DownloadBatchRequest
from photodesk.application.dtos.processing_dto import AdjustmentVector, OutputSettings
from photodesk.infrastructure.sandbox import renderer
from photodesk.infrastructure.sandbox.dependencies import get_current_user, get_store
from photodesk.infrastructure.sandbox.store import SandboxStore, StoredImage

router = APIRouter(
    prefix="/downloads",
    tags=["Downloads"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        404: {"description": "Not Found - Image does not exist or user doesn't have access"},
    },
)


def _encoded(stored: StoredImage, format: str | None, quality: int | None) -> tuple[bytes, str, str]:
    """Bytes, MIME type and filename of ``stored``, re-encoded when a format is asked for."""
    if not format:
        return stored.content, stored.mime_type, stored.image.name
    output = OutputSettings(format=format, **({"quality": quality} if quality else {}))
    content = renderer.render(stored.content, AdjustmentVector(output=output))
    ext = "jpg" if output.format == "jpeg" else output.format
    return content, renderer.MIME_TYPES[output.format], f"{stored.image.name.rsplit('.', 1)[0]}.{ext}"


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/image/{image_id}", summary="Download Image")
async def download_image(
    image_id: str,
    format: str | None = Query(None, pattern="^(jpeg|png|webp)$", description="Re-encode to this format"),
    quality: int | None = Query(None, ge=10, le=100),
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    stored = store.get(user.id, image_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Image not found")
    content, media_type, filename = _encoded(stored, format, quality)
    store.record_download(stored)
    return _attachment(content, media_type, filename)


@router.post(
    "/batch",
    summary="Download Images as ZIP",
    description="Bundle several images into one ZIP archive named after `zipName`.",
)
async def download_batch(
    body: DownloadBatchRequest,
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    entries = []
    for image_id in body.image_ids:
        stored = store.get(user.id, image_id)
        if stored is None:
            raise HTTPException(status_code=404, detail=f"Image not found: {image_id}")
        content, _, filename = _encoded(stored, body.format, None)
        store.record_download(stored)
        entries.append((filename, content))
    zip_name = body.zip_name or "images.zip"
    return _attachment(store.archive(entries), "application/zip", zip_name)
