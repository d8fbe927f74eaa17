from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from photodesk.application.dtos.image_dto import ImageMetadata
from photodesk.application.dtos.processing_dto import (
    PRESETS,
    AdjustmentVector,
    AutoProcessRequest,
    BatchImageResult,
    BatchProcessRequest,
    BatchProcessResponse,
    ManualProcessRequest,
    ProcessImageResponse,
)
from photodesk.infrastructure.sandbox import renderer
from photodesk.infrastructure.sandbox.dependencies import get_current_user, get_store
from photodesk.infrastructure.sandbox.store import SandboxStore, StoredImage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/processing",
    tags=["Image Processing"],
    responses={
        400: {"description": "Bad Request - Invalid preset or adjustment values"},
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        404: {"description": "Not Found - Image does not exist or user doesn't have access"},
    },
)


def _check_crop(stored: StoredImage, vector: AdjustmentVector) -> None:
    crop = vector.crop
    if vector.crop_enabled and crop is not None:
        if crop.x + crop.width > stored.image.width or crop.y + crop.height > stored.image.height:
            raise HTTPException(status_code=400, detail="Crop region lies outside the image")


def _process(store: SandboxStore, owner: str, stored: StoredImage, vector: AdjustmentVector, preview: bool):
    """Render ``vector``; a preview is kept aside, a commit becomes a new image."""
    _check_crop(stored, vector)
    content = renderer.render(stored.content, vector)
    mime = renderer.MIME_TYPES[vector.output.format]
    if preview:
        return ProcessImageResponse(preview_url=store.put_preview(content, mime))
    stem = stored.image.name.rsplit(".", 1)[0]
    ext = "jpg" if vector.output.format == "jpeg" else vector.output.format
    image = store.add_image(
        owner,
        f"{stem}-processed.{ext}",
        content,
        project_id=stored.image.project_id,
        tags=stored.image.tags,
        is_processed=True,
    )
    logger.info("Processed %s into %s", stored.image.id, image.id)
    return ProcessImageResponse(message="Image processed successfully", processed_image=ImageMetadata.from_entity(image))


def _load(store: SandboxStore, owner: str, image_id: str) -> StoredImage:
    stored = store.get(owner, image_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return stored


@router.post(
    "/auto/{image_id}",
    response_model=ProcessImageResponse,
    summary="Apply Preset",
    description="""
    Process an image with one of the built-in presets.

    With `preview: true` the result is a temporary rendering addressed by
    `previewUrl`; otherwise a new image is added to the collection.
    """,
)
async def auto_process(
    image_id: str,
    body: AutoProcessRequest,
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    if body.preset not in PRESETS:
        raise HTTPException(status_code=400, detail=f"Unknown preset: {body.preset}")
    stored = _load(store, user.id, image_id)
    return _process(store, user.id, stored, renderer.preset_vector(body.preset), body.preview)


@router.post("/manual/{image_id}", response_model=ProcessImageResponse, summary="Apply Manual Adjustments")
async def manual_process(
    image_id: str,
    body: ManualProcessRequest,
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    stored = _load(store, user.id, image_id)
    return _process(store, user.id, stored, body.adjustments, body.preview)


@router.post(
    "/batch",
    response_model=BatchProcessResponse,
    summary="Batch Process Images",
    description="""
    Apply one preset (`mode: auto`, `options.preset`) or one adjustment
    vector (`mode: manual`, `options.adjustments`) to several images.

    The answer carries one entry per image; the batch succeeds only when
    every image succeeded.
    """,
)
async def batch_process(
    body: BatchProcessRequest,
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    if body.mode == "auto":
        preset = body.options.get("preset", "natural")
        if preset not in PRESETS:
            raise HTTPException(status_code=400, detail=f"Unknown preset: {preset}")
        vector = renderer.preset_vector(preset)
    else:
        try:
            vector = AdjustmentVector.model_validate(body.options.get("adjustments", {}))
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=f"Invalid adjustments: {exc.errors()[0]['msg']}") from exc

    results: list[BatchImageResult] = []
    for image_id in body.image_ids:
        stored = store.get(user.id, image_id)
        if stored is None:
            results.append(BatchImageResult(image_id=image_id, success=False, message="Image not found"))
            continue
        try:
            outcome = _process(store, user.id, stored, vector, preview=False)
        except HTTPException as exc:
            results.append(BatchImageResult(image_id=image_id, success=False, message=str(exc.detail)))
            continue
        results.append(
            BatchImageResult(image_id=image_id, success=True, processed_image_id=outcome.processed_image.id)
        )

    failed = sum(1 for r in results if not r.success)
    return BatchProcessResponse(
        success=failed == 0,
        message=f"Failed to process {failed} images" if failed else f"{len(results)} images processed",
        per_image_results=results,
    )
