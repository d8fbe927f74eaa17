from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from photodesk.infrastructure.sandbox.dependencies import get_store
from photodesk.infrastructure.sandbox.store import SandboxStore

# Retrieval URLs handed out in image metadata; public like storage URLs
router = APIRouter(tags=["Files"])


@router.get("/files/{image_id}", summary="Image File")
async def image_file(image_id: str, store: SandboxStore = Depends(get_store)):
    stored = store.file(image_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="File not found")
    return Response(content=stored.content, media_type=stored.mime_type)


@router.get("/previews/{key}", summary="Preview Rendering")
async def preview_file(key: str, store: SandboxStore = Depends(get_store)):
    found = store.preview(key)
    if found is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    content, media_type = found
    return Response(content=content, media_type=media_type)
