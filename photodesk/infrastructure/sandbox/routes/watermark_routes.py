from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError

from photodesk.application.dtos.common_dto import ApiResponse
from photodesk.application.dtos.watermark_dto import WatermarkSettings, WatermarkSettingsResponse
from photodesk.infrastructure.sandbox import renderer
from photodesk.infrastructure.sandbox.dependencies import get_current_user, get_store
from photodesk.infrastructure.sandbox.store import SandboxStore, inspect_image

router = APIRouter(
    prefix="/watermark",
    tags=["Watermark"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        422: {"description": "Validation Error - Settings out of range"},
    },
)


def _form_settings(
    position: str | None = Form(None),
    opacity: float | None = Form(None),
    size: int | None = Form(None),
    padding: int | None = Form(None),
    auto_apply: bool | None = Form(None, alias="autoApply"),
) -> dict:
    fields = {"position": position, "opacity": opacity, "size": size, "padding": padding, "auto_apply": auto_apply}
    return {k: v for k, v in fields.items() if v is not None}


def _merged(current: WatermarkSettings, changes: dict) -> WatermarkSettings:
    try:
        return WatermarkSettings.model_validate({**current.model_dump(), **changes})
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid watermark settings: {exc.errors()[0]['msg']}") from exc


@router.get("/settings", response_model=WatermarkSettingsResponse, summary="Get Watermark Settings")
async def get_settings(user=Depends(get_current_user), store: SandboxStore = Depends(get_store)):
    return WatermarkSettingsResponse(settings=store.watermark(user.id).settings)


@router.put("/settings", response_model=WatermarkSettingsResponse, summary="Update Watermark Settings")
async def update_settings(
    body: WatermarkSettings,
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    return WatermarkSettingsResponse(message="Watermark settings updated", settings=store.update_watermark(user.id, body))


@router.delete("", response_model=ApiResponse, summary="Remove Watermark Image")
async def delete_watermark(user=Depends(get_current_user), store: SandboxStore = Depends(get_store)):
    if not store.delete_watermark(user.id):
        raise HTTPException(status_code=404, detail="No watermark configured")
    return ApiResponse(message="Watermark deleted")


@router.post(
    "/upload",
    response_model=WatermarkSettingsResponse,
    summary="Upload Watermark Image",
    description="Store a watermark image (multipart field `watermark`) together with its settings.",
)
async def upload_watermark(
    watermark: UploadFile = File(...),
    changes: dict = Depends(_form_settings),
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    settings = _merged(store.watermark(user.id).settings, changes)
    try:
        saved = store.set_watermark_image(user.id, await watermark.read(), settings)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return WatermarkSettingsResponse(message="Watermark uploaded successfully", settings=saved)


@router.post(
    "/preview",
    summary="Preview Watermark",
    description="Composite the stored watermark over the uploaded `image` and return a PNG.",
    responses={200: {"content": {"image/png": {}}}},
)
async def preview_watermark(
    image: UploadFile = File(...),
    changes: dict = Depends(_form_settings),
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    current = store.watermark(user.id)
    if current.content is None:
        raise HTTPException(status_code=400, detail="Upload a watermark image first")
    settings = _merged(current.settings, changes)
    try:
        content = renderer.apply_watermark(await image.read(), current.content, settings)
    except OSError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid image file: {exc}") from exc
    return Response(content=content, media_type="image/png")


@router.get("/image", summary="Watermark Image")
async def watermark_image(user=Depends(get_current_user), store: SandboxStore = Depends(get_store)):
    current = store.watermark(user.id)
    if current.content is None:
        raise HTTPException(status_code=404, detail="No watermark configured")
    _, _, media_type = inspect_image(current.content)
    return Response(content=current.content, media_type=media_type)
