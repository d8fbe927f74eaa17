from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from photodesk.application.dtos.image_dto import (
    DeleteImageResponse,
    GetImageResponse,
    ImageMetadata,
    ListImagesResponse,
    PaginationInfo,
    UploadImagesResponse,
)
from photodesk.domain.entities.image import DateRange, SortDirection, SortField
from photodesk.infrastructure.sandbox.dependencies import get_current_user, get_store
from photodesk.infrastructure.sandbox.store import SandboxStore

MAX_FILES = 10

router = APIRouter(
    prefix="/images",
    tags=["Image Management"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing authentication token"},
        404: {"description": "Not Found - Image does not exist or user doesn't have access"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.get(
    "",
    response_model=ListImagesResponse,
    summary="Query Collection",
    description="""
    Filtered, sorted, paginated view of the user's images.

    **Filters:** free-text `search` over names and tags, `projectId`,
    `tags` (every listed tag must be present), `dateRange`.
    """,
)
async def list_images(
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str = Query(""),
    project_id: str | None = Query(None, alias="projectId"),
    tags: list[str] = Query([]),
    date_range: DateRange = Query(DateRange.ALL, alias="dateRange"),
    sort_by: SortField = Query(SortField.CREATED_AT, alias="sortBy"),
    sort_direction: SortDirection = Query(SortDirection.DESC, alias="sortDirection"),
):
    items, total, pages = store.query(
        user.id,
        search=search,
        project_id=project_id,
        tags=tags,
        date_range=date_range,
        sort_by=sort_by,
        sort_direction=sort_direction,
        page=page,
        limit=limit,
    )
    return ListImagesResponse(
        images=[ImageMetadata.from_entity(img) for img in items],
        pagination=PaginationInfo(page=page, limit=limit, total=total, pages=pages),
        tags=store.tag_universe(user.id),
    )


@router.get("/{image_id}", response_model=GetImageResponse, summary="Get Image")
async def get_image(image_id: str, user=Depends(get_current_user), store: SandboxStore = Depends(get_store)):
    stored = store.get(user.id, image_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return GetImageResponse(image=ImageMetadata.from_entity(stored.image))


@router.post(
    "/upload/multiple",
    response_model=UploadImagesResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Images",
    description="""
    Upload up to 10 images in one multipart request (field `images`).

    `tags` is a comma-separated list applied to every uploaded image.
    """,
    responses={400: {"description": "Bad Request - Invalid image file or too many files"}},
)
async def upload_images(
    images: list[UploadFile] = File(..., description="Image files to upload"),
    project_id: str | None = Form(None, alias="projectId"),
    tags: str | None = Form(None),
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    if len(images) > MAX_FILES:
        raise HTTPException(status_code=400, detail=f"Too many files. Maximum allowed is {MAX_FILES}.")
    tag_list = [t.strip() for t in tags.split(",")] if tags else []
    uploaded = []
    for file in images:
        content = await file.read()
        try:
            image = store.add_image(
                user.id,
                file.filename or "upload",
                content,
                project_id=project_id,
                tags=tag_list,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        uploaded.append(ImageMetadata.from_entity(image))
    return UploadImagesResponse(message=f"{len(uploaded)} images uploaded", uploaded_images=uploaded)


@router.delete("/{image_id}", response_model=DeleteImageResponse, summary="Delete Image")
async def delete_image(image_id: str, user=Depends(get_current_user), store: SandboxStore = Depends(get_store)):
    if not store.delete(user.id, image_id):
        raise HTTPException(status_code=404, detail="Image not found")
    return DeleteImageResponse(message="Image deleted successfully")
