from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from photodesk.application.dtos.common_dto import ApiResponse
from photodesk.application.dtos.share_dto import CreateShareRequest, CreateShareResponse, ListSharesResponse
from photodesk.infrastructure.sandbox.dependencies import get_current_user, get_store
from photodesk.infrastructure.sandbox.store import SandboxStore

router = APIRouter(
    prefix="/shares",
    tags=["Sharing"],
    responses={401: {"description": "Unauthorized - Invalid or missing authentication token"}},
)


@router.post(
    "",
    response_model=CreateShareResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Share",
    description="""
    Create a public link to a set of images.

    `expirationDays`, `password` and `maxAccess` are optional; when absent
    the link never expires, is public, and has no view limit.
    """,
)
async def create_share(
    body: CreateShareRequest,
    user=Depends(get_current_user),
    store: SandboxStore = Depends(get_store),
):
    try:
        info = store.create_share(user.id, body)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Image not found: {exc.args[0]}") from exc
    return CreateShareResponse(message="Share link created", share=info, share_url=f"/share/{info.share_token}")


@router.get("", response_model=ListSharesResponse, summary="List Shares")
async def list_shares(user=Depends(get_current_user), store: SandboxStore = Depends(get_store)):
    return ListSharesResponse(shares=store.list_shares(user.id))


@router.delete("/{share_id}", response_model=ApiResponse, summary="Delete Share")
async def delete_share(share_id: str, user=Depends(get_current_user), store: SandboxStore = Depends(get_store)):
    if not store.delete_share(user.id, share_id):
        raise HTTPException(status_code=404, detail="Share not found")
    return ApiResponse(message="Share deleted")
