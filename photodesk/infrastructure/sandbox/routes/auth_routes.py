from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from photodesk.infrastructure.sandbox.dependencies import get_current_user

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={401: {"description": "Unauthorized - Invalid or missing authentication token"}},
)


class CurrentUserResponse(BaseModel):
    """Response model for token validation."""
    success: bool = True
    user_id: str = Field(..., description="Unique identifier of the authenticated user")
    email: str = Field(..., description="Email address of the authenticated user")


@router.get("/me", response_model=CurrentUserResponse, summary="Validate Authentication Token")
def me(user=Depends(get_current_user)):
    """Echo the user the bearer token resolves to."""
    return CurrentUserResponse(user_id=user.id, email=user.email)
