from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from photodesk.application.dtos.common_dto import ApiResponse, WireModel
from photodesk.domain.entities.share import ShareSummary


class ShareSettings(WireModel):
    """State of the share dialog before the share is created."""
    title: str = Field("", description="Optional title; defaults to 'Shared Images (N)'")
    description: str = ""
    password: str = ""
    expiration_days: int = Field(7, description="Days until the link expires (0 = never)", ge=0)
    max_access: int = Field(0, description="Maximum number of views", ge=0)
    is_password_protected: bool = False
    is_expiration_enabled: bool = True
    is_max_access_enabled: bool = False


class ShareInfo(WireModel):
    """A share as returned by the remote store."""
    id: str = Field(..., description="Identifier of the share record")
    share_token: str = Field(..., description="Public token addressing the share")
    title: str = ""
    description: str = ""
    image_ids: list[str] = Field(default_factory=list)
    expires_at: Optional[datetime] = None
    max_access: Optional[int] = None
    access_count: int = 0
    is_password_protected: bool = False
    created_at: Optional[datetime] = None

    def to_summary(self) -> ShareSummary:
        return ShareSummary(
            id=self.id,
            share_token=self.share_token,
            title=self.title,
            description=self.description,
            image_count=len(self.image_ids),
            access_count=self.access_count,
            max_access=self.max_access,
            is_password_protected=self.is_password_protected,
            expires_at=self.expires_at,
            created_at=self.created_at,
        )


class CreateShareResponse(ApiResponse):
    share: ShareInfo
    share_url: Optional[str] = Field(None, description="Share URL as built by the server")


class ListSharesResponse(ApiResponse):
    shares: list[ShareInfo] = Field(default_factory=list)


class CreateShareRequest(WireModel):
    """Request model for share creation. Absent optional fields mean 'no limit'."""
    image_ids: list[str] = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    expiration_days: Optional[int] = Field(None, ge=0)
    password: Optional[str] = None
    max_access: Optional[int] = Field(None, ge=1)
