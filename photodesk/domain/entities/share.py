from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ShareRequest:
    image_ids: tuple[str, ...]
    title: str
    description: str = ""
    # None means the field is left out of the payload entirely
    expiration_days: int | None = None
    password: str | None = None
    max_access: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "imageIds": list(self.image_ids),
            "title": self.title,
            "description": self.description,
        }
        if self.expiration_days is not None:
            payload["expirationDays"] = self.expiration_days
        if self.password is not None:
            payload["password"] = self.password
        if self.max_access is not None:
            payload["maxAccess"] = self.max_access
        return payload


@dataclass(frozen=True)
class ShareResult:
    share_token: str
    share_url: str
    settings: ShareRequest
    share_id: str | None = None


@dataclass(frozen=True)
class ShareSummary:
    """A share as listed by the remote store."""

    id: str
    share_token: str
    title: str
    description: str = ""
    image_count: int = 0
    access_count: int = 0
    max_access: int | None = None
    is_password_protected: bool = False
    expires_at: datetime | None = None
    created_at: datetime | None = None
