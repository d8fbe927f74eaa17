from __future__ import annotations

import math
import secrets
import uuid
import zipfile
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from io import BytesIO

from PIL import Image as PILImage, UnidentifiedImageError

from photodesk.application.dtos.share_dto import CreateShareRequest, ShareInfo
from photodesk.application.dtos.watermark_dto import WatermarkSettings
from photodesk.domain.entities.image import DateRange, Image, SortDirection, SortField

DATE_RANGE_DAYS = {
    DateRange.TODAY: 1,
    DateRange.WEEK: 7,
    DateRange.MONTH: 30,
    DateRange.YEAR: 365,
}

SORT_KEYS: dict[SortField, Callable[[Image], object]] = {
    SortField.CREATED_AT: lambda img: img.created_at,
    SortField.NAME: lambda img: img.name.lower(),
    SortField.SIZE: lambda img: img.size,
    SortField.WIDTH: lambda img: img.width,
    SortField.HEIGHT: lambda img: img.height,
}


@dataclass
class StoredImage:
    owner: str
    image: Image
    content: bytes
    mime_type: str


@dataclass
class StoredShare:
    owner: str
    info: ShareInfo
    password: str | None = None


@dataclass
class StoredWatermark:
    settings: WatermarkSettings
    content: bytes | None = None


def inspect_image(content: bytes) -> tuple[int, int, str]:
    """Width, height and MIME type of an encoded image. Raises ValueError if unreadable."""
    try:
        with PILImage.open(BytesIO(content)) as img:
            return img.width, img.height, PILImage.MIME.get(img.format, "application/octet-stream")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Invalid image file: {exc}") from exc


class SandboxStore:
    """In-memory remote store: images, previews, shares and watermarks per user."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._images: dict[str, StoredImage] = {}
        self._previews: dict[str, tuple[bytes, str]] = {}
        self._shares: dict[str, StoredShare] = {}
        self._watermarks: dict[str, StoredWatermark] = {}
        self.revoked_tokens: set[str] = set()

    # Images

    def add_image(
        self,
        owner: str,
        filename: str,
        content: bytes,
        *,
        project_id: str | None = None,
        tags: list[str] | tuple[str, ...] = (),
        is_processed: bool = False,
    ) -> Image:
        width, height, mime = inspect_image(content)
        image_id = uuid.uuid4().hex
        image = Image(
            id=image_id,
            name=filename,
            url=f"/files/{image_id}",
            width=width,
            height=height,
            size=len(content),
            created_at=self._clock(),
            tags=tuple(dict.fromkeys(t.strip() for t in tags if t.strip())),
            is_processed=is_processed,
            project_id=project_id,
        )
        self._images[image_id] = StoredImage(owner, image, content, mime)
        return image

    def get(self, owner: str, image_id: str) -> StoredImage | None:
        stored = self._images.get(image_id)
        if stored is None or stored.owner != owner:
            return None
        return stored

    def file(self, image_id: str) -> StoredImage | None:
        return self._images.get(image_id)

    def delete(self, owner: str, image_id: str) -> bool:
        if self.get(owner, image_id) is None:
            return False
        del self._images[image_id]
        return True

    def query(
        self,
        owner: str,
        *,
        search: str = "",
        project_id: str | None = None,
        tags: list[str] | None = None,
        date_range: DateRange = DateRange.ALL,
        sort_by: SortField = SortField.CREATED_AT,
        sort_direction: SortDirection = SortDirection.DESC,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Image], int, int]:
        """Filter, sort and paginate. Returns (page items, total, pages)."""
        items = [s.image for s in self._images.values() if s.owner == owner]
        if project_id:
            items = [img for img in items if img.project_id == project_id]
        if tags:
            wanted = set(tags)
            items = [img for img in items if wanted.issubset(img.tags)]
        if search:
            needle = search.lower()
            items = [
                img
                for img in items
                if needle in img.name.lower() or any(needle in tag.lower() for tag in img.tags)
            ]
        if date_range in DATE_RANGE_DAYS:
            since = self._clock() - timedelta(days=DATE_RANGE_DAYS[date_range])
            items = [img for img in items if img.created_at >= since]
        items.sort(key=SORT_KEYS[sort_by], reverse=sort_direction == SortDirection.DESC)

        total = len(items)
        pages = math.ceil(total / limit) if limit else 0
        start = (page - 1) * limit
        return items[start : start + limit], total, pages

    def tag_universe(self, owner: str) -> list[str]:
        tags = (tag for s in self._images.values() if s.owner == owner for tag in s.image.tags)
        return sorted(set(tags))

    def record_download(self, stored: StoredImage) -> None:
        stored.image = replace(stored.image, download_count=stored.image.download_count + 1)

    def archive(self, entries: list[tuple[str, bytes]]) -> bytes:
        buf = BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            seen: set[str] = set()
            for name, content in entries:
                stem, dot, ext = name.rpartition(".")
                unique, n = name, 1
                while unique in seen:
                    unique = f"{stem}-{n}{dot}{ext}" if dot else f"{name}-{n}"
                    n += 1
                seen.add(unique)
                zf.writestr(unique, content)
        return buf.getvalue()

    # Previews

    def put_preview(self, content: bytes, mime_type: str) -> str:
        key = secrets.token_urlsafe(8)
        self._previews[key] = (content, mime_type)
        return f"/previews/{key}"

    def preview(self, key: str) -> tuple[bytes, str] | None:
        return self._previews.get(key)

    # Shares

    def create_share(self, owner: str, request: CreateShareRequest) -> ShareInfo:
        missing = [i for i in request.image_ids if self.get(owner, i) is None]
        if missing:
            raise KeyError(", ".join(missing))
        now = self._clock()
        info = ShareInfo(
            id=uuid.uuid4().hex,
            share_token=secrets.token_urlsafe(12),
            title=request.title or f"Shared Images ({len(request.image_ids)})",
            description=request.description,
            image_ids=list(request.image_ids),
            expires_at=now + timedelta(days=request.expiration_days) if request.expiration_days else None,
            max_access=request.max_access,
            is_password_protected=bool(request.password),
            created_at=now,
        )
        self._shares[info.id] = StoredShare(owner, info, request.password)
        for image_id in request.image_ids:
            stored = self._images[image_id]
            stored.image = replace(stored.image, share_count=stored.image.share_count + 1)
        return info

    def list_shares(self, owner: str) -> list[ShareInfo]:
        shares = [s.info for s in self._shares.values() if s.owner == owner]
        return sorted(shares, key=lambda info: info.created_at, reverse=True)

    def delete_share(self, owner: str, share_id: str) -> bool:
        stored = self._shares.get(share_id)
        if stored is None or stored.owner != owner:
            return False
        del self._shares[share_id]
        return True

    # Watermark

    def watermark(self, owner: str) -> StoredWatermark:
        return self._watermarks.setdefault(owner, StoredWatermark(WatermarkSettings()))

    def update_watermark(self, owner: str, settings: WatermarkSettings) -> WatermarkSettings:
        current = self.watermark(owner)
        current.settings = settings.model_copy(update={"image_url": current.settings.image_url})
        return current.settings

    def set_watermark_image(self, owner: str, content: bytes, settings: WatermarkSettings) -> WatermarkSettings:
        inspect_image(content)
        current = self.watermark(owner)
        current.content = content
        current.settings = settings.model_copy(update={"image_url": "/watermark/image"})
        return current.settings

    def delete_watermark(self, owner: str) -> bool:
        current = self._watermarks.get(owner)
        if current is None or current.content is None:
            return False
        current.content = None
        current.settings = current.settings.model_copy(update={"image_url": None})
        return True
